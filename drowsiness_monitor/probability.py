"""
Probability Regulator Module
Owns the bounded drowsiness probability (0-100), its change history,
idle decay and blink-rate escalation
"""

import time
from dataclasses import dataclass

from .config import (
    PROBABILITY_MIN,
    PROBABILITY_MAX,
    IDLE_DECAY_START_SECONDS,
    IDLE_DECAY_WINDOW_SECONDS,
    IDLE_DECAY_DELTA,
    ELEVATED_BLINKS_THRESHOLD,
    ELEVATED_BLINKS_DELTA,
    FRAMES_PER_MINUTE,
    EVENT_NO_EVENTS,
    EVENT_ELEVATED_BLINKS,
)


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: float
    value: float


@dataclass
class BlinkWindow:
    """Frames and blinks counted since the window last closed."""
    frame_count: int = 0
    blink_count: int = 0

    def clear(self):
        self.frame_count = 0
        self.blink_count = 0


class ProbabilityRegulator:
    """
    Bounded accumulator for the drowsiness probability.

    Other components never set the score directly; they request deltas through
    increase()/decrease(). Every change is clamped to [0, 100] and appended to
    the history with the post-update value.

    Every score change also restarts the idle timer and the blink window frame
    counter, so escalation and decay only look at stretches with no activity.
    """

    def __init__(self, ledger, clock=time.time):
        """
        Args:
            ledger: EventLedger receiving "no events" and "elevated blinks" records
            clock: Time source in seconds, used when callers omit `now`
        """
        self.ledger = ledger
        self.clock = clock
        self.score = PROBABILITY_MIN
        self.history = []
        self.window = BlinkWindow()
        self.last_event_time = clock()

    def increase(self, delta, now=None):
        return self._apply(self.score + delta, now)

    def decrease(self, delta, now=None):
        return self._apply(self.score - delta, now)

    def _apply(self, value, now):
        if now is None:
            now = self.clock()

        self.score = float(max(PROBABILITY_MIN, min(value, PROBABILITY_MAX)))
        self.history.append(HistoryEntry(timestamp=now, value=self.score))

        self.last_event_time = now
        self.window.frame_count = 0
        return self.score

    def mark_event(self, now):
        """Restart the idle timer for events that do not move the score (blinks)."""
        self.last_event_time = now

    def tick(self):
        """Count one processed sample in the blink window."""
        self.window.frame_count += 1

    def note_blink(self):
        self.window.blink_count += 1

    def idle_seconds(self, now):
        return now - self.last_event_time

    def decay_if_idle(self, now):
        """
        Lower the score once the driver has been event-free for a minute.

        Only samples whose idle time lands inside
        [IDLE_DECAY_START_SECONDS, IDLE_DECAY_START_SECONDS + IDLE_DECAY_WINDOW_SECONDS)
        trigger the decay. A sample train too sparse to land inside that window
        never decays.

        Returns:
            The recorded Event, or None if no decay fired
        """
        idle = self.idle_seconds(now)
        window_end = IDLE_DECAY_START_SECONDS + IDLE_DECAY_WINDOW_SECONDS

        if IDLE_DECAY_START_SECONDS <= idle < window_end:
            self.decrease(IDLE_DECAY_DELTA, now)
            return self.ledger.record(EVENT_NO_EVENTS, self.score, now)
        return None

    def escalate_if_frequent(self, now, frames_per_minute=FRAMES_PER_MINUTE):
        """
        Close the blink window once it spans a minute of samples.

        If the window held ELEVATED_BLINKS_THRESHOLD blinks or more, the score
        rises by ELEVATED_BLINKS_DELTA and an "elevated blinks" event is
        recorded. The window is cleared whether or not escalation fired.

        Returns:
            The recorded Event, or None
        """
        if self.window.frame_count < frames_per_minute:
            return None

        event = None
        if self.window.blink_count >= ELEVATED_BLINKS_THRESHOLD:
            self.increase(ELEVATED_BLINKS_DELTA, now)
            event = self.ledger.record(EVENT_ELEVATED_BLINKS, self.score, now)

        self.window.clear()
        return event

    def max_level(self):
        """Highest value in history, or the current score if nothing changed yet."""
        if self.history:
            return max(entry.value for entry in self.history)
        return self.score

    def reset(self, now=None):
        self.score = PROBABILITY_MIN
        self.history = []
        self.window.clear()
        self.last_event_time = self.clock() if now is None else now
