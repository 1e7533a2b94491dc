"""
Eye Closure Module
Tracks how long the eyes stay closed and classifies blinks and microsleeps
"""

from .config import (
    EAR_CLOSED_THRESHOLD,
    BLINK_MAX_SECONDS,
    MICROSLEEP_MODERATE_SECONDS,
    MICROSLEEP_CRITICAL_SECONDS,
    MICROSLEEP_COOLDOWN_FRAMES,
    CRITICAL_MICROSLEEP_DELTA,
    MODERATE_MICROSLEEP_DELTA,
    BLINK_DELTA,
    EVENT_BLINK,
    EVENT_MODERATE_MICROSLEEP,
    EVENT_CRITICAL_MICROSLEEP,
)

OPEN = "OPEN"
CLOSED = "CLOSED"


class EyeClosureMonitor:
    """
    Eye closure state machine (OPEN / CLOSED).

    Classification:
    - Still closed for more than MICROSLEEP_CRITICAL_SECONDS -> critical microsleep.
      The closure timer restarts right away, so a long closure can fire again
      once the cooldown has run out.
    - Reopened after MICROSLEEP_MODERATE_SECONDS or more -> moderate microsleep
    - Reopened in under BLINK_MAX_SECONDS -> blink
    - Anything in between -> no event

    Microsleeps start a cooldown counted in samples. The counter only moves
    when update() is called, so rejected samples do not advance it.
    """

    def __init__(self, regulator, ledger, cooldown_frames=MICROSLEEP_COOLDOWN_FRAMES):
        self.regulator = regulator
        self.ledger = ledger
        self.cooldown_frames = cooldown_frames

        self.closed_since = None
        self.cooldown = 0

        # Session counters for the UI
        self.blinks = 0
        self.microsleeps = 0

    @property
    def state(self):
        return CLOSED if self.closed_since is not None else OPEN

    def update(self, avg_ear, now):
        """
        Process one sample.

        Args:
            avg_ear: Mean EAR of both eyes for this sample
            now: Sample timestamp in seconds

        Returns:
            List of events recorded for this sample (possibly empty)
        """
        if self.cooldown > 0:
            self.cooldown -= 1

        if avg_ear < EAR_CLOSED_THRESHOLD:
            return self._on_closed(now)
        return self._on_open(now)

    def _on_closed(self, now):
        if self.closed_since is None:
            self.closed_since = now
            return []

        duration = now - self.closed_since
        if duration > MICROSLEEP_CRITICAL_SECONDS and self.cooldown == 0:
            event = self._microsleep(EVENT_CRITICAL_MICROSLEEP, CRITICAL_MICROSLEEP_DELTA, now)
            self.closed_since = None
            return [event]
        return []

    def _on_open(self, now):
        if self.closed_since is None:
            return []

        duration = now - self.closed_since
        self.closed_since = None

        if duration >= MICROSLEEP_MODERATE_SECONDS and self.cooldown == 0:
            return [self._microsleep(EVENT_MODERATE_MICROSLEEP, MODERATE_MICROSLEEP_DELTA, now)]

        if duration < BLINK_MAX_SECONDS:
            self.blinks += 1
            self.regulator.note_blink()
            self.regulator.mark_event(now)
            return [self.ledger.record(EVENT_BLINK, self.regulator.score + BLINK_DELTA, now)]

        return []

    def _microsleep(self, kind, delta, now):
        self.regulator.increase(delta, now)
        self.cooldown = self.cooldown_frames
        self.microsleeps += 1
        return self.ledger.record(kind, self.regulator.score, now)

    def reset(self):
        self.closed_since = None
        self.cooldown = 0
        self.blinks = 0
        self.microsleeps = 0
