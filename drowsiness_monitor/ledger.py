"""
Event Ledger Module
Append-only local record of classified events, mirrored to the remote store
"""

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from .config import EVENT_BLINK, PROBABILITY_MIN, PROBABILITY_MAX
from .dispatch import BackgroundDispatcher


def round_half_up(value):
    """Nearest int, halves rounded up (12.5 -> 13, not 12)."""
    return int(math.floor(value + 0.5))


def iso_timestamp(ts):
    """Epoch seconds -> ISO 8601 UTC string with millisecond precision."""
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Event:
    kind: str
    timestamp: float
    probability: float  # score snapshot right after the event was applied

    @property
    def iso_timestamp(self):
        return iso_timestamp(self.timestamp)

    def to_payload(self, session_id):
        """Body for the remote append call."""
        rounded = round_half_up(max(PROBABILITY_MIN, min(self.probability, PROBABILITY_MAX)))
        return {
            "kind": self.kind,
            "timestamp": self.iso_timestamp,
            "probability": rounded,
            "sessionId": session_id,
        }


class EventLedger:
    """
    Local list of events for the current session.

    The local list is authoritative and updated synchronously. Each record is
    also handed to the dispatcher for a best-effort remote append: failures are
    printed, never retried, and never reach the caller. Remote arrival order is
    not guaranteed.
    """

    def __init__(self, store=None, dispatcher=None, clock=time.time):
        self.store = store
        self.dispatcher = dispatcher if dispatcher is not None else BackgroundDispatcher()
        self.clock = clock
        self.events = []
        self.session_id = None

    def record(self, kind, probability, now=None):
        if now is None:
            now = self.clock()

        event = Event(kind=kind, timestamp=now, probability=float(probability))
        self.events.append(event)

        if kind != EVENT_BLINK:
            print(f"[EVENT] {kind} at {event.iso_timestamp} - probability {probability:.0f}%")

        self._mirror(event)
        return event

    def _mirror(self, event):
        if self.store is None:
            return
        if self.session_id is None:
            print(f"[EVENT] Not saving '{event.kind}' remotely: session not started")
            return

        payload = event.to_payload(self.session_id)
        self.dispatcher.submit(self._append_remote, payload)

    def _append_remote(self, payload):
        try:
            self.store.append_event(payload)
        except Exception as e:
            print(f"[REMOTE] Error saving event '{payload['kind']}': {e}")

    def count(self, kind=None):
        if kind is None:
            return len(self.events)
        return sum(1 for event in self.events if event.kind == kind)

    def mean_probability(self, default):
        """Average probability snapshot over recorded events, or `default` if none."""
        if not self.events:
            return default
        return sum(event.probability for event in self.events) / len(self.events)

    def clear(self):
        self.events = []
        self.session_id = None
