"""
Session Coordinator Module
Owns session identity and lifetime and computes the summary at finalize

Lifecycle: NOT_STARTED -> STARTING -> ACTIVE -> FINALIZING -> NOT_STARTED
"""

import time
from dataclasses import dataclass
from typing import Optional

from .ledger import iso_timestamp, round_half_up
from .remote_store import SessionConflictError

NOT_STARTED = "NOT_STARTED"
STARTING = "STARTING"
ACTIVE = "ACTIVE"
FINALIZING = "FINALIZING"


def format_elapsed(seconds):
    """Session timer text, e.g. 125.7 -> "02:05"."""
    delta = max(0, int(seconds))
    return f"{delta // 60:02d}:{delta % 60:02d}"


@dataclass
class Session:
    id: str
    started_at: float
    ended_at: Optional[float] = None
    duration_seconds: Optional[int] = None
    max_level: Optional[int] = None
    mean_probability: Optional[int] = None
    total_events: Optional[int] = None

    def summary_payload(self):
        """Body for the remote finalize call."""
        return {
            "endedAt": iso_timestamp(self.ended_at),
            "durationSeconds": self.duration_seconds,
            "maxLevel": self.max_level,
            "meanProbability": self.mean_probability,
            "totalEvents": self.total_events,
        }


class SessionCoordinator:
    """
    Brackets a monitoring stream with start() and finalize().

    start() is idempotent while a session is starting or active. A conflict
    from the store ("already active") is reconciled by adopting the existing
    session id. Any other start failure leaves the coordinator NOT_STARTED and
    is raised to the caller.

    finalize() never raises on store failure: the error is printed and the
    local session is discarded anyway, so the server-side summary is lost.
    """

    def __init__(self, store, clock=time.time):
        self.store = store
        self.clock = clock
        self.state = NOT_STARTED
        self.session = None

    @property
    def session_id(self):
        return self.session.id if self.session is not None else None

    def start(self):
        """
        Create (or adopt) the remote session.

        Returns:
            The session id

        Raises:
            RemoteStoreError: on any failure other than an active-session conflict
        """
        if self.state in (STARTING, ACTIVE, FINALIZING):
            print(f"[SESSION] Session already {self.state.lower()}, start ignored")
            return self.session_id

        self.state = STARTING
        try:
            session_id = self.store.create_session()
        except SessionConflictError as e:
            print(f"[SESSION] Reusing already active session {e.session_id}")
            session_id = e.session_id
        except Exception as e:
            print(f"[SESSION] Error starting session: {e}")
            self.state = NOT_STARTED
            raise

        self.session = Session(id=session_id, started_at=self.clock())
        self.state = ACTIVE
        print(f"[SESSION] Session {session_id} started")
        return session_id

    def finalize(self, max_level, mean_probability, total_events):
        """
        Build the summary, submit it, and discard the local session.

        Args:
            max_level: Highest probability reached this session
            mean_probability: Average event probability this session
            total_events: Number of events recorded this session

        Returns:
            The finalized Session, or None if no session was active
        """
        self.state = FINALIZING

        session = self.session
        if session is None:
            print("[SESSION] No active session to finalize")
            self.state = NOT_STARTED
            return None

        now = self.clock()
        session.ended_at = now
        session.duration_seconds = round_half_up(now - session.started_at)
        session.max_level = round_half_up(max_level)
        session.mean_probability = round_half_up(mean_probability)
        session.total_events = total_events

        try:
            self.store.finalize_session(session.id, session.summary_payload())
            print(f"[SESSION] Session {session.id} finalized")
        except Exception as e:
            print(f"[SESSION] Error finalizing session {session.id}: {e}")

        self.session = None
        self.state = NOT_STARTED
        return session

    def elapsed(self, now=None):
        if self.session is None:
            return 0.0
        if now is None:
            now = self.clock()
        return now - self.session.started_at

    def reset(self):
        self.session = None
        self.state = NOT_STARTED
