"""
Drowsiness Engine Module
Per-sample entry point tying features, state machines, probability,
event ledger and session lifecycle together

One engine instance per monitored session. All state lives on the instance
and is only touched from the sample callback path; remote calls go through the
dispatcher and never block a sample.
"""

import time

from .dispatch import BackgroundDispatcher
from .eye_monitor import EyeClosureMonitor
from .features import extract_features, MalformedSampleError
from .ledger import EventLedger
from .probability import ProbabilityRegulator
from .remote_store import InMemoryStore
from .session import SessionCoordinator, format_elapsed
from .yawn_detector import YawnDetector


class DrowsinessEngine:
    """
    Converts a stream of landmark samples into a drowsiness probability and
    an event log.

    Per sample: extract features -> count the frame in the blink window ->
    eye closure machine -> yawn machine -> idle decay -> blink escalation.
    Events produced by one sample are fully applied (score + local ledger)
    before analyze() returns.
    """

    def __init__(self, store=None, dispatcher=None, clock=time.time):
        """
        Args:
            store: RemoteStore for sessions and events (in-memory store if None)
            dispatcher: Runs remote event appends off the sample path
            clock: Time source in seconds
        """
        self.clock = clock
        self.store = store if store is not None else InMemoryStore()
        self.dispatcher = dispatcher if dispatcher is not None else BackgroundDispatcher()

        self.ledger = EventLedger(self.store, self.dispatcher, clock)
        self.regulator = ProbabilityRegulator(self.ledger, clock)
        self.eyes = EyeClosureMonitor(self.regulator, self.ledger)
        self.mouth = YawnDetector(self.regulator, self.ledger)
        self.session = SessionCoordinator(self.store, clock)

        self.last_features = None
        self.rejected_samples = 0
        self._rejecting = False

    def analyze(self, landmarks, now=None):
        """
        Process one landmark sample.

        Args:
            landmarks: Ordered 2-D landmark points for one face
            now: Sample timestamp in seconds (defaults to the engine clock)

        Returns:
            List of events recorded for this sample. A rejected sample returns
            [] and does not advance any counter.
        """
        if now is None:
            now = self.clock()

        try:
            features = extract_features(landmarks)
        except MalformedSampleError as e:
            self.rejected_samples += 1
            if not self._rejecting:
                print(f"[ENGINE] Sample rejected: {e}")
                self._rejecting = True
            return []

        self._rejecting = False
        self.last_features = features
        self.regulator.tick()

        events = []
        events.extend(self.eyes.update(features.avg_ear, now))
        events.extend(self.mouth.update(features.mouth_aperture, now))

        decay = self.regulator.decay_if_idle(now)
        if decay is not None:
            events.append(decay)

        escalation = self.regulator.escalate_if_frequent(now)
        if escalation is not None:
            events.append(escalation)

        return events

    # Read-only views for the UI

    @property
    def score(self):
        return self.regulator.score

    @property
    def blinks(self):
        return self.eyes.blinks

    @property
    def microsleeps(self):
        return self.eyes.microsleeps

    @property
    def yawns(self):
        return self.mouth.yawns

    @property
    def events(self):
        return list(self.ledger.events)

    @property
    def history(self):
        return list(self.regulator.history)

    @property
    def session_id(self):
        return self.session.session_id

    def snapshot(self, now=None):
        """Current values for display and charts."""
        if now is None:
            now = self.clock()
        last_event = self.ledger.events[-1] if self.ledger.events else None
        return {
            "score": self.score,
            "blinks": self.blinks,
            "microsleeps": self.microsleeps,
            "yawns": self.yawns,
            "events": len(self.ledger.events),
            "last_event": last_event.kind if last_event else None,
            "session_id": self.session_id,
            "elapsed": format_elapsed(self.session.elapsed(now)),
        }

    # Session lifecycle

    def start(self):
        session_id = self.session.start()
        self.ledger.session_id = session_id
        return session_id

    def finalize(self):
        score = self.regulator.score
        session = self.session.finalize(
            max_level=self.regulator.max_level(),
            mean_probability=self.ledger.mean_probability(default=score),
            total_events=self.ledger.count(),
        )
        self.ledger.session_id = None
        return session

    def reset(self):
        """Return every component to its initial state (after finalize or a failed start)."""
        self.eyes.reset()
        self.mouth.reset()
        self.regulator.reset()
        self.ledger.clear()
        self.session.reset()
        self.last_features = None
        self.rejected_samples = 0
        self._rejecting = False

    def wait_for_remote(self):
        """Block until queued remote appends have been attempted."""
        self.dispatcher.join()
