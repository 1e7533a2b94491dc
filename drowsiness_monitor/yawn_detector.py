"""
Yawn Detection Module
Detects yawns from how long the mouth stays open
"""

from .config import (
    MOUTH_OPEN_THRESHOLD,
    YAWN_MIN_SECONDS,
    YAWN_COOLDOWN_FRAMES,
    YAWN_DELTA,
    EVENT_YAWN,
)


class YawnDetector:
    """
    Mouth aperture state machine.

    A yawn is the mouth staying open (aperture > MOUTH_OPEN_THRESHOLD) for more
    than YAWN_MIN_SECONDS. Any sample at or below the threshold, or any sample
    during the cooldown, cancels the candidate yawn and the timer starts over.
    """

    def __init__(self, regulator, ledger, cooldown_frames=YAWN_COOLDOWN_FRAMES):
        self.regulator = regulator
        self.ledger = ledger
        self.cooldown_frames = cooldown_frames

        self.open_since = None
        self.cooldown = 0
        self.yawns = 0

    def update(self, aperture, now):
        """
        Process one sample.

        Args:
            aperture: Inter-lip distance for this sample
            now: Sample timestamp in seconds

        Returns:
            List of events recorded for this sample (possibly empty)
        """
        if self.cooldown > 0:
            self.cooldown -= 1

        if aperture <= MOUTH_OPEN_THRESHOLD or self.cooldown > 0:
            self.open_since = None
            return []

        if self.open_since is None:
            self.open_since = now

        if now - self.open_since > YAWN_MIN_SECONDS:
            self.regulator.increase(YAWN_DELTA, now)
            self.cooldown = self.cooldown_frames
            self.open_since = None
            self.yawns += 1
            return [self.ledger.record(EVENT_YAWN, self.regulator.score, now)]

        return []

    def reset(self):
        self.open_since = None
        self.cooldown = 0
        self.yawns = 0
