"""
Alert Module
Maps the latest event and the drowsiness probability to a live alert level
and a recommendation, with best-effort audio cues

Alert levels: moderate < high < critical
"""

import sys
import threading

import numpy as np

try:
    import pygame
    pygame_available = True
except ImportError:
    pygame_available = False

from .config import (
    ALERT_CRITICAL_MIN,
    ALERT_HIGH_MIN,
    ALERT_MODERATE_MIN,
    ALERT_TONES,
    RECOMMENDATION_LOW_MAX,
    RECOMMENDATION_MODERATE_MAX,
    RECOMMENDATION_HIGH_MAX,
    EVENT_CRITICAL_MICROSLEEP,
    EVENT_MODERATE_MICROSLEEP,
    EVENT_ELEVATED_BLINKS,
)

LEVEL_MODERATE = "moderate"
LEVEL_HIGH = "high"
LEVEL_CRITICAL = "critical"

LEVEL_RANK = {None: 0, LEVEL_MODERATE: 1, LEVEL_HIGH: 2, LEVEL_CRITICAL: 3}

# Event kinds that set the alert directly, regardless of the probability
EVENT_ALERTS = {
    EVENT_CRITICAL_MICROSLEEP: (LEVEL_CRITICAL, "Critical microsleep detected!"),
    EVENT_MODERATE_MICROSLEEP: (LEVEL_HIGH, "Moderate microsleep"),
    EVENT_ELEVATED_BLINKS: (LEVEL_MODERATE, "Frequent blinking"),
}


def classify_alert(last_event_kind, probability):
    """
    Pick the alert to show for the latest event and current probability.

    Args:
        last_event_kind: Kind of the most recent event, or None
        probability: Current drowsiness probability (0-100)

    Returns:
        (level, message), or (None, None) when no alert applies
    """
    if last_event_kind in EVENT_ALERTS:
        return EVENT_ALERTS[last_event_kind]

    if probability >= ALERT_CRITICAL_MIN:
        return LEVEL_CRITICAL, "Critical drowsiness"
    if probability >= ALERT_HIGH_MIN:
        return LEVEL_HIGH, "High drowsiness"
    if probability >= ALERT_MODERATE_MIN:
        return LEVEL_MODERATE, "Moderate drowsiness"
    return None, None


def recommendation_for(probability):
    """
    Recommendation card for the current probability.

    Returns:
        (title, message)
    """
    if probability < RECOMMENDATION_LOW_MAX:
        return ("Low level",
                "You are at a healthy level of attention. Keep it up and remember "
                "to take short visual breaks.")
    if probability < RECOMMENDATION_MODERATE_MAX:
        return ("Moderate level",
                "You are starting to show mild signs of tiredness. Take a minute "
                "to breathe and relax your eyes.")
    if probability < RECOMMENDATION_HIGH_MAX:
        return ("High level",
                "Your concentration is dropping. A short break can make the "
                "difference. Rest before continuing.")
    return ("Critical level",
            "Your drowsiness level is very high and may affect your safety. "
            "Please take a real break before continuing.")


TONE_SAMPLE_RATE = 22050
TONE_AMPLITUDE = 0.35


def tone_samples(frequency_hz, duration_s, sample_rate=TONE_SAMPLE_RATE):
    """Mono int16 sine burst with a 10 ms fade in and out."""
    t = np.arange(int(duration_s * sample_rate)) / sample_rate
    wave = np.sin(2 * np.pi * frequency_hz * t)
    fade = min(len(wave) // 2, int(0.01 * sample_rate))
    if fade:
        ramp = np.linspace(0.0, 1.0, fade)
        wave[:fade] *= ramp
        wave[-fade:] *= ramp[::-1]
    return (wave * TONE_AMPLITUDE * np.iinfo(np.int16).max).astype(np.int16)


def _beep(frequency_hz, duration_s):
    """Play one alert tone: winsound on Windows, the pygame mixer elsewhere."""
    if sys.platform.startswith("win"):
        import winsound
        winsound.Beep(int(frequency_hz), int(duration_s * 1000))
    elif pygame_available:
        pygame.mixer.Sound(buffer=tone_samples(frequency_hz, duration_s).tobytes()).play()


class AlertEngine:
    """
    Tracks the live alert level for a DrowsinessEngine.

    A cue plays once each time the level rises; falling or steady levels are
    silent. Audio runs on a daemon thread so the sample loop never waits on it.
    """

    def __init__(self, audio=True):
        self.level = None
        self.message = None
        self.recommendation = recommendation_for(0)

        self.audio_enabled = False
        if audio and pygame_available:
            try:
                pygame.mixer.init(frequency=TONE_SAMPLE_RATE, size=-16, channels=1)
                self.audio_enabled = True
            except Exception as e:
                print(f"[ALERT] Audio alerts disabled (pygame mixer not available): {e}")
        elif audio:
            print("[ALERT] pygame not available, audio alerts disabled")

    def process(self, engine):
        """
        Update the alert from the engine's latest event and score.

        Returns:
            Current alert level (None, "moderate", "high" or "critical")
        """
        events = engine.ledger.events
        last_kind = events[-1].kind if events else None
        return self.update(last_kind, engine.score)

    def update(self, last_event_kind, probability):
        level, message = classify_alert(last_event_kind, probability)
        self.recommendation = recommendation_for(probability)

        if level != self.level:
            rising = LEVEL_RANK[level] > LEVEL_RANK[self.level]
            if level is None:
                print("[ALERT] Cleared")
            else:
                print(f"[ALERT] {level.upper()}: {message} (probability {probability:.0f}%)")

            self.level = level
            self.message = message
            if rising:
                self._play(level)

        return self.level

    def _play(self, level):
        if not self.audio_enabled or level not in ALERT_TONES:
            return
        frequency, duration = ALERT_TONES[level]
        threading.Thread(target=self._play_tone, args=(frequency, duration), daemon=True).start()

    def _play_tone(self, frequency, duration):
        try:
            _beep(frequency, duration)
        except Exception as e:
            print(f"[ALERT] Audio alert error: {e}")

    def manual_reset(self):
        """Clear the current alert (keyboard reset in the runner)."""
        self.level = None
        self.message = None
        print("[ALERT] Alerts manually reset")
