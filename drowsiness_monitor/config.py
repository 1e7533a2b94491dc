"""
Configuration file for all drowsiness engine thresholds and settings
"""

import os

# Sampling cadence (samples per second delivered by the landmark detector)
TARGET_FPS = 30
FRAMES_PER_MINUTE = TARGET_FPS * 60

# Landmark index contract (MediaPipe Face Mesh / Face Landmarker, 468+ points)
LEFT_EYE = [33, 160, 158, 133, 153, 144]
RIGHT_EYE = [362, 385, 387, 263, 373, 380]
MOUTH = [13, 14]                       # Inner upper lip, inner lower lip

# Eye Aspect Ratio (EAR) threshold
EAR_CLOSED_THRESHOLD = 0.21           # avg EAR < threshold => eyes closed

# Mouth aperture threshold (normalized coordinate space)
MOUTH_OPEN_THRESHOLD = 0.05           # aperture > threshold => mouth open

# Eye closure durations (seconds)
BLINK_MAX_SECONDS = 0.3               # closure < 0.3s => blink
MICROSLEEP_MODERATE_SECONDS = 0.8     # closure >= 0.8s on reopen => moderate microsleep
MICROSLEEP_CRITICAL_SECONDS = 2.5     # closure > 2.5s while still closed => critical microsleep
# Closures in [0.3s, 0.8s) produce no event

# Yawn duration (seconds)
YAWN_MIN_SECONDS = 0.4                # mouth open > 0.4s => yawn

# Cooldowns, counted in samples (tied to TARGET_FPS, not wall clock)
MICROSLEEP_COOLDOWN_FRAMES = TARGET_FPS * 4   # 4 seconds at 30 FPS
YAWN_COOLDOWN_FRAMES = TARGET_FPS * 3         # 3 seconds at 30 FPS

# Probability deltas
CRITICAL_MICROSLEEP_DELTA = 20
MODERATE_MICROSLEEP_DELTA = 12
YAWN_DELTA = 6
ELEVATED_BLINKS_DELTA = 2
IDLE_DECAY_DELTA = 4
BLINK_DELTA = 0

# Probability bounds
PROBABILITY_MIN = 0.0
PROBABILITY_MAX = 100.0

# Idle decay: fires when time since last event lands in [START, START + WINDOW)
IDLE_DECAY_START_SECONDS = 60.0
IDLE_DECAY_WINDOW_SECONDS = 1.0

# Blink-rate escalation
ELEVATED_BLINKS_THRESHOLD = 25        # >= 25 blinks within one FRAMES_PER_MINUTE window

# Event kinds (closed set)
EVENT_BLINK = "blink"
EVENT_MODERATE_MICROSLEEP = "moderate microsleep"
EVENT_CRITICAL_MICROSLEEP = "critical microsleep"
EVENT_YAWN = "yawn"
EVENT_NO_EVENTS = "no events (1 min)"
EVENT_ELEVATED_BLINKS = "elevated blinks"

EVENT_KINDS = (
    EVENT_BLINK,
    EVENT_MODERATE_MICROSLEEP,
    EVENT_CRITICAL_MICROSLEEP,
    EVENT_YAWN,
    EVENT_NO_EVENTS,
    EVENT_ELEVATED_BLINKS,
)

# Alert tiers (score thresholds for the live alert banner)
ALERT_CRITICAL_MIN = 80
ALERT_HIGH_MIN = 60
ALERT_MODERATE_MIN = 40

# Recommendation tiers (upper bounds, exclusive)
RECOMMENDATION_LOW_MAX = 30
RECOMMENDATION_MODERATE_MAX = 60
RECOMMENDATION_HIGH_MAX = 80

# Audio cue settings per alert level: (frequency Hz, duration s)
ALERT_TONES = {
    "moderate": (600, 0.15),
    "high": (800, 0.2),
    "critical": (1000, 0.3),
}

# Remote store (read from environment)
API_URL = os.getenv("DROWSINESS_API_URL", "http://localhost:3001").strip().rstrip("/")
API_TOKEN = os.getenv("DROWSINESS_API_TOKEN", "").strip()
API_TIMEOUT_SECONDS = float(os.getenv("DROWSINESS_API_TIMEOUT", "10"))

# Error message the store returns when the caller already owns an active session
ACTIVE_SESSION_MARKER = os.getenv("DROWSINESS_ACTIVE_SESSION_MARKER", "Ya hay una sesión activa")

# Camera settings (runner only)
CAMERA_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480

# Face landmarker model used by the runner
FACE_LANDMARKER_MODEL_PATH = "face_landmarker.task"
FACE_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/1/face_landmarker.task"
)
