"""
Drowsiness Monitor

Turns a live stream of facial landmarks into a bounded drowsiness probability
and a classified event log:
- Feature extraction (EAR, mouth aperture)
- Eye closure: blinks, moderate and critical microsleeps
- Yawn detection
- Probability regulation with idle decay and blink-rate escalation
- Event ledger mirrored to a remote store
- Session lifecycle and summary
"""

__version__ = "1.0.0"

from .engine import DrowsinessEngine
from .remote_store import HttpRemoteStore, InMemoryStore, RemoteStore
