"""
Main Entry Point for the Drowsiness Monitor

Captures frames from the camera, runs the MediaPipe Face Landmarker on each
frame and feeds the landmark list to the DrowsinessEngine:
- features.py: EAR and mouth aperture
- eye_monitor.py: blinks and microsleeps
- yawn_detector.py: yawns
- probability.py: bounded drowsiness probability
- ledger.py: event log mirrored to the remote store
- session.py: session start / finalize
- alerter.py: alert level, recommendation and audio cues
- config.py: all configuration constants

Run with: python -m drowsiness_monitor.main
"""

import argparse
import os
import time
import urllib.request

import cv2
import mediapipe as mp
from mediapipe.tasks.python import vision

from .alerter import AlertEngine
from .config import (
    CAMERA_INDEX,
    FRAME_WIDTH,
    FRAME_HEIGHT,
    FACE_LANDMARKER_MODEL_PATH,
    FACE_LANDMARKER_MODEL_URL,
)
from .dispatch import BackgroundDispatcher
from .engine import DrowsinessEngine
from .remote_store import HttpRemoteStore, InMemoryStore, RemoteStoreError

ALERT_COLORS = {
    None: (0, 255, 0),
    "moderate": (0, 255, 255),
    "high": (0, 165, 255),
    "critical": (0, 0, 255),
}


def ensure_model(path=FACE_LANDMARKER_MODEL_PATH):
    """Download the face landmarker model if it is not present."""
    if not os.path.exists(path):
        print("Downloading face landmarker model...")
        urllib.request.urlretrieve(FACE_LANDMARKER_MODEL_URL, path)
        print("Model downloaded!")
    return path


def create_landmarker(model_path):
    base_options = mp.tasks.BaseOptions(model_asset_path=model_path)
    options = vision.FaceLandmarkerOptions(
        base_options=base_options,
        running_mode=vision.RunningMode.IMAGE,
        num_faces=1,
    )
    return vision.FaceLandmarker.create_from_options(options)


def open_camera(index=CAMERA_INDEX):
    cap = cv2.VideoCapture(index)
    if not cap.isOpened():
        raise RuntimeError(f"Cannot open camera {index}! Check camera index or permissions.")
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, FRAME_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, FRAME_HEIGHT)
    return cap


def detect_landmarks(landmarker, frame):
    """Landmark list for the first face in the frame, or None."""
    rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
    results = landmarker.detect(mp_image)
    if results.face_landmarks:
        return results.face_landmarks[0]
    return None


def draw_overlay(frame, snapshot, alerter):
    color = ALERT_COLORS.get(alerter.level, (255, 255, 255))
    cv2.putText(frame, f"Drowsiness: {snapshot['score']:.0f}%", (30, 40),
                cv2.FONT_HERSHEY_SIMPLEX, 0.9, color, 2)
    cv2.putText(frame, f"Blinks: {snapshot['blinks']}  Microsleeps: {snapshot['microsleeps']}  "
                       f"Yawns: {snapshot['yawns']}", (30, 75),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
    cv2.putText(frame, f"Time: {snapshot['elapsed']}", (30, 105),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
    if alerter.message:
        cv2.putText(frame, alerter.message, (30, 140),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2)


def _session_line(session):
    return (
        f"Session {session.get('id')}: duration={session.get('durationSeconds')}s, "
        f"max={session.get('maxLevel')}%, mean={session.get('meanProbability')}%, "
        f"events={session.get('totalEvents')}"
    )


def list_sessions(store):
    try:
        sessions = store.list_sessions()
    except RemoteStoreError as e:
        print(f"Error fetching sessions: {e}")
        return 1

    if not sessions:
        print("No sessions found.")
    for session in sessions:
        print(_session_line(session))
    return 0


def show_session(store, session_id):
    """Print the summary of one stored session."""
    try:
        session = store.get_session(session_id)
    except RemoteStoreError as e:
        print(f"Error fetching session {session_id}: {e}")
        return 1

    print(_session_line(session))
    if session.get("endedAt"):
        print(f"  Ended at: {session['endedAt']}")
    else:
        print("  Session not finalized")
    return 0


def run(engine, alerter, camera_index):
    """Main detection loop."""
    cap = open_camera(camera_index)
    landmarker = create_landmarker(ensure_model())

    frame_count = 0
    start_time = time.time()

    try:
        while True:
            ret, frame = cap.read()
            if not ret or frame is None or frame.size == 0:
                print("Failed to grab frame")
                break

            frame = cv2.flip(frame, 1)
            now = time.time()

            landmarks = detect_landmarks(landmarker, frame)
            if landmarks is not None:
                engine.analyze(landmarks, now)

            alerter.process(engine)
            snapshot = engine.snapshot(now)
            draw_overlay(frame, snapshot, alerter)
            cv2.imshow("Drowsiness Monitor", frame)

            frame_count += 1
            if frame_count % 30 == 0:
                elapsed = time.time() - start_time
                fps = frame_count / elapsed if elapsed > 0 else 0
                if landmarks is not None:
                    print(
                        f"FPS: {fps:.1f} | Score: {snapshot['score']:.0f} | "
                        f"Blinks: {snapshot['blinks']} | Microsleeps: {snapshot['microsleeps']} | "
                        f"Yawns: {snapshot['yawns']}"
                    )
                else:
                    print(f"FPS: {fps:.1f} | No face detected")

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('r'):
                alerter.manual_reset()
    finally:
        cap.release()
        cv2.destroyAllWindows()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Real-time drowsiness monitor")
    parser.add_argument("--camera", type=int, default=CAMERA_INDEX, help="Camera index")
    parser.add_argument("--offline", action="store_true", help="Keep sessions and events in memory only")
    parser.add_argument("--list-sessions", action="store_true", help="Print past sessions and exit")
    parser.add_argument("--session", metavar="ID", help="Print one stored session and exit")
    parser.add_argument("--no-audio", action="store_true", help="Disable audio alerts")
    args = parser.parse_args(argv)

    store = InMemoryStore() if args.offline else HttpRemoteStore()

    if args.list_sessions:
        return list_sessions(store)
    if args.session is not None:
        return show_session(store, args.session)

    print("Starting Drowsiness Monitor...")
    print("=" * 70)

    dispatcher = BackgroundDispatcher()
    engine = DrowsinessEngine(store=store, dispatcher=dispatcher)
    alerter = AlertEngine(audio=not args.no_audio)

    try:
        engine.start()
    except RemoteStoreError as e:
        print(f"Could not start session: {e}")
        engine.reset()
        return 1

    try:
        run(engine, alerter, args.camera)
    except KeyboardInterrupt:
        print("Interrupted by user")
    finally:
        session = engine.finalize()
        engine.wait_for_remote()
        engine.reset()
        print("Shutdown complete.")
        if session is not None:
            print(
                f"Session Summary: Duration={session.duration_seconds}s, "
                f"Max Level={session.max_level}%, Mean={session.mean_probability}%, "
                f"Events={session.total_events}"
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
