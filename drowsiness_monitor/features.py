"""
Feature Extraction Module
Turns one landmark sample into eye aspect ratios and mouth aperture
"""

from dataclasses import dataclass

import numpy as np

from .config import LEFT_EYE, RIGHT_EYE, MOUTH


class MalformedSampleError(ValueError):
    """Raised when a landmark sample lacks the points the extractor needs."""


@dataclass(frozen=True)
class FaceFeatures:
    left_ear: float
    right_ear: float
    mouth_aperture: float

    @property
    def avg_ear(self):
        return (self.left_ear + self.right_ear) / 2.0


REQUIRED_POINTS = max(LEFT_EYE + RIGHT_EYE + MOUTH) + 1


def _point(landmark):
    """Accept MediaPipe landmarks (.x/.y) as well as plain (x, y) pairs."""
    try:
        if hasattr(landmark, "x") and hasattr(landmark, "y"):
            point = np.array([landmark.x, landmark.y], dtype=float)
        else:
            point = np.array(landmark[:2], dtype=float)
    except (TypeError, ValueError):
        raise MalformedSampleError(f"not a 2-D point: {landmark!r}")
    if point.shape != (2,):
        raise MalformedSampleError(f"not a 2-D point: {landmark!r}")
    if not np.all(np.isfinite(point)):
        raise MalformedSampleError(f"non-finite coordinates: {landmark!r}")
    return point


def distance(p1, p2):
    """Euclidean distance between two 2-D points."""
    return float(np.linalg.norm(_point(p1) - _point(p2)))


def calculate_ear(eye):
    """
    Calculate the Eye Aspect Ratio for one eye.

    Args:
        eye: Six points ordered outer corner, upper lid x2, inner corner, lower lid x2

    Returns:
        (|p1-p5| + |p2-p4|) / (2 * |p0-p3|), or 0.0 for a degenerate eye
    """
    A = distance(eye[1], eye[5])
    B = distance(eye[2], eye[4])
    C = distance(eye[0], eye[3])
    return (A + B) / (2.0 * C) if C != 0 else 0.0


def calculate_average_ear(left_eye, right_eye):
    return (calculate_ear(left_eye) + calculate_ear(right_eye)) / 2.0


def calculate_mouth_aperture(mouth):
    """Inter-lip distance between the two designated lip points."""
    return distance(mouth[0], mouth[1])


def extract_features(landmarks):
    """
    Extract eye and mouth features from a full landmark sample.

    Args:
        landmarks: Ordered sequence of 2-D points; indices follow the contract in config

    Returns:
        FaceFeatures

    Raises:
        MalformedSampleError: if the sample is missing, too short or has non-finite points
    """
    if landmarks is None:
        raise MalformedSampleError("no landmarks in sample")

    try:
        count = len(landmarks)
    except TypeError:
        raise MalformedSampleError("landmark sample is not a sequence")

    if count < REQUIRED_POINTS:
        raise MalformedSampleError(
            f"sample has {count} points, need at least {REQUIRED_POINTS}"
        )

    left_eye = [landmarks[i] for i in LEFT_EYE]
    right_eye = [landmarks[i] for i in RIGHT_EYE]
    mouth = [landmarks[i] for i in MOUTH]

    return FaceFeatures(
        left_ear=calculate_ear(left_eye),
        right_ear=calculate_ear(right_eye),
        mouth_aperture=calculate_mouth_aperture(mouth),
    )
