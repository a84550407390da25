"""Body measurement estimation from 2D pose landmarks.

Joint coordinates arrive normalized (0-1, top-left origin) from an on-device
pose detector. A user-supplied height anchors the scale: the nose-to-ankle
distance covers roughly 93% of standing height, which gives a pixel to
centimetre ratio for every other joint-to-joint distance. Circumferences use a
circular approximation of the frontal width with empirical fudge factors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

NOSE_TO_ANKLE_FRACTION = 0.93
CHEST_WIDTH_FACTOR = 0.95
HIP_WIDTH_FACTOR = 1.15
MIN_CONFIDENCE = 0.5

REQUIRED_JOINTS = (
    "nose",
    "left_ankle",
    "right_ankle",
    "left_shoulder",
    "right_shoulder",
    "left_hip",
    "right_hip",
    "left_elbow",
    "left_wrist",
)

Point = Tuple[float, float]


@dataclass
class PoseMeasurements:
    """Estimated measurements in centimetres."""

    height: float
    shoulder_width: float
    chest: float
    waist: float
    hips: float
    arm_length: float
    inseam: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "height": self.height,
            "shoulderWidth": round(self.shoulder_width, 1),
            "chest": round(self.chest, 1),
            "waist": round(self.waist, 1),
            "hips": round(self.hips, 1),
            "armLength": round(self.arm_length, 1),
            "inseam": round(self.inseam, 1),
        }


def _confident_points(
    joints: Mapping[str, Sequence[float]], image_size: Optional[Tuple[int, int]] = None
) -> Dict[str, Point]:
    width, height = image_size or (1, 1)
    points: Dict[str, Point] = {}
    for name, raw in joints.items():
        if len(raw) < 2:
            raise ValueError(f"Joint {name} needs at least x and y")
        if len(raw) >= 3 and float(raw[2]) <= MIN_CONFIDENCE:
            continue
        points[name] = (float(raw[0]) * width, float(raw[1]) * height)
    return points


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def assess_pose(joints: Mapping[str, Sequence[float]]) -> str:
    """Tell the capture screen whether the whole body is in frame."""

    points = _confident_points(joints)
    if "left_ankle" in points and "right_ankle" in points:
        return "Person Fully Detected!"
    return "Step back: Feet not visible"


def estimate_body_measurements(
    joints: Mapping[str, Sequence[float]],
    user_height_cm: float,
    image_size: Optional[Tuple[int, int]] = None,
) -> Optional[PoseMeasurements]:
    """Estimate body measurements, or ``None`` when a required joint is missing."""

    if user_height_cm <= 0:
        raise ValueError("user_height_cm must be positive")

    points = _confident_points(joints, image_size)
    if any(name not in points for name in REQUIRED_JOINTS):
        return None

    nose = points["nose"]
    ankle_mid = (
        (points["left_ankle"][0] + points["right_ankle"][0]) / 2,
        (points["left_ankle"][1] + points["right_ankle"][1]) / 2,
    )
    nose_to_ankle = _distance(nose, ankle_mid)
    if nose_to_ankle == 0:
        return None
    ratio = user_height_cm / (nose_to_ankle / NOSE_TO_ANKLE_FRACTION)

    shoulder_px = _distance(points["left_shoulder"], points["right_shoulder"])
    hip_px = _distance(points["left_hip"], points["right_hip"])
    arm_px = _distance(points["left_shoulder"], points["left_elbow"]) + _distance(
        points["left_elbow"], points["left_wrist"]
    )
    inseam_px = _distance(points["left_hip"], points["left_ankle"])

    return PoseMeasurements(
        height=float(user_height_cm),
        shoulder_width=shoulder_px * ratio,
        chest=shoulder_px * CHEST_WIDTH_FACTOR * ratio * math.pi,
        waist=hip_px * ratio * math.pi,
        hips=hip_px * HIP_WIDTH_FACTOR * ratio * math.pi,
        arm_length=arm_px * ratio,
        inseam=inseam_px * ratio,
    )


def format_measurements(measurements: PoseMeasurements) -> Dict[str, str]:
    """Display strings keyed the way the measurement overlay labels them."""

    return {
        "Height": f"{int(measurements.height)} cm",
        "Arm": f"{measurements.arm_length:.1f} cm",
        "Inseam": f"{measurements.inseam:.1f} cm",
        "Waist": f"{measurements.waist:.1f} cm",
        "Shoulder": f"{measurements.shoulder_width:.1f} cm",
        "Chest": f"{measurements.chest:.1f} cm",
        "Hips": f"{measurements.hips:.1f} cm",
    }


__all__ = [
    "PoseMeasurements",
    "REQUIRED_JOINTS",
    "assess_pose",
    "estimate_body_measurements",
    "format_measurements",
]
