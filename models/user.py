"""User profile and body measurement records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from models.clothing_item import normalize_email

# Persisted measurement keys, in the order profile screens show them.
MEASUREMENT_KEYS = {
    "height": "height",
    "body_weight": "bodyWeight",
    "chest": "chest",
    "shoulder_width": "shoulderWidth",
    "arm_length": "armLength",
    "waist": "waist",
    "hips": "hips",
    "inseam": "inseam",
    "shoe_size": "shoeSize",
}


def coerce_measurements(raw: Mapping[str, Any] | None) -> Dict[str, float]:
    """Keep numeric (or numeric-string) values and drop everything else."""

    result: Dict[str, float] = {}
    for key, value in (raw or {}).items():
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            result[str(key)] = float(value)
            continue
        if isinstance(value, str):
            try:
                result[str(key)] = float(value.strip())
            except ValueError:
                continue
    return result


@dataclass
class BodyMeasurements:
    """Body measurements in centimetres (weight in kg)."""

    height: float = 0.0
    body_weight: float = 0.0
    chest: float = 0.0
    shoulder_width: float = 0.0
    arm_length: float = 0.0
    waist: float = 0.0
    hips: float = 0.0
    inseam: float = 0.0
    shoe_size: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {MEASUREMENT_KEYS[f.name]: float(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "BodyMeasurements":
        values = coerce_measurements(raw)
        kwargs = {
            attr: values[key]
            for attr, key in MEASUREMENT_KEYS.items()
            if key in values
        }
        return cls(**kwargs)


@dataclass
class User:
    """A FitPick account, keyed by lower-cased email."""

    email: str
    username: str = ""
    selfie_url: str = ""
    bio: str = ""
    gender: str = "Unspecified"
    avatar_url: Optional[str] = None
    measurements: Dict[str, float] = field(default_factory=dict)
    fcm_token: Optional[str] = None
    last_active: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)
        self.username = (self.username or "").strip()
        self.gender = (self.gender or "").strip() or "Unspecified"
        self.measurements = coerce_measurements(self.measurements)

    @property
    def display_name(self) -> str:
        return self.username or self.email.split("@", 1)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "username": self.username,
            "selfie_url": self.selfie_url,
            "bio": self.bio,
            "gender": self.gender,
            "avatar_url": self.avatar_url,
            "measurements": dict(self.measurements),
            "last_active": self.last_active.isoformat() if self.last_active else None,
        }


__all__ = ["BodyMeasurements", "MEASUREMENT_KEYS", "User", "coerce_measurements"]
