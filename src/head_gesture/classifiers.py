"""Wearing and stability predicates."""

from __future__ import annotations

import math

import numpy as np

MAX_WORN_PITCH_DEG = 10.0
MAX_WORN_ROLL_DEG = 40.0
STABLE_ANGULAR_VELOCITY = 0.10  # rad/s


def is_worn(
    pitch: float,
    roll: float,
    max_pitch_deg: float = MAX_WORN_PITCH_DEG,
    max_roll_deg: float = MAX_WORN_ROLL_DEG,
) -> bool:
    """True if pitch and roll (radians) lie strictly inside the worn envelope."""
    max_pitch = math.radians(max_pitch_deg)
    max_roll = math.radians(max_roll_deg)
    return -max_pitch < pitch < max_pitch and -max_roll < roll < max_roll


def is_stable(angular_velocity, threshold: float = STABLE_ANGULAR_VELOCITY) -> bool:
    """True if every angular-velocity component is below ``threshold`` in magnitude."""
    v = np.abs(np.asarray(angular_velocity, dtype=np.float64))
    return bool(np.all(v < threshold))


def dominant_axis(angular_velocity) -> int:
    """Index of the largest-magnitude component; ties go to the lower index."""
    return int(np.argmax(np.abs(np.asarray(angular_velocity, dtype=np.float64))))
