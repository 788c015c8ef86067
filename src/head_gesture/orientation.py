"""Orientation from gravity and geomagnetic vectors.

Builds the device-to-world rotation matrix (world axes east, north, up),
remaps it for the way the device is mounted on the head, and decomposes the
result into azimuth, pitch and roll in radians.

All matrices are 3x3 row-major numpy arrays.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

logger = logging.getLogger("head_gesture.orientation")

STANDARD_GRAVITY = 9.80665

# Below this squared norm the device is in free fall (or the reading is zero).
FREE_FALL_GRAVITY_SQUARED = 0.01 * STANDARD_GRAVITY * STANDARD_GRAVITY

# Minimum |E x A|; smaller means no field or a field parallel to gravity.
MIN_EAST_NORM = 0.1


class Axis(Enum):
    """Device axes used to describe a mounting remap."""
    X = (0, 1.0)
    Y = (1, 1.0)
    Z = (2, 1.0)
    MINUS_X = (0, -1.0)
    MINUS_Y = (1, -1.0)
    MINUS_Z = (2, -1.0)

    @property
    def index(self) -> int:
        return self.value[0]

    @property
    def vector(self) -> np.ndarray:
        v = np.zeros(3)
        v[self.value[0]] = self.value[1]
        return v

    @classmethod
    def parse(cls, name: str | Axis) -> Axis:
        """Accept ``Axis`` members or strings like ``"z"`` and ``"-y"``."""
        if isinstance(name, Axis):
            return name
        text = str(name).strip().upper()
        if text.startswith("-"):
            text = "MINUS_" + text[1:]
        try:
            return cls[text]
        except KeyError:
            raise ValueError(f"Unknown axis: {name!r}") from None

    @property
    def label(self) -> str:
        sign = "-" if self.value[1] < 0 else ""
        return sign + "xyz"[self.value[0]]


@dataclass(frozen=True)
class OrientationSample:
    """Azimuth, pitch and roll in radians."""
    azimuth: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.azimuth, self.pitch, self.roll], dtype=np.float64)

    def degrees(self) -> tuple[float, float, float]:
        return (
            math.degrees(self.azimuth),
            math.degrees(self.pitch),
            math.degrees(self.roll),
        )


class RotationResult(NamedTuple):
    rotation: np.ndarray
    inclination: np.ndarray


def rotation_matrix(gravity, geomagnetic) -> Optional[RotationResult]:
    """Compute rotation and inclination matrices.

    Args:
        gravity: Accelerometer vector, pointing up when the device is at rest.
        geomagnetic: Magnetometer vector.

    Returns:
        ``RotationResult`` or None when the inputs are degenerate (free fall,
        zero field, or field colinear with gravity).
    """
    a = np.asarray(gravity, dtype=np.float64)
    e = np.asarray(geomagnetic, dtype=np.float64)

    if float(np.dot(a, a)) < FREE_FALL_GRAVITY_SQUARED:
        return None

    h = np.cross(e, a)
    norm_h = float(np.linalg.norm(h))
    if norm_h < MIN_EAST_NORM:
        return None

    h = h / norm_h
    a = a / float(np.linalg.norm(a))
    m = np.cross(a, h)

    rotation = np.vstack([h, m, a])

    inv_e = 1.0 / float(np.linalg.norm(e))
    c = float(np.dot(e, m)) * inv_e
    s = float(np.dot(e, a)) * inv_e
    inclination = np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, s],
        [0.0, -s, c],
    ])

    return RotationResult(rotation, inclination)


def get_inclination(inclination: np.ndarray) -> float:
    """Magnetic dip angle in radians from an inclination matrix."""
    return math.atan2(inclination[1, 2], inclination[1, 1])


def remap_coordinate_system(rotation: np.ndarray, x_axis: Axis, y_axis: Axis) -> np.ndarray:
    """Re-express ``rotation`` with device ``x_axis``/``y_axis`` as new X/Y.

    The new Z axis completes a right-handed frame.
    """
    x_axis, y_axis = Axis.parse(x_axis), Axis.parse(y_axis)
    if x_axis.index == y_axis.index:
        raise ValueError(f"Remap axes must differ: {x_axis.label}, {y_axis.label}")

    vx = x_axis.vector
    vy = y_axis.vector
    # out[j][x] = sign_x * in[j][0], likewise for y and z.
    remap = np.vstack([vx, vy, np.cross(vx, vy)])
    return np.asarray(rotation, dtype=np.float64) @ remap


def get_orientation(rotation: np.ndarray) -> OrientationSample:
    """Decompose a rotation matrix into azimuth, pitch and roll."""
    r = rotation
    pitch_sin = float(np.clip(-r[2, 1], -1.0, 1.0))
    return OrientationSample(
        azimuth=math.atan2(r[0, 1], r[1, 1]),
        pitch=math.asin(pitch_sin),
        roll=math.atan2(-r[2, 0], r[2, 2]),
    )


class OrientationEstimator:
    """Gravity + geomagnetic vectors to ``OrientationSample``.

    The default remap (device Z as X, device -Y as Y) matches a head-worn
    display whose screen faces the eye.
    """

    def __init__(self, x_axis: Axis | str = Axis.Z, y_axis: Axis | str = Axis.MINUS_Y):
        self.x_axis = Axis.parse(x_axis)
        self.y_axis = Axis.parse(y_axis)
        if self.x_axis.index == self.y_axis.index:
            raise ValueError(
                f"Remap axes must differ: {self.x_axis.label}, {self.y_axis.label}"
            )
        self.last_inclination: Optional[float] = None

    def estimate(self, gravity, geomagnetic) -> Optional[OrientationSample]:
        """Return the orientation, or None if the inputs are degenerate."""
        result = rotation_matrix(gravity, geomagnetic)
        if result is None:
            logger.debug("Degenerate orientation input, keeping previous sample")
            return None

        self.last_inclination = get_inclination(result.inclination)
        remapped = remap_coordinate_system(result.rotation, self.x_axis, self.y_axis)
        return get_orientation(remapped)
