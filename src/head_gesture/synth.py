"""Synthetic sensor streams for scripted head poses and gestures.

Poses are built in the remapped (head) frame and rotated back into raw
device readings, so feeding them through ``OrientationEstimator`` recovers
the requested azimuth, pitch and roll.
"""

from __future__ import annotations

import math

import numpy as np

from head_gesture.orientation import STANDARD_GRAVITY, Axis
from head_gesture.sensors import SensorSample, SensorType

# Roughly mid-latitude field strength in microtesla.
FIELD_HORIZONTAL = 20.0
FIELD_VERTICAL = 40.0

NS_PER_SECOND = 1_000_000_000

# Gesture name → ordered (axis, sign) movement phases.
GESTURES: dict[str, list[tuple[int, int]]] = {
    "shake_right": [(0, -1), (0, 1)],
    "shake_left": [(0, 1), (0, -1)],
    "nod_down": [(1, 1), (1, -1)],
    "nod_up": [(1, -1), (1, 1)],
}


def _head_rotation(azimuth: float, pitch: float, roll: float) -> np.ndarray:
    ca, sa = math.cos(azimuth), math.sin(azimuth)
    cp, sp = math.cos(-pitch), math.sin(-pitch)
    cr, sr = math.cos(roll), math.sin(roll)
    rz = np.array([[ca, sa, 0.0], [-sa, ca, 0.0], [0.0, 0.0, 1.0]])
    rx = np.array([[1.0, 0.0, 0.0], [0.0, cp, -sp], [0.0, sp, cp]])
    ry = np.array([[cr, 0.0, sr], [0.0, 1.0, 0.0], [-sr, 0.0, cr]])
    return rz @ rx @ ry


def pose_vectors(
    azimuth_deg: float = 0.0,
    pitch_deg: float = 0.0,
    roll_deg: float = 0.0,
    x_axis: Axis | str = Axis.Z,
    y_axis: Axis | str = Axis.MINUS_Y,
) -> tuple[np.ndarray, np.ndarray]:
    """Raw (gravity, geomagnetic) device readings for a head pose."""
    head = _head_rotation(math.radians(azimuth_deg), math.radians(pitch_deg), math.radians(roll_deg))

    vx = Axis.parse(x_axis).vector
    vy = Axis.parse(y_axis).vector
    remap = np.vstack([vx, vy, np.cross(vx, vy)])

    gravity_world = np.array([0.0, 0.0, STANDARD_GRAVITY])
    field_world = np.array([0.0, FIELD_HORIZONTAL, -FIELD_VERTICAL])

    gravity = remap @ head.T @ gravity_world
    geomagnetic = remap @ head.T @ field_world
    return gravity, geomagnetic


def pose_samples(
    azimuth_deg: float = 0.0,
    pitch_deg: float = 0.0,
    roll_deg: float = 0.0,
    timestamp_ns: int = 0,
) -> list[SensorSample]:
    """Magnetometer then accelerometer sample for a head pose."""
    gravity, geomagnetic = pose_vectors(azimuth_deg, pitch_deg, roll_deg)
    return [
        SensorSample(SensorType.MAGNETIC_FIELD, geomagnetic, timestamp_ns),
        SensorSample(SensorType.ACCELEROMETER, gravity, timestamp_ns),
    ]


def gyro_samples(
    velocity,
    start_ns: int,
    duration_ns: int,
    rate_hz: float = 50.0,
) -> list[SensorSample]:
    """Constant angular velocity for ``duration_ns`` at ``rate_hz``."""
    step = int(NS_PER_SECOND / rate_hz)
    count = max(1, duration_ns // step)
    v = np.asarray(velocity, dtype=np.float64)
    return [
        SensorSample(SensorType.GYROSCOPE, v, start_ns + i * step)
        for i in range(count)
    ]


def gesture_samples(
    name: str,
    azimuth_deg: float = 0.0,
    start_ns: int = 0,
    rate_hz: float = 50.0,
    speed: float = 1.5,
    phase_ns: int = 150_000_000,
    pause_ns: int = 100_000_000,
) -> list[SensorSample]:
    """A worn pose followed by a scripted gesture.

    Each movement phase is a burst of ``speed`` rad/s on one axis separated
    by still periods.

    Raises:
        ValueError: if ``name`` is not in ``GESTURES``.
    """
    if name not in GESTURES:
        raise ValueError(f"Unknown gesture {name!r}, expected one of {sorted(GESTURES)}")

    samples = pose_samples(azimuth_deg=azimuth_deg, timestamp_ns=start_ns)
    t = start_ns
    still = np.zeros(3)

    samples += gyro_samples(still, t, pause_ns, rate_hz)
    t += pause_ns
    for axis, sign in GESTURES[name]:
        velocity = np.zeros(3)
        velocity[axis] = sign * speed
        samples += gyro_samples(velocity, t, phase_ns, rate_hz)
        t += phase_ns
        samples += gyro_samples(still, t, pause_ns, rate_hz)
        t += pause_ns

    return samples
