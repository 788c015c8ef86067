"""Sensor sample types and the sensor-source interface.

The detector never talks to hardware directly. A ``SensorSource`` owns the
platform subscriptions and pushes ``SensorSample`` objects into whatever
callback registered for them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable

import numpy as np


class SensorType(Enum):
    MAGNETIC_FIELD = "magnetic_field"
    ACCELEROMETER = "accelerometer"
    GYROSCOPE = "gyroscope"


class SensorAccuracy(IntEnum):
    """Accuracy flag attached to every sample."""
    UNRELIABLE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class SensorDelay(Enum):
    """Requested delivery rate, fastest first."""
    FASTEST = "fastest"
    GAME = "game"
    UI = "ui"
    NORMAL = "normal"


@dataclass
class SensorSample:
    """One reading from one sensor.

    ``values`` is always coerced to a float64 array. ``timestamp_ns`` comes
    from the monotonic sensor clock.
    """
    sensor: SensorType
    values: np.ndarray
    timestamp_ns: int = 0
    accuracy: SensorAccuracy = SensorAccuracy.HIGH

    def __post_init__(self):
        self.sensor = SensorType(self.sensor)
        self.accuracy = SensorAccuracy(self.accuracy)
        self.values = np.asarray(self.values, dtype=np.float64).reshape(-1)
        self.timestamp_ns = int(self.timestamp_ns)

    @property
    def is_valid(self) -> bool:
        """True if the sample carries exactly three finite components."""
        return self.values.shape == (3,) and bool(np.all(np.isfinite(self.values)))

    @property
    def is_reliable(self) -> bool:
        return self.accuracy != SensorAccuracy.UNRELIABLE

    def to_dict(self) -> dict:
        return {
            "sensor": self.sensor.value,
            "values": self.values.tolist(),
            "timestamp_ns": self.timestamp_ns,
            "accuracy": int(self.accuracy),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SensorSample:
        return cls(
            sensor=SensorType(data["sensor"]),
            values=data["values"],
            timestamp_ns=data.get("timestamp_ns", 0),
            accuracy=SensorAccuracy(data.get("accuracy", SensorAccuracy.HIGH)),
        )


SampleCallback = Callable[[SensorSample], object]


# Sensors the detector subscribes to, in registration order.
REQUIRED_SENSORS = (
    SensorType.MAGNETIC_FIELD,
    SensorType.ACCELEROMETER,
    SensorType.GYROSCOPE,
)


class SensorSource(ABC):
    """Delivers samples for the sensors a consumer registered for."""

    @abstractmethod
    def register(self, callback: SampleCallback, sensor: SensorType, delay: SensorDelay) -> bool:
        """Subscribe ``callback`` to ``sensor``. Returns False if unavailable."""

    @abstractmethod
    def unregister(self, callback: SampleCallback):
        """Drop every subscription held by ``callback``."""


@dataclass
class ManualSensorSource(SensorSource):
    """In-process source that forwards samples pushed with :meth:`emit`.

    Useful for replaying recordings and for tests. Only the sensors listed in
    ``available`` can be registered.
    """
    available: tuple[SensorType, ...] = REQUIRED_SENSORS
    _subscriptions: dict[SensorType, list[tuple[SampleCallback, SensorDelay]]] = field(
        default_factory=dict, repr=False
    )

    def register(self, callback: SampleCallback, sensor: SensorType, delay: SensorDelay) -> bool:
        if sensor not in self.available:
            return False
        self._subscriptions.setdefault(sensor, []).append((callback, delay))
        return True

    def unregister(self, callback: SampleCallback):
        for sensor in list(self._subscriptions):
            remaining = [(cb, d) for cb, d in self._subscriptions[sensor] if cb != callback]
            if remaining:
                self._subscriptions[sensor] = remaining
            else:
                del self._subscriptions[sensor]

    def emit(self, sample: SensorSample) -> int:
        """Deliver ``sample`` to its subscribers. Returns how many received it."""
        subscribers = list(self._subscriptions.get(sample.sensor, []))
        for callback, _delay in subscribers:
            callback(sample)
        return len(subscribers)

    def delay_for(self, sensor: SensorType) -> SensorDelay | None:
        subs = self._subscriptions.get(sensor)
        return subs[0][1] if subs else None

    @property
    def registered_sensors(self) -> list[SensorType]:
        return list(self._subscriptions.keys())
