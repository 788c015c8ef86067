"""Head gesture detector: sensor samples in, gesture events out."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from head_gesture.classifiers import is_worn
from head_gesture.config import DetectorConfig
from head_gesture.listener import EventDispatcher, GestureEvent
from head_gesture.orientation import OrientationEstimator, OrientationSample
from head_gesture.sensors import (
    REQUIRED_SENSORS,
    SensorAccuracy,
    SensorSample,
    SensorSource,
    SensorType,
)
from head_gesture.state_machine import EventKind, GestureState, GestureStateMachine

logger = logging.getLogger("head_gesture.detector")


@dataclass
class SensorCache:
    """Latest raw vectors and the orientation derived from them."""
    magnetic: Optional[np.ndarray] = None
    accelerometer: Optional[np.ndarray] = None
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: OrientationSample = field(default_factory=OrientationSample)

    def clear(self):
        self.magnetic = None
        self.accelerometer = None
        self.angular_velocity = np.zeros(3)
        self.orientation = OrientationSample()


class HeadGestureDetector:
    """Detects head gestures from magnetometer, accelerometer and gyroscope samples.

    Usage:
        detector = HeadGestureDetector(source)
        detector.set_listener(my_listener)
        detector.start()
        ...
        detector.stop()

    Samples can also be pushed directly with :meth:`handle_sample`, which
    returns the events it produced whether or not a listener is attached.
    """

    def __init__(
        self,
        source: Optional[SensorSource] = None,
        config: Optional[DetectorConfig] = None,
        listener=None,
    ):
        self.source = source
        self.config = config or DetectorConfig()

        self.estimator = OrientationEstimator(self.config.remap_x_axis, self.config.remap_y_axis)
        self.machine = GestureStateMachine(
            timeout_ns=self.config.state_timeout_ns,
            stable_threshold=self.config.stable_angular_velocity,
            min_movement=self.config.min_movement_angular_velocity,
        )
        self.cache = SensorCache()
        self._dispatcher = EventDispatcher(listener)
        self._lock = threading.RLock()
        self._started = False

    # Lifecycle

    def start(self) -> list[SensorType]:
        """Subscribe to the required sensors. Returns those actually registered."""
        if self.source is None:
            logger.warning("No sensor source configured, nothing to start")
            return []

        delays = {
            SensorType.MAGNETIC_FIELD: self.config.orientation_sensor_delay,
            SensorType.ACCELEROMETER: self.config.orientation_sensor_delay,
            SensorType.GYROSCOPE: self.config.gyroscope_sensor_delay,
        }
        with self._lock:
            if self._started:
                return []

            registered = []
            for sensor in REQUIRED_SENSORS:
                if self.source.register(self.handle_sample, sensor, delays[sensor]):
                    logger.debug("registered: %s", sensor.value)
                    registered.append(sensor)
                else:
                    logger.warning("Sensor unavailable: %s", sensor.value)

            self._started = True
            return registered

    def stop(self):
        """Release all sensor subscriptions."""
        if self.source is None:
            logger.warning("No sensor source configured, nothing to stop")
            return
        with self._lock:
            self.source.unregister(self.handle_sample)
            self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    def set_listener(self, listener):
        """Replace the listener; ``None`` detaches it."""
        with self._lock:
            self._dispatcher.set_listener(listener)

    @property
    def listener(self):
        return self._dispatcher.listener

    # State

    @property
    def state(self) -> GestureState:
        return self.machine.state

    @property
    def orientation(self) -> OrientationSample:
        return self.cache.orientation

    @property
    def is_worn(self) -> bool:
        o = self.cache.orientation
        return is_worn(o.pitch, o.roll, self.config.max_worn_pitch_deg, self.config.max_worn_roll_deg)

    def reset(self):
        """Forget cached vectors and return the state machine to IDLE."""
        with self._lock:
            self.cache.clear()
            self.machine.reset()
            self.machine.snapshot_azimuth(0.0)

    # Sample handling

    def on_accuracy_changed(self, sensor: SensorType, accuracy: SensorAccuracy):
        logger.debug("Accuracy changed: %s → %s", SensorType(sensor).value, SensorAccuracy(accuracy).name)

    def handle_sample(self, sample: SensorSample) -> list[GestureEvent]:
        """Process one sensor sample and dispatch the resulting events."""
        with self._lock:
            if not sample.is_reliable:
                # Observed only; the sample is still processed.
                logger.debug("Unreliable %s sample", sample.sensor.value)

            if not sample.is_valid:
                logger.warning("Dropping malformed %s sample: %s", sample.sensor.value, sample.values)
                return []

            if sample.sensor == SensorType.MAGNETIC_FIELD:
                self.cache.magnetic = sample.values.copy()
                return []

            if sample.sensor == SensorType.ACCELEROMETER:
                self.cache.accelerometer = sample.values.copy()
                events = self._update_orientation(sample.timestamp_ns)
            else:
                self.cache.angular_velocity = sample.values.copy()
                events = self._update_gesture(sample.values, sample.timestamp_ns)

            for event in events:
                self._dispatcher.dispatch(event)
            return events

    def _update_orientation(self, timestamp_ns: int) -> list[GestureEvent]:
        if self.cache.magnetic is None or self.cache.accelerometer is None:
            return []

        orientation = self.estimator.estimate(self.cache.accelerometer, self.cache.magnetic)
        if orientation is None:
            return []

        self.cache.orientation = orientation
        if not self.is_worn:
            return []

        self.machine.snapshot_azimuth(orientation.azimuth)
        return [GestureEvent(
            kind=EventKind.ORIENTATION_CHANGED,
            timestamp_ns=timestamp_ns,
            orientation=orientation.as_array(),
        )]

    def _update_gesture(self, angular_velocity: np.ndarray, timestamp_ns: int) -> list[GestureEvent]:
        transition = self.machine.step(angular_velocity, timestamp_ns, worn=self.is_worn)
        if transition is None:
            return []

        azimuth_degrees = None
        if transition.event == EventKind.BACK_LOOK_UP:
            azimuth_degrees = math.degrees(self.machine.last_azimuth)

        return [GestureEvent(
            kind=transition.event,
            timestamp_ns=timestamp_ns,
            azimuth_degrees=azimuth_degrees,
        )]
