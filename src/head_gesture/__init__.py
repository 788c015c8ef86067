"""HeadGesture - Head gesture recognition for head-worn IMU devices."""

__version__ = "0.1.0"

from head_gesture.classifiers import is_worn, is_stable, dominant_axis
from head_gesture.config import DetectorConfig
from head_gesture.detector import HeadGestureDetector, SensorCache
from head_gesture.listener import HeadGestureListener, EventDispatcher, GestureEvent
from head_gesture.orientation import Axis, OrientationEstimator, OrientationSample
from head_gesture.recorder import SampleRecorder, SamplePlayer
from head_gesture.sensors import (
    ManualSensorSource,
    SensorAccuracy,
    SensorDelay,
    SensorSample,
    SensorSource,
    SensorType,
)
from head_gesture.state_machine import EventKind, GestureState, GestureStateMachine, Transition, TRANSITIONS
