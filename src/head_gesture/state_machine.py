"""Head gesture state machine.

Turns dominant-axis angular-velocity bursts into gesture transitions.
A shake or nod is two transitions: the movement away from neutral and the
movement back. Both must happen within ``timeout_ns`` of each other or the
machine falls back to IDLE on the next gyroscope sample.

The transition table is plain data keyed by ``(from_state, axis, sign)``::

    (IDLE, 0, -1)           → SHAKE_TO_RIGHT
    (SHAKE_TO_LEFT, 0, -1)  → SHAKE_BACK_TO_RIGHT
    (IDLE, 0, +1)           → SHAKE_TO_LEFT
    (SHAKE_TO_RIGHT, 0, +1) → SHAKE_BACK_TO_LEFT
    (IDLE, 1, -1)           → GO_UP
    (GO_DOWN, 1, -1)        → BACK_UP
    (IDLE, 1, +1)           → GO_DOWN
    (GO_UP, 1, +1)          → BACK_DOWN

Anything else, including every z-axis movement, is absorbed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from head_gesture.classifiers import STABLE_ANGULAR_VELOCITY, dominant_axis, is_stable

logger = logging.getLogger("head_gesture.state_machine")

STATE_TIMEOUT_NS = 1_000_000_000
MIN_MOVEMENT_ANGULAR_VELOCITY = 1.00  # rad/s


class GestureState(Enum):
    IDLE = "idle"
    SHAKE_TO_RIGHT = "shake_to_right"
    SHAKE_BACK_TO_LEFT = "shake_back_to_left"
    SHAKE_TO_LEFT = "shake_to_left"
    SHAKE_BACK_TO_RIGHT = "shake_back_to_right"
    GO_DOWN = "go_down"
    BACK_UP = "back_up"
    GO_UP = "go_up"
    BACK_DOWN = "back_down"


class EventKind(Enum):
    """One member per listener callback; the value is the callback name."""
    ORIENTATION_CHANGED = "on_orientation_changed"
    LOOK_UP = "on_look_up"
    LOOK_DOWN = "on_look_down"
    BACK_LOOK_UP = "on_back_look_up"
    BACK_LOOK_DOWN = "on_back_look_down"
    SHAKE_TO_LEFT = "on_shake_to_left"
    SHAKE_TO_RIGHT = "on_shake_to_right"
    SHAKE_BACK_TO_LEFT = "on_shake_back_to_left"
    SHAKE_BACK_TO_RIGHT = "on_shake_back_to_right"

    @property
    def callback(self) -> str:
        return self.value


TRANSITIONS: dict[tuple[GestureState, int, int], tuple[GestureState, EventKind]] = {
    # Yaw (axis 0): shakes
    (GestureState.IDLE, 0, -1): (GestureState.SHAKE_TO_RIGHT, EventKind.SHAKE_TO_RIGHT),
    (GestureState.SHAKE_TO_LEFT, 0, -1): (GestureState.SHAKE_BACK_TO_RIGHT, EventKind.SHAKE_BACK_TO_RIGHT),
    (GestureState.IDLE, 0, 1): (GestureState.SHAKE_TO_LEFT, EventKind.SHAKE_TO_LEFT),
    (GestureState.SHAKE_TO_RIGHT, 0, 1): (GestureState.SHAKE_BACK_TO_LEFT, EventKind.SHAKE_BACK_TO_LEFT),
    # Pitch (axis 1): nods
    (GestureState.IDLE, 1, -1): (GestureState.GO_UP, EventKind.LOOK_UP),
    (GestureState.GO_DOWN, 1, -1): (GestureState.BACK_UP, EventKind.BACK_LOOK_UP),
    (GestureState.IDLE, 1, 1): (GestureState.GO_DOWN, EventKind.LOOK_DOWN),
    (GestureState.GO_UP, 1, 1): (GestureState.BACK_DOWN, EventKind.BACK_LOOK_DOWN),
}


@dataclass
class Transition:
    """An executed state change."""
    from_state: GestureState
    to_state: GestureState
    event: EventKind
    axis: int
    timestamp_ns: int


def lookup_transition(
    state: GestureState, axis: int, value: float, min_movement: float = MIN_MOVEMENT_ANGULAR_VELOCITY
) -> Optional[tuple[GestureState, EventKind]]:
    """Find the table entry for a movement, or None if it is absorbed."""
    if value < -min_movement:
        sign = -1
    elif value > min_movement:
        sign = 1
    else:
        return None
    return TRANSITIONS.get((state, axis, sign))


class GestureStateMachine:
    """Tracks the current gesture state across gyroscope samples.

    ``last_azimuth`` is the azimuth (radians) captured at the most recent
    worn orientation update; it is reported by BACK_LOOK_UP.
    """

    def __init__(
        self,
        timeout_ns: int = STATE_TIMEOUT_NS,
        stable_threshold: float = STABLE_ANGULAR_VELOCITY,
        min_movement: float = MIN_MOVEMENT_ANGULAR_VELOCITY,
    ):
        self.timeout_ns = timeout_ns
        self.stable_threshold = stable_threshold
        self.min_movement = min_movement

        self.state = GestureState.IDLE
        self.last_transition_ns: Optional[int] = None
        self.last_azimuth = 0.0

    def snapshot_azimuth(self, azimuth: float):
        self.last_azimuth = float(azimuth)

    def check_timeout(self, timestamp_ns: int) -> bool:
        """Fall back to IDLE if the current gesture expired. Returns True on reset."""
        if self.state == GestureState.IDLE:
            return False

        if self.last_transition_ns is not None and timestamp_ns - self.last_transition_ns <= self.timeout_ns:
            return False

        logger.debug("State timeout in %s, back to idle", self.state.value)
        self.state = GestureState.IDLE
        self.last_transition_ns = timestamp_ns
        return True

    def step(self, angular_velocity, timestamp_ns: int, worn: bool = True) -> Optional[Transition]:
        """Process one gyroscope sample.

        Runs the timeout check, then the wearing and stability gates, then
        the transition table on the dominant axis.

        Returns:
            The executed ``Transition`` or None if the sample was absorbed.
        """
        self.check_timeout(timestamp_ns)

        if not worn:
            logger.debug("Device not worn, ignoring gyroscope sample")
            return None

        v = np.asarray(angular_velocity, dtype=np.float64)
        if is_stable(v, self.stable_threshold):
            return None

        axis = dominant_axis(v)
        entry = lookup_transition(self.state, axis, float(v[axis]), self.min_movement)
        if entry is None:
            return None

        to_state, event = entry
        transition = Transition(
            from_state=self.state,
            to_state=to_state,
            event=event,
            axis=axis,
            timestamp_ns=timestamp_ns,
        )
        self.state = to_state
        self.last_transition_ns = timestamp_ns
        logger.info("%s → %s", transition.from_state.value, to_state.value)
        return transition

    def reset(self):
        """Back to IDLE with no transition history."""
        self.state = GestureState.IDLE
        self.last_transition_ns = None
