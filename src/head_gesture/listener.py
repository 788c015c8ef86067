"""Gesture events and listener dispatch.

A listener is any object with the nine ``on_*`` callbacks. Subclass
``HeadGestureListener`` and override what you need:

    class Printer(HeadGestureListener):
        def on_shake_to_right(self):
            print("shake right")

Or use the decorator API:

    listener = HeadGestureListener()

    @listener.handler(EventKind.BACK_LOOK_UP)
    def on_back(event):
        print(event.azimuth_degrees)

At most one listener is attached to a dispatcher at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from head_gesture.state_machine import EventKind

logger = logging.getLogger("head_gesture.listener")


@dataclass
class GestureEvent:
    """A dispatched event.

    ``azimuth_degrees`` is set only for BACK_LOOK_UP, ``orientation`` only for
    ORIENTATION_CHANGED (azimuth, pitch, roll in radians).
    """
    kind: EventKind
    timestamp_ns: int = 0
    azimuth_degrees: Optional[float] = None
    orientation: Optional[np.ndarray] = None

    @property
    def name(self) -> str:
        return self.kind.name.lower()

    def callback_args(self) -> tuple:
        if self.kind == EventKind.ORIENTATION_CHANGED:
            return (self.orientation,)
        if self.kind == EventKind.BACK_LOOK_UP:
            return (self.azimuth_degrees,)
        return ()

    def to_dict(self) -> dict:
        data = {"event": self.name, "timestamp_ns": self.timestamp_ns}
        if self.azimuth_degrees is not None:
            data["azimuth_degrees"] = self.azimuth_degrees
        if self.orientation is not None:
            data["orientation"] = [float(x) for x in self.orientation]
        return data


class HeadGestureListener:
    """Callback set for head gesture events.

    Every callback forwards to handlers registered with :meth:`handler`,
    so overriding is optional.
    """

    def __init__(self):
        self._handlers: dict[EventKind, list[Callable[[GestureEvent], None]]] = {}

    def on_orientation_changed(self, orientation: np.ndarray):
        self._fire(GestureEvent(EventKind.ORIENTATION_CHANGED, orientation=orientation))

    def on_look_up(self):
        self._fire(GestureEvent(EventKind.LOOK_UP))

    def on_look_down(self):
        self._fire(GestureEvent(EventKind.LOOK_DOWN))

    def on_back_look_up(self, initial_azimuth_degrees: float):
        self._fire(GestureEvent(EventKind.BACK_LOOK_UP, azimuth_degrees=initial_azimuth_degrees))

    def on_back_look_down(self):
        self._fire(GestureEvent(EventKind.BACK_LOOK_DOWN))

    def on_shake_to_left(self):
        self._fire(GestureEvent(EventKind.SHAKE_TO_LEFT))

    def on_shake_to_right(self):
        self._fire(GestureEvent(EventKind.SHAKE_TO_RIGHT))

    def on_shake_back_to_left(self):
        self._fire(GestureEvent(EventKind.SHAKE_BACK_TO_LEFT))

    def on_shake_back_to_right(self):
        self._fire(GestureEvent(EventKind.SHAKE_BACK_TO_RIGHT))

    def handler(self, kind: EventKind):
        """Decorator to register a handler for one event kind."""
        def decorator(fn: Callable[[GestureEvent], None]):
            self._handlers.setdefault(kind, []).append(fn)
            return fn
        return decorator

    def _fire(self, event: GestureEvent):
        for fn in self._handlers.get(event.kind, []):
            fn(event)


class EventDispatcher:
    """Delivers events to the single registered listener."""

    def __init__(self, listener=None):
        self._listener = listener

    @property
    def listener(self):
        return self._listener

    def set_listener(self, listener):
        """Replace the listener. ``None`` detaches it."""
        if self._listener is not None and listener is not None and listener is not self._listener:
            logger.debug("Replacing listener %r", self._listener)
        self._listener = listener

    def dispatch(self, event: GestureEvent) -> bool:
        """Invoke the matching callback. Returns True if a listener received it."""
        listener = self._listener
        if listener is None:
            return False

        callback = getattr(listener, event.kind.callback, None)
        if callback is None:
            logger.warning("Listener %r has no %s callback", listener, event.kind.callback)
            return False

        try:
            callback(*event.callback_args())
        except Exception as e:
            logger.error("Listener %s error: %s", event.kind.callback, e)
            return False
        return True
