"""Detector configuration, loadable from YAML."""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path

import yaml

from head_gesture.classifiers import MAX_WORN_PITCH_DEG, MAX_WORN_ROLL_DEG, STABLE_ANGULAR_VELOCITY
from head_gesture.orientation import Axis
from head_gesture.sensors import SensorDelay
from head_gesture.state_machine import MIN_MOVEMENT_ANGULAR_VELOCITY, STATE_TIMEOUT_NS


@dataclass
class DetectorConfig:
    state_timeout_ns: int = STATE_TIMEOUT_NS
    stable_angular_velocity: float = STABLE_ANGULAR_VELOCITY
    min_movement_angular_velocity: float = MIN_MOVEMENT_ANGULAR_VELOCITY
    max_worn_pitch_deg: float = MAX_WORN_PITCH_DEG
    max_worn_roll_deg: float = MAX_WORN_ROLL_DEG
    remap_x_axis: str = "z"
    remap_y_axis: str = "-y"
    orientation_delay: str = SensorDelay.FASTEST.value
    gyroscope_delay: str = SensorDelay.NORMAL.value

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ValueError on out-of-range or unparseable values."""
        if int(self.state_timeout_ns) <= 0:
            raise ValueError("state_timeout_ns must be positive")
        self.state_timeout_ns = int(self.state_timeout_ns)

        for name in (
            "stable_angular_velocity",
            "min_movement_angular_velocity",
            "max_worn_pitch_deg",
            "max_worn_roll_deg",
        ):
            value = float(getattr(self, name))
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
            setattr(self, name, value)

        if self.min_movement_angular_velocity < self.stable_angular_velocity:
            raise ValueError("min_movement_angular_velocity must not be below stable_angular_velocity")

        x_axis = Axis.parse(self.remap_x_axis)
        y_axis = Axis.parse(self.remap_y_axis)
        if x_axis.index == y_axis.index:
            raise ValueError(f"Remap axes must differ: {x_axis.label}, {y_axis.label}")
        self.remap_x_axis = x_axis.label
        self.remap_y_axis = y_axis.label

        SensorDelay(self.orientation_delay)
        SensorDelay(self.gyroscope_delay)

    @property
    def orientation_sensor_delay(self) -> SensorDelay:
        return SensorDelay(self.orientation_delay)

    @property
    def gyroscope_sensor_delay(self) -> SensorDelay:
        return SensorDelay(self.gyroscope_delay)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> DetectorConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    @classmethod
    def from_yaml(cls, path: str | Path) -> DetectorConfig:
        """Load from a YAML file. A top-level ``detector:`` section is optional."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}")
        if isinstance(data.get("detector"), dict):
            data = data["detector"]
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump({"detector": self.to_dict()}, f, default_flow_style=False, sort_keys=False)

    def dumps(self) -> str:
        return yaml.dump({"detector": self.to_dict()}, default_flow_style=False, sort_keys=False)
