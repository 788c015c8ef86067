"""Sensor sample recording and replay.

Record real sessions for:
- Reproducible testing without the headset
- Tuning thresholds offline against the same stream
- Demo recordings that play back deterministically
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional

import numpy as np

from head_gesture.sensors import SensorAccuracy, SensorSample, SensorType

logger = logging.getLogger("head_gesture.recorder")

FORMAT_VERSION = 1

_SENSOR_CODES = {sensor: i for i, sensor in enumerate(SensorType)}
_CODE_SENSORS = {i: sensor for sensor, i in _SENSOR_CODES.items()}
_SENSOR_NAMES = {sensor.value for sensor in SensorType}


class SampleRecorder:
    """Records sensor samples to a file.

    Usage:
        recorder = SampleRecorder()
        recorder.start()
        source.register(recorder.add_sample, SensorType.GYROSCOPE, SensorDelay.NORMAL)
        ...
        recorder.stop()
        recorder.save("session.json")
    """

    def __init__(self):
        self._samples: list[SensorSample] = []
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._samples = []
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of samples captured."""
        self._recording = False
        return len(self._samples)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def duration_ns(self) -> int:
        return _duration_ns(self._samples)

    def add_sample(self, sample: SensorSample):
        if not self._recording:
            return
        self._samples.append(sample)

    def extend(self, samples: Iterable[SensorSample]):
        for sample in samples:
            self.add_sample(sample)

    def save(self, path: str | Path):
        """Save recording to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "sample_count": len(self._samples),
            "duration_ns": self.duration_ns,
            "samples": [s.to_dict() for s in self._samples],
        }

        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path) -> Path:
        """Save as compressed numpy ``.npz``. Malformed samples are skipped."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        samples = [s for s in self._samples if s.values.shape == (3,)]
        skipped = len(self._samples) - len(samples)
        if skipped:
            logger.warning("Skipping %d malformed samples in compact save", skipped)

        np.savez_compressed(
            path,
            sensors=np.array([_SENSOR_CODES[s.sensor] for s in samples], dtype=np.int8),
            values=np.array([s.values for s in samples], dtype=np.float64).reshape(-1, 3),
            timestamps=np.array([s.timestamp_ns for s in samples], dtype=np.int64),
            accuracy=np.array([int(s.accuracy) for s in samples], dtype=np.int8),
        )
        return path


class SamplePlayer:
    """Replays a recorded sample stream.

    Usage:
        player = SamplePlayer.load("session.json")
        for sample in player.play():
            detector.handle_sample(sample)
    """

    def __init__(self, samples: list[SensorSample]):
        self._samples = samples

    @classmethod
    def load(cls, path: str | Path) -> SamplePlayer:
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version {version} in {path}")

        samples = []
        unknown: dict[str, int] = {}
        for record in data["samples"]:
            sensor = record.get("sensor")
            if sensor not in _SENSOR_NAMES:
                unknown[str(sensor)] = unknown.get(str(sensor), 0) + 1
                continue
            samples.append(SensorSample.from_dict(record))

        if unknown:
            logger.warning("Skipped samples from unknown sensors in %s: %s", path.name, unknown)
        return cls(samples)

    @classmethod
    def _load_compact(cls, path: Path) -> SamplePlayer:
        data = np.load(path, allow_pickle=False)
        samples = []
        unknown = 0
        for code, values, ts, acc in zip(
            data["sensors"], data["values"], data["timestamps"], data["accuracy"]
        ):
            sensor = _CODE_SENSORS.get(int(code))
            if sensor is None:
                unknown += 1
                continue
            samples.append(SensorSample(
                sensor=sensor,
                values=values,
                timestamp_ns=int(ts),
                accuracy=SensorAccuracy(int(acc)),
            ))

        if unknown:
            logger.warning("Skipped %d samples with unknown sensor codes in %s", unknown, path.name)
        return cls(samples)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def duration_ns(self) -> int:
        return _duration_ns(self._samples)

    def play(self) -> Iterator[SensorSample]:
        """Iterate through all samples instantly (no timing)."""
        for sample in self._samples:
            yield SensorSample(
                sensor=sample.sensor,
                values=sample.values.copy(),
                timestamp_ns=sample.timestamp_ns,
                accuracy=sample.accuracy,
            )

    def play_realtime(self, speed: float = 1.0) -> Iterator[SensorSample]:
        """Replay at original timing, scaled by ``speed`` (2.0 = double speed).

        Raises:
            ValueError: if ``speed`` is not positive.
        """
        if speed <= 0:
            raise ValueError(f"Playback speed must be positive, got {speed}")
        if not self._samples:
            return

        first_ns = self._samples[0].timestamp_ns
        start = time.monotonic()

        for sample in self.play():
            target_time = (sample.timestamp_ns - first_ns) / 1e9 / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield sample

    def get_sample(self, index: int) -> Optional[SensorSample]:
        if 0 <= index < len(self._samples):
            return self._samples[index]
        return None

    def counts(self) -> dict[str, int]:
        """Number of samples per sensor type."""
        result: dict[str, int] = {}
        for s in self._samples:
            result[s.sensor.value] = result.get(s.sensor.value, 0) + 1
        return result


def _duration_ns(samples: list[SensorSample]) -> int:
    if not samples:
        return 0
    return samples[-1].timestamp_ns - samples[0].timestamp_ns
