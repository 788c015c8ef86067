"""Integration tests: synthetic streams through recorder, player and detector."""

import pytest

from head_gesture.detector import HeadGestureDetector
from head_gesture.recorder import SamplePlayer, SampleRecorder
from head_gesture.sensors import ManualSensorSource
from head_gesture.state_machine import EventKind, GestureState
from head_gesture.synth import gesture_samples

SECOND = 1_000_000_000


def run(samples, detector=None):
    detector = detector or HeadGestureDetector()
    events = []
    for s in samples:
        events.extend(detector.handle_sample(s))
    return detector, [e for e in events if e.kind != EventKind.ORIENTATION_CHANGED]


class TestScriptedGestures:
    @pytest.mark.parametrize("name,expected", [
        ("shake_right", [EventKind.SHAKE_TO_RIGHT, EventKind.SHAKE_BACK_TO_LEFT]),
        ("shake_left", [EventKind.SHAKE_TO_LEFT, EventKind.SHAKE_BACK_TO_RIGHT]),
        ("nod_down", [EventKind.LOOK_DOWN, EventKind.BACK_LOOK_UP]),
        ("nod_up", [EventKind.LOOK_UP, EventKind.BACK_LOOK_DOWN]),
    ])
    def test_each_gesture(self, name, expected):
        _, events = run(gesture_samples(name))
        assert [e.kind for e in events] == expected

    def test_nod_down_reports_azimuth(self):
        _, events = run(gesture_samples("nod_down", azimuth_deg=-60.0))
        assert events[-1].azimuth_degrees == pytest.approx(-60.0, abs=1e-6)

    def test_slow_movement_ignored(self):
        _, events = run(gesture_samples("shake_right", speed=0.8))
        assert events == []

    def test_unknown_gesture(self):
        with pytest.raises(ValueError):
            gesture_samples("wave")


class TestGestureChains:
    def test_second_gesture_after_timeout(self):
        samples = gesture_samples("shake_right") + gesture_samples("nod_up", start_ns=2 * SECOND)
        det, events = run(samples)
        assert [e.kind for e in events] == [
            EventKind.SHAKE_TO_RIGHT,
            EventKind.SHAKE_BACK_TO_LEFT,
            EventKind.LOOK_UP,
            EventKind.BACK_LOOK_DOWN,
        ]
        assert det.state == GestureState.BACK_DOWN

    def test_second_gesture_too_soon_is_absorbed(self):
        # The first gesture's end state has not expired yet.
        samples = gesture_samples("shake_right") + gesture_samples("nod_up", start_ns=600_000_000)
        _, events = run(samples)
        assert [e.kind for e in events] == [EventKind.SHAKE_TO_RIGHT, EventKind.SHAKE_BACK_TO_LEFT]


class TestRecordReplay:
    def test_json_roundtrip_gives_same_events(self, tmp_path):
        samples = gesture_samples("nod_down", azimuth_deg=75.0)
        rec = SampleRecorder()
        rec.start()
        rec.extend(samples)
        rec.stop()
        rec.save(tmp_path / "nod.json")

        _, direct = run(samples)
        _, replayed = run(SamplePlayer.load(tmp_path / "nod.json").play())
        assert [e.kind for e in replayed] == [e.kind for e in direct]
        assert replayed[-1].azimuth_degrees == pytest.approx(75.0, abs=1e-6)

    def test_compact_replay_through_source(self, tmp_path):
        rec = SampleRecorder()
        rec.start()
        rec.extend(gesture_samples("shake_left"))
        path = rec.save_compact(tmp_path / "shake")

        source = ManualSensorSource()
        det = HeadGestureDetector(source)
        det.start()
        states = []
        for sample in SamplePlayer.load(path).play():
            source.emit(sample)
            states.append(det.state)
        det.stop()

        assert det.state == GestureState.SHAKE_BACK_TO_RIGHT
        assert GestureState.SHAKE_TO_LEFT in states
