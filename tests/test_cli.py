"""Tests for the head-gesture command line."""

import json

import yaml
from typer.testing import CliRunner

from head_gesture.cli import app

runner = CliRunner()


class TestSynthesize:
    def test_writes_json(self, tmp_path):
        out = tmp_path / "shake.json"
        result = runner.invoke(app, ["synthesize", "shake_right", "-o", str(out)])
        assert result.exit_code == 0
        assert out.exists()
        assert json.loads(out.read_text())["sample_count"] > 0

    def test_writes_compact(self, tmp_path):
        result = runner.invoke(app, ["synthesize", "nod_up", "-o", str(tmp_path / "nod"), "--compact"])
        assert result.exit_code == 0
        assert (tmp_path / "nod.npz").exists()

    def test_unknown_gesture(self, tmp_path):
        result = runner.invoke(app, ["synthesize", "wave", "-o", str(tmp_path / "x.json")])
        assert result.exit_code == 1


class TestReplay:
    def test_replay_shake(self, tmp_path):
        out = tmp_path / "shake.json"
        runner.invoke(app, ["synthesize", "shake_right", "-o", str(out)])

        result = runner.invoke(app, ["replay", str(out)])
        assert result.exit_code == 0
        assert "shake_to_right" in result.output
        assert "shake_back_to_left" in result.output
        assert "2 gestures detected" in result.output

    def test_replay_json_lines(self, tmp_path):
        out = tmp_path / "nod.json"
        runner.invoke(app, ["synthesize", "nod_down", "-o", str(out), "--azimuth", "30"])

        result = runner.invoke(app, ["replay", str(out), "--json"])
        assert result.exit_code == 0
        events = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert [e["event"] for e in events] == ["look_down", "back_look_up"]
        assert abs(events[1]["azimuth_degrees"] - 30.0) < 1e-6

    def test_replay_with_orientation(self, tmp_path):
        out = tmp_path / "nod.json"
        runner.invoke(app, ["synthesize", "nod_up", "-o", str(out)])
        result = runner.invoke(app, ["replay", str(out), "--json", "--orientation"])
        events = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert events[0]["event"] == "orientation_changed"

    def test_replay_with_config(self, tmp_path):
        out = tmp_path / "shake.json"
        runner.invoke(app, ["synthesize", "shake_right", "-o", str(out)])
        cfg = tmp_path / "cfg.yml"
        cfg.write_text(yaml.dump({"detector": {"min_movement_angular_velocity": 2.0}}))

        result = runner.invoke(app, ["replay", str(out), "--config", str(cfg)])
        assert result.exit_code == 0
        assert "0 gestures detected" in result.output

    def test_replay_skips_foreign_sensors(self, tmp_path):
        out = tmp_path / "shake.json"
        runner.invoke(app, ["synthesize", "shake_right", "-o", str(out)])
        data = json.loads(out.read_text())
        data["samples"].insert(0, {"sensor": "light", "values": [300.0, 0.0, 0.0], "timestamp_ns": 0})
        data["samples"].append({"sensor": "pressure", "values": [1013.0, 0.0, 0.0], "timestamp_ns": 0})
        out.write_text(json.dumps(data))

        result = runner.invoke(app, ["replay", str(out)])
        assert result.exit_code == 0
        assert "2 gestures detected" in result.output

    def test_replay_prints_sensor_counts(self, tmp_path):
        out = tmp_path / "nod.json"
        runner.invoke(app, ["synthesize", "nod_up", "-o", str(out)])
        result = runner.invoke(app, ["replay", str(out)])
        assert "magnetic_field: 1" in result.output
        assert "accelerometer: 1" in result.output

    def test_replay_realtime(self, tmp_path):
        out = tmp_path / "shake.json"
        runner.invoke(app, ["synthesize", "shake_left", "-o", str(out)])
        result = runner.invoke(app, ["replay", str(out), "--realtime", "--speed", "50"])
        assert result.exit_code == 0
        assert "shake_back_to_right" in result.output

    def test_replay_rejects_zero_speed(self, tmp_path):
        out = tmp_path / "shake.json"
        runner.invoke(app, ["synthesize", "shake_right", "-o", str(out)])
        result = runner.invoke(app, ["replay", str(out), "--realtime", "--speed", "0"])
        assert result.exit_code == 2

    def test_replay_corrupt_recording(self, tmp_path):
        out = tmp_path / "broken.json"
        out.write_text("{not json")
        result = runner.invoke(app, ["replay", str(out)])
        assert result.exit_code == 1

    def test_replay_missing_file(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_replay_bad_config(self, tmp_path):
        out = tmp_path / "shake.json"
        runner.invoke(app, ["synthesize", "shake_right", "-o", str(out)])
        cfg = tmp_path / "cfg.yml"
        cfg.write_text("detector:\n  state_timeout_ns: -5\n")
        result = runner.invoke(app, ["replay", str(out), "--config", str(cfg)])
        assert result.exit_code == 1


class TestConfigCommand:
    def test_prints_defaults(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["detector"]["min_movement_angular_velocity"] == 1.0

    def test_writes_file(self, tmp_path):
        out = tmp_path / "cfg.yml"
        result = runner.invoke(app, ["config", "-o", str(out)])
        assert result.exit_code == 0
        assert yaml.safe_load(out.read_text())["detector"]["remap_y_axis"] == "-y"

    def test_validates_existing(self, tmp_path):
        cfg = tmp_path / "cfg.yml"
        cfg.write_text("detector:\n  remap_x_axis: y\n  remap_y_axis: y\n")
        result = runner.invoke(app, ["config", "--from", str(cfg)])
        assert result.exit_code == 1
