"""Head gesture command line.

Usage:
    head-gesture replay       Run a recorded sample stream through the detector
    head-gesture synthesize   Write a recording of a scripted gesture
    head-gesture config       Print or write the default detector config
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml

app = typer.Typer(
    name="head-gesture",
    help="Head gesture detection from head-worn IMU samples.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to a .json or .npz recording"),
    config: Optional[str] = typer.Option(None, help="Path to detector YAML config"),
    realtime: bool = typer.Option(False, help="Play at original timing"),
    speed: float = typer.Option(1.0, min=0.01, help="Playback speed multiplier"),
    as_json: bool = typer.Option(False, "--json", help="Print events as JSON lines"),
    orientation: bool = typer.Option(False, help="Also print orientation updates"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Replay a recorded sample stream and print the detected gestures."""
    from head_gesture.config import DetectorConfig
    from head_gesture.detector import HeadGestureDetector
    from head_gesture.recorder import SamplePlayer
    from head_gesture.state_machine import EventKind

    _setup_logging(log_level)

    path = Path(recording)
    if not path.exists():
        typer.echo(f"Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    detector_config = None
    if config:
        try:
            detector_config = DetectorConfig.from_yaml(config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            typer.echo(f"Invalid config {config}: {e}", err=True)
            raise typer.Exit(1)

    try:
        player = SamplePlayer.load(path)
    except (OSError, ValueError, KeyError) as e:
        typer.echo(f"Invalid recording {recording}: {e}", err=True)
        raise typer.Exit(1)

    if not as_json:
        typer.echo(f"Replaying {path.name} ({player.sample_count} samples, {player.duration_ns / 1e9:.2f}s)")
        for sensor, count in sorted(player.counts().items()):
            typer.echo(f"  {sensor}: {count}")

    detector = HeadGestureDetector(config=detector_config)
    gesture_count = 0

    samples = player.play_realtime(speed=speed) if realtime else player.play()
    for sample in samples:
        for event in detector.handle_sample(sample):
            if event.kind == EventKind.ORIENTATION_CHANGED:
                if not orientation:
                    continue
            else:
                gesture_count += 1

            if as_json:
                typer.echo(json.dumps(event.to_dict()))
            elif event.azimuth_degrees is not None:
                typer.echo(f"  {event.timestamp_ns / 1e9:8.3f}s  {event.name} (azimuth {event.azimuth_degrees:.1f}°)")
            else:
                typer.echo(f"  {event.timestamp_ns / 1e9:8.3f}s  {event.name}")

    if not as_json:
        typer.echo(f"Replay complete. {gesture_count} gestures detected, final state: {detector.state.value}")


@app.command()
def synthesize(
    gesture: str = typer.Argument(..., help="shake_right, shake_left, nod_down or nod_up"),
    output: str = typer.Option("recording.json", "-o", help="Output file path"),
    azimuth: float = typer.Option(0.0, help="Head azimuth in degrees"),
    rate: float = typer.Option(50.0, help="Gyroscope rate in Hz"),
    speed: float = typer.Option(1.5, help="Angular speed of each movement in rad/s"),
    compact: bool = typer.Option(False, help="Save in compact .npz format"),
):
    """Write a recording of a scripted gesture."""
    from head_gesture.recorder import SampleRecorder
    from head_gesture.synth import GESTURES, gesture_samples

    if gesture not in GESTURES:
        typer.echo(f"Unknown gesture {gesture!r}. Choose from: {', '.join(sorted(GESTURES))}", err=True)
        raise typer.Exit(1)

    recorder = SampleRecorder()
    recorder.start()
    recorder.extend(gesture_samples(gesture, azimuth_deg=azimuth, rate_hz=rate, speed=speed))
    recorder.stop()

    if compact:
        path = recorder.save_compact(output)
    else:
        path = Path(output)
        recorder.save(path)

    typer.echo(f"Saved {recorder.sample_count} samples to {path}")


@app.command("config")
def show_config(
    output: Optional[str] = typer.Option(None, "-o", help="Write to this file instead of stdout"),
    source: Optional[str] = typer.Option(None, "--from", help="Load and validate an existing config first"),
):
    """Print or write the detector configuration."""
    from head_gesture.config import DetectorConfig

    try:
        cfg = DetectorConfig.from_yaml(source) if source else DetectorConfig()
    except (OSError, ValueError, yaml.YAMLError) as e:
        typer.echo(f"Invalid config {source}: {e}", err=True)
        raise typer.Exit(1)

    if output:
        cfg.to_yaml(output)
        typer.echo(f"Config written to {output}")
    else:
        typer.echo(cfg.dumps(), nl=False)


def main():
    app()


if __name__ == "__main__":
    main()
