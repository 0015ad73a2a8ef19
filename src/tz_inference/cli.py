from __future__ import annotations

from pathlib import Path

import typer

from tz_inference.config import DEFAULT_CONFIG_PATH, AppConfig, load_config_or_default
from tz_inference.histogram import ActivityHistogram
from tz_inference.io.read import load_histogram
from tz_inference.logging import configure_logging
from tz_inference.pipeline.run_all import histogram_from_events, run_all
from tz_inference.report.text import render_candidates, render_histogram
from tz_inference.scoring.evaluator import evaluate_candidates
from tz_inference.tzconvert import (
    format_hour,
    format_offset,
    local_to_utc,
    parse_utc_offset,
    utc_to_local,
)

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path | None) -> AppConfig:
    return load_config_or_default(config_path or DEFAULT_CONFIG_PATH)


def _require_input(events: Path | None, histogram_csv: Path | None) -> None:
    if events is None and histogram_csv is None:
        raise typer.BadParameter("Provide --events or --histogram-csv")


def _load_input_histogram(
    events: Path | None, histogram_csv: Path | None, cfg: AppConfig
) -> ActivityHistogram:
    try:
        if histogram_csv is not None:
            return load_histogram(histogram_csv)
        if events is not None:
            return histogram_from_events(events, cfg)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    raise typer.BadParameter("Provide --events or --histogram-csv")


def _parse_offset_option(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        pass
    offset = parse_utc_offset(value)
    if offset is None:
        raise typer.BadParameter(f"Unrecognized offset or timezone: {value}")
    return offset


@app.command()
def detect(
    events: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    histogram_csv: Path | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Pre-bucketed bucket,count CSV used instead of --events.",
    ),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """Rank candidate UTC offsets and write detection artifacts."""
    cfg = _load_app_config(config)
    configure_logging(cfg.logging.level)
    _require_input(events, histogram_csv)
    try:
        run = run_all(events, out, cfg, histogram_path=histogram_csv)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(render_candidates(run.candidates, limit=cfg.outputs.top_n), nl=False)
    typer.echo(f"Artifacts written to {out}")


@app.command()
def histogram(
    events: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    histogram_csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    offset: str | None = typer.Option(
        None, help="Offset or timezone to display (defaults to the best candidate)."
    ),
    color: bool = typer.Option(False, "--color/--no-color"),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """Render the 30-minute activity histogram in a candidate's local time."""
    cfg = _load_app_config(config)
    configure_logging(cfg.logging.level)
    counts = _load_input_histogram(events, histogram_csv, cfg)
    detection = cfg.detection
    candidates = evaluate_candidates(
        counts,
        min_score=0.0 if offset is not None else detection.min_candidate_score,
        sleep_reference_offset=detection.sleep_reference_offset,
        night_start_local=detection.night_start_local,
    )
    candidate = candidates[0] if candidates else None
    if offset is not None:
        wanted = _parse_offset_option(offset)
        candidate = next((item for item in candidates if item.offset == wanted), None)
        if candidate is None:
            raise typer.BadParameter(f"Offset must be between -12 and +14, got {wanted}")
    typer.echo(render_histogram(counts, candidate, color=color), nl=False)


@app.command()
def convert(
    hour: float = typer.Argument(..., help="Clock hour, e.g. 15.5 for 15:30."),
    offset: str = typer.Option(..., help="Offset (-4, UTC-4) or IANA timezone name."),
    to_utc: bool = typer.Option(False, "--to-utc", help="Treat HOUR as local time."),
) -> None:
    """Convert an hour between UTC and a local offset."""
    resolved = _parse_offset_option(offset)
    label = format_offset(resolved)
    if to_utc:
        typer.echo(f"{format_hour(hour)} {label} = {format_hour(local_to_utc(hour, resolved))} UTC")
    else:
        typer.echo(f"{format_hour(hour)} UTC = {format_hour(utc_to_local(hour, resolved))} {label}")
