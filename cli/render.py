from __future__ import annotations

import math
from typing import Any, Iterable

import typer

from models.dataset import ImageTimeline
from models.records import DISPLAY_METRICS, DateRange
from services.exporter import format_instant
from services.history import HistoryResult
from services.selector import Cleared, Displayed, Failed, SelectionOutcome, Superseded


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_range(date_range: DateRange) -> None:
    echo_heading("Date Range")
    echo_key_values(
        [
            ("start_date", date_range.start_iso),
            ("end_date", date_range.end_iso),
            ("same_day", date_range.same_day),
            ("tick_format", date_range.tick_format),
        ]
    )


def render_result(result: HistoryResult) -> None:
    render_range(result.date_range)
    dataset = result.dataset

    typer.echo()
    echo_heading("Readings")
    echo_key_values(
        [
            ("row_count", len(dataset)),
            ("first", format_instant(dataset.times[0]) if dataset.times else "--"),
            ("last", format_instant(dataset.times[-1]) if dataset.times else "--"),
            ("images", len(result.timeline)),
        ]
    )

    typer.echo()
    echo_heading("Channels")
    for metric in DISPLAY_METRICS:
        values = [value for value in dataset.values.get(metric.name, ()) if math.isfinite(value)]
        if values:
            typer.echo(f"  - {metric.label}: min={min(values):.2f} max={max(values):.2f}")
        else:
            typer.echo(f"  - {metric.label}: no numeric values")


def render_timeline(timeline: ImageTimeline) -> None:
    echo_heading("Timelapse")
    echo_key_values([("frames", len(timeline)), ("interval_ms", timeline.interval_ms)])
    for position, frame in enumerate(timeline.frames):
        typer.echo(f"  {position:>4}  {frame}")


def render_selection(outcome: SelectionOutcome) -> None:
    if isinstance(outcome, Displayed):
        typer.secho(f"Displaying {outcome.image_ref}", fg=typer.colors.GREEN)
    elif isinstance(outcome, Cleared):
        typer.echo("No image recorded for this reading.")
    elif isinstance(outcome, Failed):
        typer.secho(f"Could not load {outcome.image_ref}: {outcome.reason}", fg=typer.colors.RED, err=True)
    elif isinstance(outcome, Superseded):
        typer.echo(f"Selection of {outcome.image_ref} was superseded.")
