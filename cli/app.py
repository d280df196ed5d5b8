from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from cli.config import CLIConfig, load_config
from cli.render import render_range, render_result, render_selection, render_timeline
from logging_config import configure_logging
from models.records import DISPLAY_METRICS
from services.exporter import CsvExporter
from services.fetcher import HttpHistoryFetcher
from services.history import HistoryResult, HistoryService, utc_now
from services.selector import Failed, HttpImageLoader
from services.session import HistorySession
from services.transformer import build_default_transformer
from services.validator import build_default_validator
from settings import get_settings

T = TypeVar("T")


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Query, export and browse historical weather station data.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_METRIC_NAMES = [metric.name for metric in DISPLAY_METRICS]


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _build_service(fetcher: HttpHistoryFetcher) -> HistoryService:
    return HistoryService(
        validator=build_default_validator(),
        fetcher=fetcher,
        transformer=build_default_transformer(),
        exporter=CsvExporter(),
        timelapse_interval_ms=get_settings().timelapse_interval_ms,
    )


async def _in_session(config: CLIConfig, work: Callable[[HistorySession], Awaitable[T]]) -> T:
    fetcher = HttpHistoryFetcher(
        base_url=config.base_url, path=config.path, timeout=config.fetch_timeout
    )
    loader = HttpImageLoader(timeout=config.image_timeout)
    try:
        return await work(HistorySession(_build_service(fetcher), loader))
    finally:
        await fetcher.aclose()
        await loader.aclose()


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _submit(session: HistorySession, start: Optional[str], end: Optional[str]) -> Awaitable[Optional[HistoryResult]]:
    if start is None or end is None:
        preset = session.service.default_range()
        start = start or preset.start_iso
        end = end or preset.end_iso
    return session.submit(start, end)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="History source base URL (defaults to HISTORY_API_BASE_URL env).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the history source.",
    ),
    image_timeout: Optional[float] = typer.Option(
        None,
        "--image-timeout",
        help="Seconds to wait when preloading an image.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    ctx.obj = CLIState(
        config=load_config(base_url=base_url, fetch_timeout=timeout, image_timeout=image_timeout)
    )


_START_OPTION = typer.Option(None, "--start", "-s", help="Start date YYYY-MM-DD (defaults to a week ago).")
_END_OPTION = typer.Option(None, "--end", "-e", help="End date YYYY-MM-DD (defaults to today).")


@app.command("range")
def range_command() -> None:
    """Show the range preselected when no dates are given."""
    render_range(build_default_validator().default_range(utc_now()))


@app.command("fetch")
def fetch_command(
    ctx: typer.Context,
    start: Optional[str] = _START_OPTION,
    end: Optional[str] = _END_OPTION,
) -> None:
    """Fetch a range and summarize its channels."""
    state = _get_state(ctx)

    async def work(session: HistorySession) -> tuple[Optional[HistoryResult], Optional[str]]:
        return await _submit(session, start, end), session.error

    result, error = asyncio.run(_in_session(state.config, work))
    if result is None:
        _fail(error or "Failed to fetch historical data")
    render_result(result)


@app.command("export")
def export_command(
    ctx: typer.Context,
    start: Optional[str] = _START_OPTION,
    end: Optional[str] = _END_OPTION,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Destination file or directory (defaults to weather_data_<start>_to_<end>.csv).",
    ),
) -> None:
    """Export a range of raw readings to CSV."""
    state = _get_state(ctx)

    async def work(session: HistorySession):
        if await _submit(session, start, end) is None:
            return None, session.error
        return session.export(), session.error

    artifact, error = asyncio.run(_in_session(state.config, work))
    if artifact is None:
        _fail(error or "No data available to export")

    destination = output or Path(artifact.filename)
    if destination.is_dir():
        destination = destination / artifact.filename
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(artifact.content, encoding="utf-8")
    row_count = artifact.content.count("\n") - 1
    typer.secho(f"Wrote {row_count} rows to {destination}", fg=typer.colors.GREEN)


@app.command("timelapse")
def timelapse_command(
    ctx: typer.Context,
    start: Optional[str] = _START_OPTION,
    end: Optional[str] = _END_OPTION,
) -> None:
    """List the images of a range in playback order."""
    state = _get_state(ctx)

    async def work(session: HistorySession):
        result = await _submit(session, start, end)
        return result, session.error

    result, error = asyncio.run(_in_session(state.config, work))
    if result is None:
        _fail(error or "Failed to fetch historical data")
    render_timeline(result.timeline)


@app.command("image")
def image_command(
    ctx: typer.Context,
    index: int = typer.Argument(..., min=0, help="Reading index within the range."),
    metric: str = typer.Option("temperature", "--metric", "-m", help=f"Channel to select from: {', '.join(_METRIC_NAMES)}."),
    start: Optional[str] = _START_OPTION,
    end: Optional[str] = _END_OPTION,
) -> None:
    """Select one chart point and preload its image."""
    if metric not in _METRIC_NAMES:
        raise typer.BadParameter(f"Unknown metric {metric!r}.", param_hint="--metric")
    state = _get_state(ctx)

    async def work(session: HistorySession):
        if await _submit(session, start, end) is None:
            return None, session.error
        try:
            point = session.point_at(metric, index)
        except IndexError:
            return None, f"Index {index} is outside the {len(session.dataset)} loaded readings."
        outcome = await session.select(point)
        return outcome, session.error

    outcome, error = asyncio.run(_in_session(state.config, work))
    if outcome is None:
        _fail(error or "Failed to fetch historical data")
    render_selection(outcome)
    if isinstance(outcome, Failed):
        _fail(error or "Failed to load the selected image.")
