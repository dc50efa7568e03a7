"""LatencyProbe CLI implementation.

Provides the command-line interface for measuring latency to a host.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from latencyprobe.analysis.statistics import chart_series
from latencyprobe.config import CLIOverrides, ConfigLoader
from latencyprobe.exceptions import LatencyProbeError
from latencyprobe.models.engine import EngineEvent, EngineEventType, EngineSnapshot, RunState
from latencyprobe.models.probe import ProbeMeasurement, ProbeOutcome, ProbeTechnique
from latencyprobe.probes.executor import ProbeExecutor
from latencyprobe.scheduler.scheduler import ProbeScheduler

SPARK_CHARS = "▁▂▃▄▅▆▇█"

TECHNIQUE_LABELS = {
    ProbeTechnique.SECURE_GET: "HTTPS GET",
    ProbeTechnique.PLAIN_GET: "HTTP GET",
}

app = typer.Typer(
    name="latencyprobe",
    help="Measure round-trip latency to a host.",
    no_args_is_help=True,
)

console = Console()


@dataclass
class RunSettings:
    """Resolved settings for a live run."""

    host: str
    technique: ProbeTechnique
    secure_context: bool
    rows: int
    count: int | None
    duration: float | None


def _configure_logging(level: str) -> None:
    """Route log records through rich so they render above the live view."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _sparkline(values: list[int]) -> str:
    """Render values as a one-line bar chart."""
    low, high = min(values), max(values)
    if high == low:
        return SPARK_CHARS[len(SPARK_CHARS) // 2] * len(values)
    scale = (len(SPARK_CHARS) - 1) / (high - low)
    return "".join(SPARK_CHARS[round((v - low) * scale)] for v in values)


def _format_ms(value: int | None) -> str:
    return str(value) if value is not None else "-"


def _format_outcome_status(outcome: ProbeMeasurement) -> str:
    if outcome.is_success:
        return "[green]OK[/green]"
    return f"[red]Error[/red] {outcome.error_message}"


def _render_stats(snapshot: EngineSnapshot) -> Table:
    """Latest/average/min/max panel."""
    latest = snapshot.latest
    latest_style = "red" if latest is not None and not latest.is_success else "blue"
    stats = snapshot.statistics

    table = Table.grid(expand=True, padding=(0, 2))
    for _ in range(4):
        table.add_column(justify="center")
    table.add_row(
        "Total Time (ms)",
        "Average Latency (ms)",
        "Min Latency (ms)",
        "Max Latency (ms)",
        style="dim",
    )
    table.add_row(
        f"[bold {latest_style}]{_format_ms(latest.elapsed_ms if latest else None)}[/]",
        f"[bold yellow]{_format_ms(stats.average)}[/]",
        f"[bold green]{_format_ms(stats.minimum)}[/]",
        f"[bold red]{_format_ms(stats.maximum)}[/]",
    )
    return table


def _render_history(history: tuple[ProbeOutcome, ...], rows: int) -> Table:
    """Table of the most recent outcomes."""
    table = Table(title="Recent Probes", expand=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Latency (ms)", justify="right")
    table.add_column("Status")

    for outcome in history[:rows]:
        table.add_row(
            str(outcome.sequence_id),
            outcome.observed_at.strftime("%H:%M:%S"),
            TECHNIQUE_LABELS[outcome.technique],
            _format_ms(outcome.elapsed_ms),
            _format_outcome_status(outcome),
        )
    return table


def _render_view(snapshot: EngineSnapshot, rows: int) -> Group:
    """Full live view for one engine snapshot."""
    status = Text.from_markup(f"Status: [bold]{snapshot.status_message}[/bold]")
    parts: list[Panel | Table | Text] = [status]

    if snapshot.history or snapshot.run_state is RunState.RUNNING:
        parts.append(Panel(_render_stats(snapshot)))

    series = chart_series(snapshot.history)
    if series is not None:
        parts.append(
            Panel(
                Text(_sparkline(series), style="cyan"),
                title=f"Latency ({min(series)}-{max(series)} ms)",
            )
        )

    if snapshot.history:
        parts.append(_render_history(snapshot.history, rows))

    return Group(*parts)


def _display_summary(snapshot: EngineSnapshot) -> None:
    """Display the statistics of a finished run."""
    ok_count = sum(1 for o in snapshot.history if o.is_success)
    error_count = len(snapshot.history) - ok_count
    stats = snapshot.statistics

    technique = TECHNIQUE_LABELS[snapshot.technique] if snapshot.technique else "-"
    console.print(f"\n[bold]Summary for {snapshot.host}[/bold] ({technique})")

    table = Table()
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Successful probes", str(ok_count))
    table.add_row("Failed probes", str(error_count))
    table.add_row("Average (ms)", _format_ms(stats.average))
    table.add_row("Min (ms)", _format_ms(stats.minimum))
    table.add_row("Max (ms)", _format_ms(stats.maximum))

    console.print(table)
    if stats.is_empty:
        console.print("[yellow]Not enough successful probes for statistics.[/yellow]")


async def _run_live(settings: RunSettings) -> EngineSnapshot:
    """Run the scheduler under a live view until a stop condition is met.

    Args:
        settings: Resolved run settings.

    Returns:
        Engine snapshot taken after the run stopped.

    Raises:
        LatencyProbeError: If the scheduler rejects the run.
    """
    scheduler = ProbeScheduler(secure_context=settings.secure_context)
    finished = asyncio.Event()
    recorded = 0

    with Live(
        _render_view(scheduler.snapshot(), settings.rows),
        console=console,
        refresh_per_second=4,
    ) as live:

        def on_event(event: EngineEvent) -> None:
            nonlocal recorded
            live.update(_render_view(event.snapshot, settings.rows))
            if event.type is EngineEventType.OUTCOME_APPENDED:
                recorded += 1
                if settings.count is not None and recorded >= settings.count:
                    finished.set()

        unsubscribe = scheduler.subscribe(on_event)
        try:
            scheduler.start(settings.host, settings.technique)
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(finished.wait(), timeout=settings.duration)
        finally:
            await scheduler.aclose()
            unsubscribe()

    return scheduler.snapshot()


@app.command()
def run(  # noqa: PLR0913 - Typer requires CLI args as function parameters
    host: Annotated[
        str | None,
        typer.Argument(help="Host name or IP to probe (default from config or google.com)."),
    ] = None,
    technique: Annotated[
        ProbeTechnique | None,
        typer.Option(
            "--type",
            "-t",
            help="Probe technique.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to latencyprobe.yaml configuration file.",
        ),
    ] = None,
    count: Annotated[
        int | None,
        typer.Option(
            "--count",
            "-n",
            min=1,
            help="Stop after this many probes have been recorded.",
        ),
    ] = None,
    duration: Annotated[
        float | None,
        typer.Option(
            "--duration",
            "-d",
            min=0.1,
            help="Stop after this many seconds.",
        ),
    ] = None,
    rows: Annotated[
        int | None,
        typer.Option(
            "--rows",
            help="Number of recent probes shown in the table.",
        ),
    ] = None,
    secure_context: Annotated[
        bool,
        typer.Option(
            "--secure-context",
            help="Refuse plain HTTP probes, as a page served over HTTPS must.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """Probe a host every two seconds and show live statistics.

    Runs until interrupted with Ctrl+C, or until --count probes were recorded
    or --duration seconds elapsed.

    Example:
        latencyprobe run example.com --type http-get --count 20
    """
    overrides = CLIOverrides(
        host=host,
        technique=technique,
        secure_context=True if secure_context else None,
        rows=rows,
        log_level="DEBUG" if verbose else None,
    )

    try:
        file_config = ConfigLoader.load_config(config_file)
        target = ConfigLoader.resolve_target_config(file_config, overrides)
        engine = ConfigLoader.resolve_engine_config(file_config, overrides)
        display = ConfigLoader.resolve_display_config(file_config, overrides)
        log_level = ConfigLoader.resolve_log_level(file_config, overrides)
    except LatencyProbeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e

    _configure_logging(log_level)

    settings = RunSettings(
        host=target.host,
        technique=target.technique,
        secure_context=engine.secure_context,
        rows=display.rows,
        count=count,
        duration=duration,
    )

    try:
        snapshot = asyncio.run(_run_live(settings))
    except LatencyProbeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        console.print("[yellow]Stopped by user.[/yellow]")
        return

    _display_summary(snapshot)


async def _probe_once(host: str, technique: ProbeTechnique) -> ProbeMeasurement:
    executor = ProbeExecutor()
    try:
        return await executor.execute(host, technique)
    finally:
        await executor.aclose()


@app.command()
def probe(
    host: Annotated[str, typer.Argument(help="Host name or IP to probe.")],
    technique: Annotated[
        ProbeTechnique,
        typer.Option(
            "--type",
            "-t",
            help="Probe technique.",
        ),
    ] = ProbeTechnique.SECURE_GET,
) -> None:
    """Send a single probe and print the result.

    Exits with code 1 when the probe failed.
    """
    if not host.strip():
        console.print("[red]Error:[/red] Host cannot be empty")
        raise typer.Exit(code=1)

    measurement = asyncio.run(_probe_once(host.strip(), technique))

    label = TECHNIQUE_LABELS[measurement.technique]
    if measurement.is_success:
        console.print(f"{label} {host}: [green]{measurement.elapsed_ms} ms[/green]")
        return

    console.print(f"{label} {host}: [red]{measurement.error_message}[/red]")
    raise typer.Exit(code=1)


@app.command()
def techniques() -> None:
    """List available probe techniques."""
    table = Table(title="Probe Techniques")
    table.add_column("Technique", style="cyan")
    table.add_column("Description")

    table.add_row(
        ProbeTechnique.SECURE_GET.value,
        "HTTPS request; any response counts, network errors fail.",
    )
    table.add_row(
        ProbeTechnique.PLAIN_GET.value,
        "Plain HTTP resource load; any response or load error counts.",
    )

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
