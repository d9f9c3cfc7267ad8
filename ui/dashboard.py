"""
Rich-based terminal dashboard for speed test results.

All formatting helpers live in ``netspeed.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from netspeed.grading import connection_type, format_delta, grade_speed, rate_ping
from netspeed.history import format_history_table, sparkline
from netspeed.progress import Phase, TestProgress
from netspeed.result import SpeedTestResult
from netspeed.stats import format_latency, format_speed

console = Console()

_PHASE_LABELS = {
    Phase.IDLE: "Waiting",
    Phase.PING: "Testing ping",
    Phase.DOWNLOAD: "Downloading",
    Phase.UPLOAD: "Uploading",
    Phase.COMPLETE: "Complete",
    Phase.CANCELLED: "Cancelled",
}


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header(base_url: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]netspeed[/bold cyan]\n"
            f"[dim]Measuring against {base_url}[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_final_results(
    result: SpeedTestResult,
    delta: Optional[dict] = None,
) -> None:
    dl_label, dl_color = grade_speed(result.download_mbps)
    ul_label, ul_color = grade_speed(result.upload_mbps)
    ping_label, ping_color = rate_ping(result.ping_ms)

    lines = [
        f"[bold white]   Ping:[/bold white]  [bold yellow]{format_latency(result.ping_ms)}[/bold yellow]  "
        f"[dim](jitter: {result.jitter_ms:.2f} ms)[/dim]  [{ping_color}]{ping_label}[/{ping_color}]",
        f"[bold white]   Download:[/bold white]  [bold green]{format_speed(result.download_mbps)}[/bold green]  "
        f"[{dl_color}]{dl_label}[/{dl_color}]",
        f"[bold white]   Upload:[/bold white]  [bold blue]{format_speed(result.upload_mbps)}[/bold blue]  "
        f"[{ul_color}]{ul_label}[/{ul_color}]",
    ]
    if result.packet_loss_pct > 0:
        lines.append(f"[bold white]   Packet Loss:[/bold white]  [bold red]{result.packet_loss_pct:.1f}%[/bold red]")
    lines.append(
        f"\n[dim]Connection: {connection_type(result.download_mbps)}  "
        f"Duration: {result.test_duration_sec:.1f} s[/dim]"
    )
    if delta:
        lines.append(
            f"[dim]vs last:[/dim] "
            f"Ping {format_delta(delta['ping_delta'], 'ms', invert=True)}  "
            f"DL {format_delta(delta['download_delta'], 'Mbps')}  "
            f"UL {format_delta(delta['upload_delta'], 'Mbps')}"
        )

    console.print()
    console.print(Panel.fit("\n".join(lines), title="[bold]Results[/bold]", border_style="cyan"))
    console.print()


def print_history(results: Sequence[SpeedTestResult]) -> None:
    """Print stored results, newest first, with download/upload sparklines."""
    if not results:
        console.print("[dim]No test history yet.[/dim]")
        return

    table = Table(title="Test History", box=box.ROUNDED)
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Ping", justify="right")
    table.add_column("Jitter", justify="right")
    table.add_column("Loss", justify="right")
    table.add_column("Download", justify="right", style="green")
    table.add_column("Upload", justify="right", style="blue")

    for row in format_history_table(results):
        table.add_row(
            row["timestamp"],
            format_latency(row["ping"]),
            f"{row['jitter']:.2f} ms",
            f"{row['loss']:.1f}%",
            format_speed(row["download"]),
            format_speed(row["upload"]),
        )
    console.print(table)

    # Oldest to newest reads left to right.
    chronological = list(reversed(results))
    console.print(
        Panel(
            f"[green]DL {sparkline([r.download_mbps for r in chronological])}[/green]\n"
            f"[blue]UL {sparkline([r.upload_mbps for r in chronological])}[/blue]",
            title="Trend",
        )
    )


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

class PhaseProgress:
    """Single ``rich`` progress bar driven by ``TestProgress`` events."""

    def __init__(self) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description:<14}"),
            BarColumn(bar_width=40),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("[bold cyan]{task.fields[speed]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id = None

    def start(self) -> None:
        self.progress.start()
        self._task_id = self.progress.add_task(_PHASE_LABELS[Phase.IDLE], total=100, speed="")

    def update(self, event: TestProgress) -> None:
        if self._task_id is None:
            return
        speed_str = format_speed(event.current_speed_mbps) if event.current_speed_mbps > 0 else ""
        self.progress.update(
            self._task_id,
            completed=event.percent,
            description=_PHASE_LABELS[event.phase],
            speed=speed_str,
        )

    def stop(self) -> None:
        self.progress.stop()
        self._task_id = None
