"""Refresh command.

Recomputes contact windows and prints a per-pair report.
"""
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from core.contact.orchestrator import RefreshSummary
from core.models.satellite import parse_epoch_string
from utils.json_utils import dump_json

from ..context import AppContext, pass_app


console = Console()


def _print_summary(summary: RefreshSummary):
    """Print rich refresh report."""
    if summary.ok:
        status = "[green]✅ 全部成功[/green]"
    elif summary.partial:
        status = "[yellow]⚠️ 部分失败[/yellow]"
    else:
        status = "[red]✗ 失败[/red]"
    console.print(Panel(f"窗口刷新: {len(summary.window_counts)} 成功, "
                        f"{len(summary.failures)} 失败, {len(summary.cancelled)} 取消\n状态: {status}"))

    table = Table(title="卫星-地面站对")
    table.add_column("卫星", style="cyan")
    table.add_column("地面站", style="cyan")
    table.add_column("结果")
    table.add_column("详情")

    for sat_id, gs_id in summary.succeeded:
        table.add_row(sat_id, gs_id, "[green]成功[/green]", f"{summary.window_counts[(sat_id, gs_id)]} windows")
    for failure in summary.failures:
        table.add_row(failure.satellite_id, failure.ground_station_id,
                      f"[red]{failure.error_type}[/red]", failure.message)
    for sat_id, gs_id in summary.cancelled:
        table.add_row(sat_id, gs_id, "[yellow]取消[/yellow]", "")

    console.print(table)


@click.command()
@click.option("--satellite", "-s", "satellites", multiple=True, help="Satellite ID (repeatable)")
@click.option("--station", "-g", "stations", multiple=True, help="Ground station ID (repeatable)")
@click.option("--at", "start_text", default=None, help="Scan start instant (ISO 8601, default: current time)")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@pass_app
def refresh(app: AppContext, satellites, stations, start_text: Optional[str], as_json: bool):
    """Recompute and persist contact windows."""
    start = None
    if start_text:
        try:
            start = parse_epoch_string(start_text)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--at")

    with app.orchestrator(clock=(lambda: start) if start else None) as orchestrator:
        summary = orchestrator.refresh_all(
            satellites=list(satellites) or None,
            ground_stations=list(stations) or None,
        )

    if as_json:
        click.echo(dump_json(summary.to_dict()))
    else:
        _print_summary(summary)

    if not summary.ok:
        raise SystemExit(1)
