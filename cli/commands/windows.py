"""Window query commands."""
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from core.contact.errors import ContactWindowError
from core.contact.orchestrator import format_next_window_label
from core.models.satellite import format_utc, parse_epoch_string
from utils.json_utils import dump_json, save_json

from ..context import AppContext, pass_app


console = Console()


@click.command()
@click.argument("satellite_id")
@click.argument("ground_station_id")
@click.option("--json", "as_json", is_flag=True, help="Print windows as JSON")
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False), default=None,
              help="Also export the windows to a JSON file")
@pass_app
def windows(app: AppContext, satellite_id: str, ground_station_id: str, as_json: bool,
            output_path: Optional[str]):
    """List persisted contact windows of one pair."""
    with app.orchestrator() as orchestrator:
        try:
            found = orchestrator.list_windows(satellite_id, ground_station_id)
        except ContactWindowError as e:
            raise click.ClickException(str(e))

    records = [w.to_dict() for w in found]
    if output_path:
        save_json(records, output_path)

    if as_json:
        click.echo(dump_json(records))
        return

    if not found:
        console.print(f"No contact windows for {satellite_id}/{ground_station_id}")
        return

    table = Table(title=f"{satellite_id} / {ground_station_id}")
    table.add_column("AOS (UTC)", style="cyan")
    table.add_column("LOS (UTC)", style="cyan")
    table.add_column("时长(s)", justify="right")
    table.add_column("最大仰角(°)", justify="right")
    table.add_column("状态")
    for window in found:
        table.add_row(
            format_utc(window.scheduled_aos),
            format_utc(window.scheduled_los),
            str(window.duration_seconds),
            f"{window.max_elevation_deg:.2f}",
            window.status.value,
        )
    console.print(table)


@click.command(name="next")
@click.argument("satellite_id")
@click.argument("ground_station_id")
@click.option("--now", "now_text", default=None, help="Reference instant (ISO 8601, default: current time)")
@pass_app
def next_command(app: AppContext, satellite_id: str, ground_station_id: str, now_text: Optional[str]):
    """Show the next contact window of one pair."""
    try:
        now = parse_epoch_string(now_text) if now_text else None
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--now")

    with app.orchestrator() as orchestrator:
        try:
            window = orchestrator.next_window(satellite_id, ground_station_id, now=now)
        except ContactWindowError as e:
            raise click.ClickException(str(e))

    click.echo(format_next_window_label(window))
