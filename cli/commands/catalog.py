"""Catalog commands.

Commands for loading satellites, element sets and ground stations.
"""
import click
from rich.console import Console
from rich.table import Table

from core.contact.errors import ContactWindowError
from storage.catalog import import_catalog
from utils.yaml_loader import load_catalog

from ..context import AppContext, pass_app


console = Console()


@click.command(name="import")
@click.argument("catalog_path", type=click.Path(exists=True, dir_okay=False))
@pass_app
def import_command(app: AppContext, catalog_path: str):
    """Import a YAML catalog of satellites and ground stations."""
    try:
        data = load_catalog(catalog_path)
    except (ContactWindowError, ValueError) as e:
        raise click.ClickException(str(e))

    with app.storage() as storage:
        counts = import_catalog(storage.catalog, data.satellites, data.ground_stations, data.elements)

    table = Table(title="目录导入")
    table.add_column("实体类型", style="cyan")
    table.add_column("数量", justify="right")
    table.add_row("卫星", str(counts['satellites']))
    table.add_row("地面站", str(counts['ground_stations']))
    table.add_row("轨道根数", str(counts['elements']))
    console.print(table)
