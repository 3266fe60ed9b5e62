"""Main CLI entry point.

This module defines the main CLI group and registers all commands.
"""
import click

from utils.logger import configure_logging, LoggerConfigError

from .context import AppContext
from .commands.catalog import import_command
from .commands.refresh import refresh
from .commands.windows import windows, next_command


@click.group()
@click.version_option(version="1.0.0", prog_name="contact-windows")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="YAML/JSON/INI file with a contact_windows section")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), default=None,
              help="SQLite database path (overrides configuration)")
@click.option("--log-level", default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False))
@click.option("--log-format", default="text", show_default=True, type=click.Choice(["text", "json"]))
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write logs to this file")
@click.pass_context
def main(ctx, config_path, db_path, log_level, log_format, log_file):
    """Satellite contact window computation tool."""
    try:
        configure_logging(level=log_level, format=log_format, log_file=log_file)
    except LoggerConfigError as e:
        raise click.ClickException(str(e))
    ctx.obj = AppContext(config_path=config_path, db_path=db_path)


# Register commands
main.add_command(import_command)
main.add_command(refresh)
main.add_command(windows)
main.add_command(next_command)


if __name__ == "__main__":
    main()
