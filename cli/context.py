"""Shared CLI state: resolved configuration and storage/orchestrator factories."""
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

import click

from core.contact.config import ContactWindowConfig, load_config
from core.contact.orchestrator import RefreshOrchestrator
from storage import StorageManager, StorageConfig
from utils.config_loader import ConfigLoadError, ConfigValidationError


class AppContext:
    """Holds global CLI options and builds the objects commands work with."""

    def __init__(self, config_path: Optional[str] = None, db_path: Optional[str] = None):
        self.config_path = config_path
        self.db_path = db_path
        self._config: Optional[ContactWindowConfig] = None

    @property
    def config(self) -> ContactWindowConfig:
        if self._config is None:
            try:
                self._config = load_config(self.config_path, overrides={'sqlite_path': self.db_path})
            except (ConfigLoadError, ConfigValidationError) as e:
                raise click.ClickException(f"Invalid configuration: {e}")
        return self._config

    @contextmanager
    def storage(self) -> Iterator[StorageManager]:
        """Open the window database for the duration of a command."""
        with StorageManager(StorageConfig(sqlite_path=self.config.sqlite_path)) as manager:
            yield manager

    @contextmanager
    def orchestrator(self, clock: Optional[Callable[[], datetime]] = None) -> Iterator[RefreshOrchestrator]:
        """Storage plus a refresh orchestrator bound to it."""
        with self.storage() as manager:
            with RefreshOrchestrator(manager.catalog, manager.windows, self.config, clock=clock) as orchestrator:
                yield orchestrator


pass_app = click.make_pass_decorator(AppContext)
