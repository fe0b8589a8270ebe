"""Helpers shared by CLI commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import Config
from ..db import PostgresLinkStore
from ..logging_utils import setup_logging

console = Console()


def load_cli_config(config_path: Optional[Path]) -> Config:
    """Load config and set up logging, exiting on a missing file."""
    config = Config(config_path)
    try:
        setup_logging(config.config.logging)
    except FileNotFoundError:
        console.print(f"[red]Config not found at {config.config_path}. Run 'linkstash init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return config


def open_store(config: Config) -> PostgresLinkStore:
    return PostgresLinkStore.from_config(config.get_db_config())
