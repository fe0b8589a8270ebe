"""Serve command implementation."""

from pathlib import Path
from typing import Optional

import typer
import uvicorn

from ..api import create_app
from ..db import MemoryLinkStore, init_database
from ..errors import StorageError
from .common import console, load_cli_config


def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default from config)"),
    memory: bool = typer.Option(False, "--memory", help="Keep links in memory instead of Postgres"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Run the HTTP API."""
    config = load_cli_config(config_path)
    server = config.config.server

    store = None
    if memory:
        console.print("[yellow]Using in-memory storage; links are lost on exit[/yellow]")
        store = MemoryLinkStore()
    else:
        try:
            init_database(config.get_db_config())
        except StorageError as e:
            console.print(f"[red]❌ {e.message}: {e.details.get('details', '')}[/red]")
            raise typer.Exit(1)

    app = create_app(config, store=store)
    uvicorn.run(
        app,
        host=host or server.host,
        port=port or server.port,
        log_level=config.config.logging.level.lower(),
    )
