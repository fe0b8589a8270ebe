"""Init command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, ConfigModel, load_config, save_config
from ..db import init_database, validate_connection
from ..errors import StorageError
from .common import console


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Where to write config.yaml",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("linkstash", "--db-name", help="Database name"),
    db_user: str = typer.Option("linkstash", "--db-user", help="Database user"),
    scraper_url: Optional[str] = typer.Option(None, "--scraper-url", help="Scrape service base URL"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing config file"),
    reindex: bool = typer.Option(
        False,
        "--reindex",
        help="Create missing link_index rows for existing links",
    ),
) -> None:
    """Initialize Linkstash configuration and database."""
    console.print(Panel.fit("Linkstash - Initialization", style="bold blue"))

    if config_path.exists() and not overwrite:
        console.print(f"Using existing config: {config_path}")
        config = load_config(config_path)
    else:
        config = ConfigModel(
            postgres={
                "host": db_host,
                "port": db_port,
                "database": db_name,
                "user": db_user,
                "password_env": "LINKSTASH_DB_PASSWORD",
            },
            scraper={"base_url": scraper_url},
        )
        save_config(config, config_path)
        console.print(f"✅ Created config: {config_path}")

    # Validate database connection
    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export LINKSTASH_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    # Initialize database schema
    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        stats = init_database(db_config, reindex=reindex)
    except StorageError as e:
        console.print(f"[red]❌ Failed to initialize database: {e.message} {e.details}[/red]")
        raise typer.Exit(1)

    console.print("✅ Database schema initialized")
    if stats["migrated"]:
        console.print(f"  Migrated {stats['migrated']} legacy index rows")
    if stats["folded"]:
        console.print(f"  Folded {stats['folded']} duplicate links into their newest copy")
    if reindex:
        console.print(f"  Reindexed {stats['reindexed']} links")

    console.print(
        Panel(
            f"[green]✅ Linkstash initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export LINKSTASH_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set the shared secret: [bold]export LINKSTASH_AUTH_KEY=your_secret[/bold]\n"
            f"3. Run: [bold]linkstash serve[/bold]",
            style="green",
        )
    )
