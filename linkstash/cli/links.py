"""Feed listing and administrative delete commands."""

from pathlib import Path
from typing import Optional

import pendulum
import typer
from rich.table import Table

from ..errors import LinkstashError
from ..public import sanitize_link, to_public_record
from ..ranking import rank_links
from .common import console, load_cli_config, open_store

DAY_MS = 86_400_000


def list_command(
    day: Optional[str] = typer.Option(None, "--day", "-d", help="Only links touched on this UTC day (YYYY-MM-DD)"),
    show_private: bool = typer.Option(False, "--all", help="Include submitter and room id"),
    by_votes: bool = typer.Option(False, "--votes", help="Order by vote count instead of recency"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """List links, most recently touched first."""
    start_ts = end_ts = None
    if day:
        try:
            start = pendulum.from_format(day, "YYYY-MM-DD", tz="UTC")
        except ValueError:
            console.print("[red]Invalid day format. Use YYYY-MM-DD[/red]")
            raise typer.Exit(1)
        start_ts = int(start.timestamp() * 1000)
        end_ts = start_ts + DAY_MS

    config = load_cli_config(config_path)
    store = open_store(config)
    try:
        rows = store.list_links(start_ts=start_ts, end_ts=end_ts)
    except LinkstashError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        store.close()

    if not rows:
        console.print("[yellow]No links found.[/yellow]")
        return

    table = Table(title="Links")
    table.add_column("ID", style="dim")
    table.add_column("Count", style="green", justify="right")
    table.add_column("Touched", style="magenta")
    table.add_column("Title", style="cyan")
    table.add_column("Tags", style="yellow")
    if show_private:
        table.add_column("Submitted by", style="blue")

    records = [to_public_record(row) for row in rows]
    if not show_private:
        records = [sanitize_link(r) for r in records]

    for record in rank_links(records, "votes" if by_votes else "recent"):
        touched = pendulum.from_timestamp(record["ts"] / 1000, tz="UTC").format("YYYY-MM-DD HH:mm")
        cells = [
            record["id"],
            str(record.get("count") or 1),
            touched,
            str(record.get("title") or record.get("url") or record.get("domain") or ""),
            ", ".join(record.get("tags") or []),
        ]
        if show_private:
            cells.append(str(record.get("submittedBy") or record.get("submitted_by") or ""))
        table.add_row(*cells)

    console.print(table)


def delete_command(
    link_id: str = typer.Argument(..., help="ID of the link to delete"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Delete a link and its index entry."""
    config = load_cli_config(config_path)
    store = open_store(config)
    try:
        deleted = store.delete_link(link_id)
    except LinkstashError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        store.close()

    if not deleted:
        console.print(f"[red]Link '{link_id}' not found.[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Deleted link: {link_id}[/green]")
