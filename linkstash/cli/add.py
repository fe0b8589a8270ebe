"""Add command implementation."""

from pathlib import Path
from typing import Optional

import typer

from ..errors import LinkstashError
from ..ingestion import Submission, SubmissionContext, is_valid_submission_url
from ..ingestion.engine import IngestionEngine, ingest_submission
from ..ingestion.scraper import ScraperClient
from .common import console, load_cli_config, open_store


def add_command(
    url: str = typer.Argument(..., help="URL to submit"),
    submitted_by: Optional[str] = typer.Option(None, "--submitted-by", "-s", help="Submitter identity"),
    room_id: Optional[str] = typer.Option(None, "--room-id", help="Room the link was shared in"),
    room_comment: Optional[str] = typer.Option(None, "--room-comment", help="Comment to attach"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Scrape a URL and add it to the feed."""
    if not is_valid_submission_url(url):
        console.print(f"[red]Invalid URL: {url}[/red]")
        raise typer.Exit(1)

    config = load_cli_config(config_path)
    store = open_store(config)
    scraper = ScraperClient.from_config(config.get_scraper_config())
    engine = IngestionEngine(store, policy=config.config.ingestion)

    submission = Submission(
        url=url,
        context=SubmissionContext(
            submitter=submitted_by,
            room_id=room_id,
            room_comment=room_comment,
        ),
    )

    try:
        with console.status(f"Scraping {url}..."):
            stats = ingest_submission(submission, scraper, engine)
    except LinkstashError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        if e.details:
            console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)
    finally:
        store.close()

    console.print(
        f"[green]✅ Done[/green]: {stats.inserted} new, {stats.merged} merged, {stats.skipped} skipped"
    )
