"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .add import add_command
from .init import init_command
from .links import delete_command, list_command
from .serve import serve_command

app = typer.Typer(
    name="linkstash",
    help="Linkstash - shared link feed with scraping and deduplication",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("add")(add_command)
app.command("list")(list_command)
app.command("delete")(delete_command)
app.command("serve")(serve_command)


if __name__ == "__main__":
    app()
