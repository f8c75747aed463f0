"""Main CLI application."""

import typer

from pulseguard.cli.commands import capabilities, chat, database, extract

app = typer.Typer(
    name="pulseguard",
    help="PulseGuard - health companion action engine",
    no_args_is_help=True,
)

chat.register(app)
capabilities.register(app)
extract.register(app)
database.register(app)


if __name__ == "__main__":
    app()
