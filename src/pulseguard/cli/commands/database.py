"""Database setup command."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from pulseguard.cli.console import load_config_or_exit, success


def register(app: typer.Typer) -> None:
    @app.command("init-db")
    def init_db(
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Create all tables in the configured database."""
        from pulseguard.db import Database

        config = load_config_or_exit(config_path)
        path = config.memory.database_path

        async def create() -> None:
            async with Database.open(config.memory):
                pass

        asyncio.run(create())
        success(f"Database ready at {path}")
