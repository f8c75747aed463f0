"""Chat command for interactive CLI sessions."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer

from pulseguard.cli.console import console, dim, error, load_config_or_exit, success, warning

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /pending                  list actions waiting for confirmation
  /confirm <id> [json]      confirm an action, optionally with corrections
  /reject <id>              discard a pending action
  /quit                     leave the chat"""


def register(app: typer.Typer) -> None:
    """Register the chat command."""

    @app.command()
    def chat(
        user: Annotated[
            str,
            typer.Option("--user", "-u", help="User id to chat as"),
        ] = "local",
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        model_alias: Annotated[
            str,
            typer.Option("--model", "-m", help="Model alias to use"),
        ] = "default",
        memory: Annotated[
            bool,
            typer.Option("--memory", help="Keep data in memory instead of the database"),
        ] = False,
    ) -> None:
        """Start an interactive chat session with the companion."""
        try:
            asyncio.run(_run_chat(user, config_path, model_alias, memory))
        except KeyboardInterrupt:
            console.print("\n[dim]Goodbye![/dim]")


def _parse_amendments(raw: str) -> dict[str, Any] | None:
    if not raw:
        return None
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError("corrections must be a JSON object")
    return value


async def _run_chat(
    user: str, config_path: Path | None, model_alias: str, memory: bool
) -> None:
    from rich.markdown import Markdown
    from rich.panel import Panel

    from pulseguard.capabilities import UnknownConfirmationError
    from pulseguard.config import ConfigError
    from pulseguard.core import Companion
    from pulseguard.db import Database
    from pulseguard.llm import create_llm_provider
    from pulseguard.logging import configure_logging
    from pulseguard.store import InMemoryHealthStore, SqlHealthStore, StoreError

    configure_logging(level="WARNING", use_rich=True, log_to_file=True)
    config = load_config_or_exit(config_path)

    try:
        llm = create_llm_provider(config, model_alias)
    except (ConfigError, ValueError) as e:
        error(str(e))
        raise typer.Exit(1) from None

    database = None
    if memory:
        store = InMemoryHealthStore()
    else:
        database = Database.from_config(config.memory)
        await database.connect(create_schema=True)
        store = SqlHealthStore(database)

    companion = Companion.create(store, llm, config, model_alias=model_alias)
    dim(f"Chatting as '{user}'. Type /help for commands.")

    try:
        while True:
            text = console.input("[bold]You:[/bold] ").strip()
            if not text:
                continue
            if text in ("/quit", "/exit"):
                break
            if text == "/help":
                dim(HELP_TEXT)
                continue

            try:
                if text == "/pending":
                    pending = await companion.engine.pending(user)
                    if not pending:
                        dim("Nothing is waiting for confirmation.")
                    for p in pending:
                        console.print(f"[bold]{p.request_id}[/bold] {p.prompt}")
                    continue

                if text.startswith("/confirm "):
                    request_id, _, raw = text.removeprefix("/confirm ").strip().partition(" ")
                    try:
                        amendments = _parse_amendments(raw.strip())
                    except ValueError as e:
                        error(f"Could not read corrections: {e}")
                        continue
                    result = await companion.confirm(user, request_id, amendments)
                    (success if result.success else error)(result.message)
                    continue

                if text.startswith("/reject "):
                    request_id = text.removeprefix("/reject ").strip()
                    try:
                        await companion.reject(user, request_id)
                    except UnknownConfirmationError as e:
                        error(str(e))
                    else:
                        dim("Discarded.")
                    continue

                reply = await companion.handle_message(user, text)
            except StoreError as e:
                logger.exception("chat_store_error")
                error(f"Storage error: {e}")
                continue

            console.print(Panel(Markdown(reply.text or "..."), title=config.persona))
            for pending in reply.pending:
                dim(f"/confirm {pending.request_id}  or  /reject {pending.request_id}")
            if reply.crisis:
                warning("If you are in danger, contact your local emergency number now.")
    finally:
        if database is not None:
            await database.disconnect()
