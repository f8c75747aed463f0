"""CLI command modules."""

from pulseguard.cli.commands import capabilities, chat, database, extract

__all__ = ["capabilities", "chat", "database", "extract"]
