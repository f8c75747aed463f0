"""Database layer."""

from pulseguard.db.engine import Database
from pulseguard.db.models import Base

__all__ = ["Base", "Database"]
