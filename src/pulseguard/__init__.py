"""PulseGuard - action execution engine for a health companion."""

__version__ = "0.1.0"
