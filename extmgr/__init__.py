"""extmgr - execution engine for an extension manager."""

__version__ = "0.1.0"
