"""Session-level managers."""

from .log_manager import LogCategory, LogLevel, LogManager, LogMessage

__all__ = [
    "LogCategory",
    "LogLevel",
    "LogManager",
    "LogMessage",
]
