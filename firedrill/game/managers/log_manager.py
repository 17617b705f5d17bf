"""
Session log.

Components never hold a reference to the log: they publish LogMessage and
DebugMessage events and the LogManager collects them into a bounded buffer.
Subscriber exceptions caught by the event bus are reported here as ERROR
entries. The buffer can be filtered for display and written to a text file
at the end of a drill.
"""

from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Iterable, Optional, Union

from ...core.events import (
    DebugMessage,
    EventManager,
    EventType,
    LogMessage as LogEvent,
    LogSaveRequested,
    SubscriberError,
)


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()     # Session start-up, loading, shutdown
    SEQUENCE = auto()   # Package lifecycle
    TRIGGER = auto()    # Dispatched triggers
    TIMELINE = auto()   # Timeline processing
    INPUT = auto()      # Key and contact input
    DEBUG = auto()
    WARNING = auto()
    ERROR = auto()      # Errors caught at component boundaries
    SCENARIO = auto()   # Alarm, fire zone, success/failure
    UI = auto()         # Dialogue and prompts

    @classmethod
    def parse(cls, name: Optional[str]) -> "LogCategory":
        """Category for a name carried by a log event; unknown names map to SYSTEM."""
        try:
            return cls[(name or "").strip().upper()]
        except KeyError:
            return cls.SYSTEM


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.SEQUENCE: "SEQ",
    LogCategory.TRIGGER: "TRG",
    LogCategory.TIMELINE: "TML",
    LogCategory.INPUT: "INP",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
    LogCategory.SCENARIO: "SCN",
    LogCategory.UI: "UI",
}


class LogLevel(Enum):
    """Minimum level a category needs to be shown."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


# Categories not listed here are INFO
CATEGORY_LEVELS = {
    LogCategory.DEBUG: LogLevel.DEBUG,
    LogCategory.INPUT: LogLevel.DEBUG,
    LogCategory.TIMELINE: LogLevel.DEBUG,
    LogCategory.TRIGGER: LogLevel.DEBUG,
    LogCategory.WARNING: LogLevel.WARNING,
    LogCategory.ERROR: LogLevel.ERROR,
}


@dataclass
class LogMessage:
    """One entry in the session log."""
    text: str
    category: LogCategory
    timeline_time: float = 0.0
    source: Optional[str] = None

    @property
    def level(self) -> LogLevel:
        return CATEGORY_LEVELS.get(self.category, LogLevel.INFO)

    def format(self, include_time: bool = False, include_category: bool = True) -> str:
        """Format the message for display, e.g. ``[  12.50s] [SCN] Fire out``."""
        parts = []
        if include_time:
            parts.append(f"[{self.timeline_time:7.2f}s]")
        if include_category:
            parts.append(f"[{CATEGORY_TAGS.get(self.category, '???')}]")
        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Collects session log events with categorization and filtering."""

    def __init__(
        self,
        event_manager: EventManager,
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
        title: str = "Fire Drill Training",
    ):
        """Initialize the log manager.

        Args:
            event_manager: Event bus to collect log events from
            max_messages: Size of the message buffer; older entries are dropped
            default_level: Minimum level shown by get_messages()
            title: Heading written at the top of saved log files
        """
        self.event_manager = event_manager
        self.messages: deque[LogMessage] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.title = title

        event_manager.subscribe(EventType.LOG_MESSAGE, self._on_log_event,
                                subscriber_name="LogManager.log_message")
        event_manager.subscribe(EventType.DEBUG_MESSAGE, self._on_debug_event,
                                subscriber_name="LogManager.debug_message")
        event_manager.subscribe(EventType.LOG_SAVE_REQUESTED, self._on_save_requested,
                                subscriber_name="LogManager.save_requested")
        event_manager.set_error_callback(self._on_subscriber_error)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_log_event(self, event: LogEvent) -> None:
        self.messages.append(LogMessage(
            text=event.message,
            category=LogCategory.parse(event.category),
            timeline_time=event.timeline_time,
            source=event.source,
        ))

    def _on_debug_event(self, event: DebugMessage) -> None:
        self.messages.append(LogMessage(
            text=f"[{event.source}] {event.message}",
            category=LogCategory.DEBUG,
            timeline_time=event.timeline_time,
            source=event.source,
        ))

    def _on_save_requested(self, event: LogSaveRequested) -> None:
        if self.save_log_to_file(event.file_path):
            self.log("Log file saved successfully", LogCategory.SYSTEM, event.timeline_time)

    def _on_subscriber_error(self, error: SubscriberError) -> None:
        self.log(
            f"{error.subscriber_name} failed on {error.event_name}: {error.message}",
            LogCategory.ERROR,
            error.timeline_time,
        )

    # ------------------------------------------------------------------
    # Direct logging
    # ------------------------------------------------------------------

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            timeline_time: float = 0.0) -> None:
        self.messages.append(LogMessage(text=text, category=category, timeline_time=timeline_time))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def scenario(self, text: str) -> None:
        self.log(text, LogCategory.SCENARIO)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR)

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def is_visible(self, message: LogMessage) -> bool:
        """Whether a message passes the category switches and the log level."""
        return (message.category in self.enabled_categories
                and message.level.value >= self.log_level.value)

    def get_messages(self, count: Optional[int] = None,
                     categories: Optional[Iterable[LogCategory]] = None) -> list[LogMessage]:
        """Get recent messages.

        Args:
            count: Maximum number of messages to return (None for all)
            categories: Categories to include regardless of log level (None for
                every visible message)

        Returns:
            Messages in the order they were logged
        """
        if categories:
            wanted = set(categories) & self.enabled_categories
            filtered = [msg for msg in self.messages if msg.category in wanted]
        else:
            filtered = [msg for msg in self.messages if self.is_visible(msg)]

        if count is not None:
            return filtered[-count:] if count > 0 else []
        return filtered

    def count_by_category(self) -> dict[LogCategory, int]:
        """Number of buffered messages per category, ignoring filters."""
        return dict(Counter(msg.category for msg in self.messages))

    def clear(self) -> None:
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        return LogCategory.DEBUG in self.enabled_categories and self.log_level == LogLevel.DEBUG

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def save_log_to_file(self, file_path: Union[str, Path]) -> bool:
        """Write every buffered message, ignoring the current filters.

        Returns:
            True if the file was written; failures are logged as ERROR
        """
        path = Path(file_path)
        lines = [f"{self.title} - Session Log", "=" * 60, ""]
        if self.messages:
            lines.extend(msg.format(include_time=True) for msg in self.messages)
        else:
            lines.append("No messages to save.")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as e:
            self.error(f"Failed to save log file {path}: {e}")
            return False
        return True
