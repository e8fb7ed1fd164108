"""
Reportable Event Definitions.

An event is one occurrence the application wants reported: a plain
message, a raised exception, or a runtime error (the kind of problem the
interpreter signals without raising, such as a warning). Events carry only
the raw source data; the payload builder turns them into the wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Type, Union


class Level(Enum):
    """
    Severity levels understood by the collector.

    Ordered from most to least severe.
    """
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    @classmethod
    def coerce(cls, value: Union["Level", str, None], default: "Level" = None) -> Union["Level", str]:
        """
        Turn a user supplied level into a Level when it names one.

        Unknown strings are passed through lowercased so the collector can
        decide what to do with them.

        Args:
            value: Level, level name, or None
            default: Level used when value is None

        Returns:
            The matching Level, or the lowercased string
        """
        if value is None:
            return default or cls.INFO
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == "warn":
            text = "warning"
        try:
            return cls(text)
        except ValueError:
            return text


def level_value(level: Union[Level, str]) -> str:
    """Wire value of a level."""
    return level.value if isinstance(level, Level) else str(level)


class RuntimeSeverity(Enum):
    """Severity classes of non-exception runtime errors."""
    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    DEPRECATED = "deprecated"

    @property
    def level(self) -> Level:
        """Collector level for this runtime severity."""
        return _SEVERITY_LEVELS[self]

    @property
    def class_name(self) -> str:
        """Name reported as the exception class of the synthesized trace."""
        return _SEVERITY_CLASS_NAMES[self]

    @classmethod
    def coerce(cls, value: Union["RuntimeSeverity", str, Type[Warning]]) -> "RuntimeSeverity":
        """
        Resolve a runtime severity from an enum member, its name, or a
        warning category.

        Raises:
            ValueError: If the value names no known severity
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, type) and issubclass(value, Warning):
            if issubclass(value, (DeprecationWarning, PendingDeprecationWarning)):
                return cls.DEPRECATED
            return cls.WARNING
        text = str(value).strip().lower()
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Unknown runtime severity: {value!r}") from None


_SEVERITY_LEVELS = {
    RuntimeSeverity.FATAL: Level.CRITICAL,
    RuntimeSeverity.ERROR: Level.ERROR,
    RuntimeSeverity.WARNING: Level.WARNING,
    RuntimeSeverity.NOTICE: Level.INFO,
    RuntimeSeverity.DEPRECATED: Level.INFO,
}

_SEVERITY_CLASS_NAMES = {
    RuntimeSeverity.FATAL: "FatalError",
    RuntimeSeverity.ERROR: "RuntimeError",
    RuntimeSeverity.WARNING: "RuntimeWarning",
    RuntimeSeverity.NOTICE: "Notice",
    RuntimeSeverity.DEPRECATED: "DeprecationWarning",
}


@dataclass(frozen=True)
class MessageEvent:
    """A plain text message."""
    text: str
    level: Union[Level, str] = Level.INFO


@dataclass(frozen=True)
class ExceptionEvent:
    """A raised (or constructed) exception, possibly with predecessors."""
    exception: BaseException


@dataclass(frozen=True)
class RuntimeErrorEvent:
    """
    A runtime error signalled without an exception.

    Attributes:
        severity: Runtime severity class
        message: Error message
        file: File the error was raised in
        line: Line number in that file
        class_name: Reported class; defaults to the severity's class name
    """
    severity: RuntimeSeverity
    message: str
    file: str
    line: int
    class_name: Optional[str] = field(default=None)

    @property
    def reported_class(self) -> str:
        return self.class_name or self.severity.class_name

    @property
    def level(self) -> Level:
        return self.severity.level

    @classmethod
    def create(
        cls,
        severity: Union[RuntimeSeverity, str, Type[Warning]],
        message: str,
        file: str,
        line: int,
    ) -> "RuntimeErrorEvent":
        """
        Build an event, keeping a warning category's name as the class.

        Args:
            severity: RuntimeSeverity, its name, or a Warning subclass
            message: Error message
            file: Source file
            line: Line number
        """
        class_name = None
        if isinstance(severity, type) and issubclass(severity, Warning):
            class_name = severity.__name__
        return cls(
            severity=RuntimeSeverity.coerce(severity),
            message=str(message),
            file=str(file),
            line=int(line),
            class_name=class_name,
        )


Event = Union[MessageEvent, ExceptionEvent, RuntimeErrorEvent]
