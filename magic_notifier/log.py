"""
Diagnostic logger collaborator.

The notifier reports its own failures through an injected logger so that
instrumentation problems stay visible without ever disturbing the host
application. Loggers must never raise.
"""

from __future__ import annotations

import logging
from typing import List, Protocol, runtime_checkable


@runtime_checkable
class DiagnosticLogger(Protocol):
    """Protocol for the notifier's internal logger."""

    def log_error(self, message: str) -> None:
        ...

    def log_warning(self, message: str) -> None:
        ...

    def log_info(self, message: str) -> None:
        ...


class LoggingDiagnosticLogger:
    """
    Write notifier diagnostics to the standard logging system.

    Example:
        logger = LoggingDiagnosticLogger("myapp.notifier")
        logger.log_error("Exception while reporting message")
    """

    def __init__(self, logger_name: str = "magic_notifier"):
        self._logger = logging.getLogger(logger_name)

    def log_error(self, message: str) -> None:
        self._log(logging.ERROR, message)

    def log_warning(self, message: str) -> None:
        self._log(logging.WARNING, message)

    def log_info(self, message: str) -> None:
        self._log(logging.INFO, message)

    def _log(self, level: int, message: str) -> None:
        try:
            self._logger.log(level, "[magic_notifier] %s", message)
        except Exception:
            pass


class NullDiagnosticLogger:
    """Logger that discards everything."""

    def log_error(self, message: str) -> None:
        pass

    def log_warning(self, message: str) -> None:
        pass

    def log_info(self, message: str) -> None:
        pass


class MemoryDiagnosticLogger:
    """
    Keep diagnostics in memory.

    Handy in tests and in short-lived scripts that want to inspect what
    went wrong after the fact.
    """

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.infos: List[str] = []

    def log_error(self, message: str) -> None:
        self.errors.append(message)

    def log_warning(self, message: str) -> None:
        self.warnings.append(message)

    def log_info(self, message: str) -> None:
        self.infos.append(message)
