"""
Notifier Error Taxonomy.

Every failure inside the notifier falls into one of three kinds. None of
them ever escapes a public Notifier entry point; they exist so internal
layers can raise something specific and the orchestrator can log it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class NotifierError(Exception):
    """Base class for all notifier-internal failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class ConfigurationError(NotifierError):
    """Invalid configuration, e.g. a malformed access token."""


class CaptureError(NotifierError):
    """Context, backtrace or person capture failed while building a payload."""


class DeliveryError(NotifierError):
    """A payload batch could not be handed to the network or the agent."""
