"""
Magic Notifier

Client for reporting messages, exceptions and runtime errors to a remote
error collector. Events are turned into scrubbed payloads and delivered
either over HTTP or through a local relay agent.

Key Components:
- notifier: Public entry points and failure containment
- payload: Payload construction
- capture: Request, person, server and backtrace capture
- scrub: Redaction of sensitive fields
- delivery: Queueing and transport
- config: Notifier configuration
"""

from .config import (
    NotifierConfig,
    get_preset,
    PRESETS,
)
from .errors import (
    NotifierError,
    ConfigurationError,
    CaptureError,
    DeliveryError,
)
from .events import (
    Level,
    RuntimeSeverity,
    MessageEvent,
    ExceptionEvent,
    RuntimeErrorEvent,
)
from .capture import (
    ContextCapturer,
    ContextVarRequestContext,
    RequestState,
    StaticRequestContext,
)
from .delivery import (
    AiohttpSender,
    DeliveryQueue,
    RelayFileWriter,
    TransportDispatcher,
)
from .log import (
    DiagnosticLogger,
    LoggingDiagnosticLogger,
)
from .models import ModelPayload
from .notifier import Notifier
from .payload import PayloadBuilder
from .scrub import Scrubber, scrub
from .version import __version__

__all__ = [
    # Notifier
    "Notifier",
    "PayloadBuilder",
    "ModelPayload",
    # Config
    "NotifierConfig",
    "get_preset",
    "PRESETS",
    # Errors
    "NotifierError",
    "ConfigurationError",
    "CaptureError",
    "DeliveryError",
    # Events
    "Level",
    "RuntimeSeverity",
    "MessageEvent",
    "ExceptionEvent",
    "RuntimeErrorEvent",
    # Capture
    "ContextCapturer",
    "ContextVarRequestContext",
    "RequestState",
    "StaticRequestContext",
    # Delivery
    "AiohttpSender",
    "DeliveryQueue",
    "RelayFileWriter",
    "TransportDispatcher",
    # Logging
    "DiagnosticLogger",
    "LoggingDiagnosticLogger",
    # Scrub
    "Scrubber",
    "scrub",
    "__version__",
]
