"""
Payload Builder.

Converts an event (message, exception, runtime error) into the envelope
the collector expects:

    {"access_token": ..., "data": {"environment", "level", "timestamp",
     "uuid", "language", "platform", "notifier", "body", "server",
     "request"?, "person"?, "title"?, ...}}

The builder never contains failures itself; anything raised while
capturing context propagates to the notifier.
"""

from __future__ import annotations

import sys
import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .capture import ContextCapturer, capture_stack, trace_chain
from .capture.backtrace import Predecessor, default_predecessor
from .config import NotifierConfig
from .events import (
    Event,
    ExceptionEvent,
    Level,
    MessageEvent,
    RuntimeErrorEvent,
    level_value,
)
from .log import DiagnosticLogger, NullDiagnosticLogger
from .models import ModelExceptionInfo, ModelFrame, ModelPayload, ModelTraceChainEntry

LANGUAGE = "python"

# Top-level data keys that payload overrides may not replace
PROTECTED_KEYS = frozenset({"body", "uuid"})


class PayloadBuilder:
    """
    Build payloads for reported events.

    Example:
        builder = PayloadBuilder(config, capturer)
        payload = builder.build(MessageEvent("Hello"), payload_data={"title": "greeting"})
        payload.uuid  # "3b1f0c2e-..."
    """

    def __init__(
        self,
        config: NotifierConfig,
        capturer: ContextCapturer,
        notifier_version: str = "",
        clock: Callable[[], float] = time.time,
        uuid_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        predecessor: Predecessor = default_predecessor,
        logger: Optional[DiagnosticLogger] = None,
    ):
        """
        Initialize the builder.

        Args:
            config: Notifier configuration
            capturer: Context capturer for request/person/server data
            notifier_version: Version reported in data.notifier
            clock: Returns the current unix time
            uuid_factory: Returns a fresh UUID per payload
            predecessor: Returns the predecessor of an exception
            logger: Diagnostic logger for skipped overrides
        """
        self._config = config
        self._capturer = capturer
        self._notifier_version = notifier_version
        self._clock = clock
        self._uuid_factory = uuid_factory
        self._predecessor = predecessor
        self._logger = logger or NullDiagnosticLogger()

    def build(
        self,
        event: Event,
        extra_data: Optional[Mapping[str, Any]] = None,
        payload_data: Optional[Mapping[str, Any]] = None,
    ) -> ModelPayload:
        """
        Build the payload for one event.

        Args:
            event: The event to report
            extra_data: Extra data attached to the message or outermost trace
            payload_data: Top-level data overrides; last write wins except
                for ``body`` and ``uuid``

        Returns:
            The frozen payload
        """
        body, level = self._build_body(event, extra_data)
        data = self._build_base_data(level)
        data["body"] = body

        request = self._capturer.capture_request()
        if request:
            data["request"] = request

        data["server"] = self._capturer.capture_server(in_request=request is not None)

        person = self._capturer.capture_person()
        if person:
            data["person"] = person

        if payload_data:
            self._merge_payload_data(data, payload_data)

        return ModelPayload(access_token=self._config.access_token, data=data)

    def _build_base_data(self, level: Union[Level, str]) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "environment": self._config.environment,
            "level": level_value(level),
            "timestamp": int(self._clock()),
            "uuid": str(self._uuid_factory()),
            "language": LANGUAGE,
            "platform": sys.platform,
            "notifier": {
                "name": self._config.notifier_name,
                "version": self._notifier_version,
            },
        }
        if self._config.framework:
            data["framework"] = self._config.framework
        if self._config.code_version:
            data["code_version"] = self._config.code_version
        return data

    def _build_body(
        self,
        event: Event,
        extra_data: Optional[Mapping[str, Any]],
    ) -> Tuple[Dict[str, Any], Union[Level, str]]:
        if isinstance(event, MessageEvent):
            return self._message_body(event, extra_data), Level.coerce(event.level)
        if isinstance(event, ExceptionEvent):
            return self._exception_body(event.exception, extra_data), Level.ERROR
        if isinstance(event, RuntimeErrorEvent):
            return self._runtime_error_body(event), event.level
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    @staticmethod
    def _message_body(event: MessageEvent, extra_data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        message: Dict[str, Any] = dict(extra_data or {})
        message["body"] = event.text
        return {"message": message}

    def _exception_body(
        self,
        exc: BaseException,
        extra_data: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        extra = dict(extra_data) if extra_data else None
        entries = trace_chain(exc, extra, self._predecessor)
        if len(entries) == 1:
            return {"trace": entries[0].to_dict()}
        return {"trace_chain": [entry.to_dict() for entry in entries]}

    def _runtime_error_body(self, event: RuntimeErrorEvent) -> Dict[str, Any]:
        error_frame = ModelFrame(filename=event.file, lineno=event.line)
        frames: List[ModelFrame]
        if self._config.capture_error_backtraces:
            frames = capture_stack()
            if not frames or (frames[-1].filename, frames[-1].lineno) != (event.file, event.line):
                frames.append(error_frame)
        else:
            frames = [error_frame]

        entry = ModelTraceChainEntry(
            exception=ModelExceptionInfo(class_name=event.reported_class, message=event.message),
            frames=frames,
        )
        return {"trace": entry.to_dict()}

    def _merge_payload_data(self, data: Dict[str, Any], payload_data: Mapping[str, Any]) -> None:
        for key, value in payload_data.items():
            if key in PROTECTED_KEYS:
                self._logger.log_warning(f"Ignoring payload override of protected key '{key}'")
                continue
            if key == "level":
                value = level_value(Level.coerce(value))
            data[key] = value
