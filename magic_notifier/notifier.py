"""
Notifier.

Public entry point of the package. Ties together context capture,
payload building, queueing and transport, and guarantees that nothing
raised anywhere in that pipeline reaches the host application: each
report returns the payload UUID, or None when the event could not be
accepted.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Mapping, Optional, Type, Union

from .capture import ContextCapturer, RequestContextProvider
from .capture.person import PersonProvider
from .config import HandlerModes, NotifierConfig
from .delivery import (
    AgentWriter,
    AiohttpSender,
    DeliveryQueue,
    PayloadSender,
    RelayFileWriter,
    TransportDispatcher,
)
from .errors import ConfigurationError
from .events import Event, ExceptionEvent, Level, MessageEvent, RuntimeErrorEvent, RuntimeSeverity
from .log import DiagnosticLogger, LoggingDiagnosticLogger
from .payload import PayloadBuilder
from .version import __version__

logger = logging.getLogger(__name__)


class Notifier:
    """
    Report messages, exceptions and runtime errors to the collector.

    Example:
        notifier = Notifier({
            "access_token": "ad865e76e7fb496fab096ac07b1dbabb",
            "environment": "production",
            "batched": False,
        })

        try:
            do_work()
        except Exception as e:
            notifier.report_exception(e, extra_data={"job": "nightly"})

        notifier.report_message("Cache warmed", level="info")
    """

    def __init__(
        self,
        config: Union[NotifierConfig, Mapping[str, Any]],
        *,
        request_provider: Optional[RequestContextProvider] = None,
        sender: Optional[PayloadSender] = None,
        agent_writer: Optional[AgentWriter] = None,
        logger: Optional[DiagnosticLogger] = None,
        person_provider: Optional[PersonProvider] = None,
        capturer: Optional[ContextCapturer] = None,
        builder: Optional[PayloadBuilder] = None,
        dispatcher: Optional[TransportDispatcher] = None,
    ):
        """
        Initialize the notifier.

        An invalid configuration never raises: it is logged and the
        notifier stays disabled, turning every report into a no-op.

        Args:
            config: NotifierConfig or a mapping accepted by NotifierConfig.from_dict
            request_provider: Source of the current request
            sender: Network collaborator for the blocking handler
            agent_writer: Relay collaborator for the agent handler
            logger: Diagnostic logger for internal failures
            person_provider: Zero-argument person callable; overrides config.person_fn
            capturer: Context capturer; built from config when None
            builder: Payload builder; built from config when None
            dispatcher: Transport dispatcher; built from config when None
        """
        self._logger: DiagnosticLogger = logger or LoggingDiagnosticLogger()
        self._config: Optional[NotifierConfig] = None
        self._capturer: Optional[ContextCapturer] = None
        self._builder: Optional[PayloadBuilder] = None
        self._dispatcher: Optional[TransportDispatcher] = None
        self._queue: Optional[DeliveryQueue] = None
        self._enabled = False

        try:
            self._config = config if isinstance(config, NotifierConfig) else NotifierConfig.from_dict(config)
            self._config.validate_token()

            self._capturer = capturer or ContextCapturer(
                request_provider=request_provider,
                scrub_rules=self._config.scrub_rules,
                host=self._config.host,
                root=self._config.root,
                code_version=self._config.code_version,
                branch=self._config.branch,
                person=self._config.person,
                person_provider=person_provider or self._config.person_fn,
            )
            self._builder = builder or PayloadBuilder(
                self._config,
                self._capturer,
                notifier_version=__version__,
                logger=self._logger,
            )
            self._dispatcher = dispatcher or self._create_dispatcher(sender, agent_writer)
            self._queue = DeliveryQueue(self._dispatcher, batch_size=self._config.batch_size)
            self._enabled = True
        except ConfigurationError as e:
            self._safe_log_error(f"Notifier disabled: {e}")
        except Exception as e:
            self._safe_log_error(f"Notifier disabled, invalid configuration: {type(e).__name__}: {e}")

    def _create_dispatcher(
        self,
        sender: Optional[PayloadSender],
        agent_writer: Optional[AgentWriter],
    ) -> TransportDispatcher:
        config = self._config
        if config.handler == HandlerModes.AGENT:
            agent_writer = agent_writer or RelayFileWriter(config.agent_log_location)
        else:
            sender = sender or AiohttpSender(config.base_api_url, timeout=config.timeout)
        return TransportDispatcher(
            handler=config.handler,
            access_token=config.access_token,
            sender=sender,
            agent_writer=agent_writer,
        )

    @property
    def enabled(self) -> bool:
        """False when the configuration was rejected."""
        return self._enabled

    @property
    def config(self) -> Optional[NotifierConfig]:
        return self._config

    @property
    def access_token(self) -> Optional[str]:
        return self._config.access_token if self._config else None

    @property
    def environment(self) -> Optional[str]:
        return self._config.environment if self._config else None

    # Public entry points

    def report_message(
        self,
        message: str,
        level: Union[Level, str] = Level.INFO,
        extra_data: Optional[Mapping[str, Any]] = None,
        payload_data: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        """
        Report a text message.

        Args:
            message: Message text
            level: Level of the message, "info" by default
            extra_data: Merged into body.message next to the text
            payload_data: Top-level data overrides (title, level, ...)

        Returns:
            The payload UUID, or None if the message was not accepted
        """
        if not self._enabled:
            return None
        try:
            return self._report(MessageEvent(str(message), level), extra_data, payload_data)
        except Exception as e:
            self._report_internal_failure("report_message", e)
            return None

    def report_exception(
        self,
        exc: Optional[BaseException] = None,
        extra_data: Optional[Mapping[str, Any]] = None,
        payload_data: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        """
        Report an exception and everything it was caused by.

        Args:
            exc: The exception; the one currently being handled when None
            extra_data: Attached to the outermost trace entry only
            payload_data: Top-level data overrides (title, level, ...)

        Returns:
            The payload UUID, or None if the exception was not accepted
        """
        if not self._enabled:
            return None
        try:
            if exc is None:
                exc = sys.exc_info()[1]
            if exc is None:
                raise ValueError("report_exception called without an exception")
            return self._report(ExceptionEvent(exc), extra_data, payload_data)
        except Exception as e:
            self._report_internal_failure("report_exception", e)
            return None

    def report_runtime_error(
        self,
        severity: Union[RuntimeSeverity, str, Type[Warning]],
        message: str,
        file: str,
        line: int,
    ) -> Optional[str]:
        """
        Report a runtime error raised without an exception.

        Args:
            severity: RuntimeSeverity, its name, or a Warning category
            message: Error message
            file: File the error occurred in
            line: Line number in that file

        Returns:
            The payload UUID, or None if the error was not accepted
        """
        if not self._enabled:
            return None
        try:
            event = RuntimeErrorEvent.create(severity, message, file, line)
            return self._report(event)
        except Exception as e:
            self._report_internal_failure("report_runtime_error", e)
            return None

    def flush(self) -> None:
        """Send everything queued. Failures are logged and the batch dropped."""
        if not self._enabled:
            return
        pending = self._queue.size()
        try:
            self._queue.flush()
        except Exception as e:
            self._report_internal_failure("flush", e)
            return
        if pending:
            self._safe_log_info(f"Flushed {pending} payload(s)")

    def queue_size(self) -> int:
        """Number of payloads waiting in the queue."""
        if self._queue is None:
            return 0
        return self._queue.size()

    def close(self) -> None:
        """Flush the queue and release the transport."""
        if not self._enabled:
            return
        self.flush()
        try:
            self._dispatcher.close()
        except Exception as e:
            self._report_internal_failure("close", e)

    def __enter__(self) -> "Notifier":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Internals

    def _report(
        self,
        event: Event,
        extra_data: Optional[Mapping[str, Any]] = None,
        payload_data: Optional[Mapping[str, Any]] = None,
    ) -> str:
        payload = self._builder.build(event, extra_data, payload_data)
        if self._config.batched:
            self._queue.enqueue(payload)
        else:
            self._dispatcher.dispatch([payload])
        return payload.uuid

    def _report_internal_failure(self, what: str, error: Exception) -> None:
        self._safe_log_error(
            f"Exception in {what}: {type(error).__name__}: {error}"
        )

    def _safe_log_error(self, message: str) -> None:
        try:
            self._logger.log_error(message)
        except Exception:
            logger.exception("Diagnostic logger failed while logging: %s", message)

    def _safe_log_info(self, message: str) -> None:
        try:
            self._logger.log_info(message)
        except Exception:
            logger.exception("Diagnostic logger failed while logging: %s", message)
