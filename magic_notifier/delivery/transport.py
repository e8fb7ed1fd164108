"""
Transport Dispatcher.

Sends a batch of payloads through one of two interchangeable delivery
modes, chosen once from the configuration:

- blocking: hand the batch to a network sender and wait for it
- agent: append the batch to a local relay consumed by a separate agent
"""

from __future__ import annotations

import logging
from typing import List, Protocol, Sequence, runtime_checkable

from magic_notifier.config import HandlerMode, HandlerModes
from magic_notifier.errors import ConfigurationError, DeliveryError
from magic_notifier.models import ModelPayload

logger = logging.getLogger(__name__)


@runtime_checkable
class PayloadSender(Protocol):
    """
    Network collaborator used in blocking mode.

    ``send`` blocks until the collector answered and raises DeliveryError
    on failure.
    """

    def send(self, access_token: str, payloads: Sequence[ModelPayload]) -> None:
        ...


@runtime_checkable
class AgentWriter(Protocol):
    """Append-only local interchange consumed by the relay agent."""

    def write(self, payloads: Sequence[ModelPayload]) -> None:
        ...

    def close(self) -> None:
        ...


class TransportDispatcher:
    """
    Deliver payload batches in the configured mode.

    Example:
        dispatcher = TransportDispatcher(
            handler="agent",
            access_token=config.access_token,
            agent_writer=RelayFileWriter("/var/tmp"),
        )
        dispatcher.dispatch([payload])
    """

    def __init__(
        self,
        handler: HandlerMode,
        access_token: str,
        sender: PayloadSender = None,
        agent_writer: AgentWriter = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            handler: "blocking" or "agent"
            access_token: Token passed to the network sender
            sender: Network collaborator, required in blocking mode
            agent_writer: Relay collaborator, required in agent mode

        Raises:
            ConfigurationError: If the collaborator for the mode is missing
        """
        if handler not in (HandlerModes.BLOCKING, HandlerModes.AGENT):
            raise ConfigurationError(f"Unknown handler '{handler}'")
        if handler == HandlerModes.BLOCKING and sender is None:
            raise ConfigurationError("Blocking handler requires a payload sender")
        if handler == HandlerModes.AGENT and agent_writer is None:
            raise ConfigurationError("Agent handler requires an agent writer")

        self._handler = handler
        self._access_token = access_token
        self._sender = sender
        self._agent_writer = agent_writer

    @property
    def handler(self) -> str:
        return self._handler

    def dispatch(self, payloads: Sequence[ModelPayload]) -> None:
        """
        Deliver one batch.

        Args:
            payloads: Payloads to deliver; an empty batch is a no-op

        Raises:
            DeliveryError: If the collaborator failed
        """
        batch: List[ModelPayload] = list(payloads)
        if not batch:
            return

        try:
            if self._handler == HandlerModes.AGENT:
                self._agent_writer.write(batch)
            else:
                self._sender.send(self._access_token, batch)
        except DeliveryError:
            raise
        except Exception as e:
            raise DeliveryError(
                f"{self._handler} delivery failed: {e}",
                details={"batch_size": len(batch), "error_type": type(e).__name__},
            ) from e

        logger.debug("Dispatched %d payload(s) via %s handler", len(batch), self._handler)

    def close(self) -> None:
        """Release the agent writer, if any."""
        if self._agent_writer is not None:
            self._agent_writer.close()
