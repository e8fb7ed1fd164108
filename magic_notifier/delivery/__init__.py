"""
Delivery Module

Queueing and transport of built payloads.
"""

from .agent import RelayFileWriter, relay_file_name
from .http import AiohttpSender
from .queue import DeliveryQueue
from .transport import AgentWriter, PayloadSender, TransportDispatcher

__all__ = [
    "AgentWriter",
    "AiohttpSender",
    "DeliveryQueue",
    "PayloadSender",
    "RelayFileWriter",
    "TransportDispatcher",
    "relay_file_name",
]
