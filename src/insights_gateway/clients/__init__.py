"""Clients for the flow-execution API and its push-event streams."""

from .flow_client import FlowClient
from .flow_stream import CLOSED_MESSAGE, FlowStream, StreamHandle, StreamState, handle_stream

__all__ = [
    "CLOSED_MESSAGE",
    "FlowClient",
    "FlowStream",
    "StreamHandle",
    "StreamState",
    "handle_stream",
]
