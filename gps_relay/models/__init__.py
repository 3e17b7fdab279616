"""Data models for the GPS relay."""

from gps_relay.models.forward import ForwardRequest, ForwardResult
from gps_relay.models.stream import StreamEnd, StreamOutcome, StreamState

__all__ = [
    "ForwardRequest",
    "ForwardResult",
    "StreamEnd",
    "StreamOutcome",
    "StreamState",
]
