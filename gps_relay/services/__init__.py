"""Services for the GPS relay."""

from gps_relay.services.bridge import remove_forward, run_captured, setup_forward
from gps_relay.services.stream import StreamClient, print_chunk

__all__ = [
    "StreamClient",
    "print_chunk",
    "remove_forward",
    "run_captured",
    "setup_forward",
]
