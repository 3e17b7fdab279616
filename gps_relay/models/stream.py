"""Stream client state and outcome models."""

from dataclasses import dataclass
from enum import Enum

from gps_relay.errors import RelayError


class StreamState(Enum):
    """Lifecycle of a stream client. CLOSED is terminal."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"


class StreamEnd(Enum):
    """How a stream run ended."""

    NOT_CONNECTED = "not_connected"
    EOF = "eof"
    ERROR = "error"


@dataclass
class StreamOutcome:
    """Result of a stream client run."""

    end: StreamEnd
    chunks: int = 0
    bytes_received: int = 0
    error: Exception | None = None

    @property
    def connected(self) -> bool:
        """Whether the TCP connection was established before the stream ended."""
        return self.end is not StreamEnd.NOT_CONNECTED

    @property
    def exit_error(self) -> RelayError | None:
        """Fatal error to report, if the stream never connected."""
        if isinstance(self.error, RelayError) and not self.connected:
            return self.error
        return None
