"""TCP stream client for the forwarded GPS port."""

import asyncio
import logging
import socket
import sys
from collections.abc import Callable

from gps_relay.errors import ConnectError, NetworkInitError, RelayError
from gps_relay.models import StreamEnd, StreamOutcome, StreamState

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 1024

DisplayCallback = Callable[[str], None]


def print_chunk(text: str) -> None:
    """Write one received chunk to stdout.

    Characters the console encoding cannot represent are replaced.
    """
    encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
    text = text.encode(encoding, errors="replace").decode(encoding, errors="replace")
    print(f"Received GPS data: {text}", file=sys.stdout, flush=True)


class StreamClient:
    """Reads the GPS byte stream from a local TCP port until it ends.

    One connection attempt, one blocking read in flight at a time, each read
    displayed as-is. A client instance runs once.

    Example:
        >>> client = StreamClient(port=54321)
        >>> outcome = await client.run()
        >>> outcome.end
        <StreamEnd.EOF: 'eof'>
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 54321,
        read_size: int = DEFAULT_READ_SIZE,
        connect_timeout: float = 5.0,
        display: DisplayCallback | None = None,
    ) -> None:
        """Initialize stream client.

        Args:
            host: Address of the forwarded port (loopback by default).
            port: Local TCP port created by the adb forward.
            read_size: Maximum bytes per read.
            connect_timeout: Seconds to wait for the TCP connect.
            display: Called with the decoded text of every read.
        """
        if read_size <= 0:
            raise ValueError(f"read_size must be > 0, got {read_size}")
        if connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be > 0, got {connect_timeout}")
        self.host = host
        self.port = port
        self.read_size = read_size
        self.connect_timeout = connect_timeout
        self.display = display or print_chunk
        self.state = StreamState.IDLE

    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Resolve, create the socket and connect.

        Raises:
            NetworkInitError: If the address or socket cannot be set up.
            ConnectError: If the connect attempt fails or times out.
        """
        loop = asyncio.get_running_loop()

        try:
            infos = await loop.getaddrinfo(
                self.host, self.port, type=socket.SOCK_STREAM
            )
        except OSError as e:
            raise NetworkInitError(
                f"Cannot resolve {self.host}:{self.port}: {e}", e
            ) from e

        try:
            return await asyncio.wait_for(
                self._connect_any(loop, infos),
                timeout=self.connect_timeout,
            )
        except (TimeoutError, OSError) as e:
            raise ConnectError(self.host, self.port, e) from e

    async def _connect_any(
        self, loop: asyncio.AbstractEventLoop, infos: list[tuple]
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Try each resolved address in turn, e.g. ::1 then 127.0.0.1.

        Raises:
            NetworkInitError: If a socket cannot be created.
            OSError: The last connect error when every address fails.
        """
        last_error: OSError | None = None

        for family, type_, proto, _, address in infos:
            try:
                sock = socket.socket(family, type_, proto)
            except OSError as e:
                raise NetworkInitError(
                    f"Cannot create socket for {self.host}:{self.port}: {e}", e
                ) from e

            try:
                sock.setblocking(False)
                await loop.sock_connect(sock, address)
                return await asyncio.open_connection(sock=sock)
            except OSError as e:
                sock.close()
                last_error = e
                logger.debug("Connect to %s failed: %s", address, e)
            except BaseException:
                sock.close()
                raise

        raise last_error or OSError(f"No addresses for {self.host}")

    async def _read_loop(self, reader: asyncio.StreamReader) -> StreamOutcome:
        chunks = 0
        received = 0

        while True:
            try:
                data = await reader.read(self.read_size)
            except OSError as e:
                logger.debug("Read from %s:%d failed: %s", self.host, self.port, e)
                return StreamOutcome(StreamEnd.ERROR, chunks, received, e)

            if not data:
                logger.debug("Peer at %s:%d closed the connection", self.host, self.port)
                return StreamOutcome(StreamEnd.EOF, chunks, received)

            chunks += 1
            received += len(data)
            self.display(data.decode("utf-8", errors="replace"))

    async def run(self) -> StreamOutcome:
        """Connect and stream until the peer closes or a read fails.

        Returns:
            StreamOutcome tagged with how the stream ended.

        Raises:
            RuntimeError: If the client has already run.
        """
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"StreamClient already used (state={self.state.value})")

        self.state = StreamState.CONNECTING
        try:
            reader, writer = await self._open()
        except RelayError as e:
            self.state = StreamState.CLOSED
            logger.error("%s", e)
            return StreamOutcome(StreamEnd.NOT_CONNECTED, error=e)
        except BaseException:
            self.state = StreamState.CLOSED
            raise

        logger.info("Connected to GPS service at %s:%d", self.host, self.port)
        self.state = StreamState.STREAMING

        try:
            outcome = await self._read_loop(reader)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug("Error while closing connection: %s", e)
            self.state = StreamState.CLOSED

        logger.info(
            "GPS stream closed (chunks=%d, bytes=%d)",
            outcome.chunks,
            outcome.bytes_received,
        )
        return outcome
