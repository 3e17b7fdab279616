"""Bridge-then-stream sequencing."""

import asyncio
import logging

from gps_relay.config import Settings
from gps_relay.errors import ExitCode
from gps_relay.models import ForwardResult
from gps_relay.services.bridge import remove_forward, setup_forward
from gps_relay.services.stream import DisplayCallback, StreamClient

logger = logging.getLogger(__name__)


def _bridge_exit_code(result: ForwardResult) -> int:
    if result.error is not None:
        return int(result.error.exit_code)
    return int(ExitCode.BRIDGE_EXIT)


async def run_relay(settings: Settings, display: DisplayCallback | None = None) -> int:
    """Set up the adb forward, then stream GPS data until the peer closes.

    The stream client is only started when the forward succeeded, after
    ``settings.settle_delay`` seconds.

    Args:
        settings: Relay settings
        display: Optional callback receiving each received chunk

    Returns:
        Process exit code (see ExitCode).
    """
    logger.info("GPS relay client starting")

    result = await setup_forward(settings.forward_request())
    if not result.success:
        logger.error("Cannot continue because adb port forwarding failed")
        return _bridge_exit_code(result)

    # Fixed delay for the forward rule to become active
    await asyncio.sleep(settings.settle_delay)

    logger.info("Connecting to %s:%d...", settings.host, settings.local_port)
    client = StreamClient(
        host=settings.host,
        port=settings.local_port,
        read_size=settings.read_size,
        connect_timeout=settings.connect_timeout,
        display=display,
    )
    outcome = await client.run()

    if outcome.exit_error is not None:
        return int(outcome.exit_error.exit_code)
    return int(ExitCode.OK)


async def run_remove(settings: Settings) -> int:
    """Remove the adb forward for the configured local port."""
    result = await remove_forward(settings.forward_request())
    if not result.success:
        return _bridge_exit_code(result)
    return int(ExitCode.OK)
