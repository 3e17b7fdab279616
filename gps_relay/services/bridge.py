"""adb port forward setup.

Runs the bridging tool once as a child process, captures its combined
stdout/stderr and reports whether the forward was established.
"""

import asyncio
import errno
import logging

from gps_relay.errors import (
    BridgeExitError,
    BridgeHandleError,
    BridgeSpawnError,
    RelayError,
)
from gps_relay.models import ForwardRequest, ForwardResult

logger = logging.getLogger(__name__)

# errno values meaning the pipe/descriptors could not be allocated
_HANDLE_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE, errno.ENOMEM})


def _classify_os_error(cmd: list[str], error: OSError) -> RelayError:
    """Map an OSError raised while starting the child to a failure kind."""
    if error.errno in _HANDLE_ERRNOS:
        return BridgeHandleError(f"Cannot create output pipe for {cmd[0]}: {error}", error)
    return BridgeSpawnError(f"Cannot launch {cmd[0]}: {error}", error)


async def run_captured(cmd: list[str]) -> ForwardResult:
    """Run a command and capture its combined output.

    Stdout and stderr share one pipe. The pipe is drained to exhaustion and
    the process is waited on before returning.

    Args:
        cmd: Argument vector to execute

    Returns:
        ForwardResult with success set only for exit status 0.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        error = _classify_os_error(cmd, e)
        logger.error("%s", error)
        return ForwardResult(success=False, returncode=None, error=error)

    try:
        stdout, _ = await proc.communicate()
    except asyncio.CancelledError:
        # Child must not outlive a cancelled run
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    output = stdout.decode("utf-8", errors="replace") if stdout else ""
    returncode = proc.returncode if proc.returncode is not None else -1

    if returncode == 0:
        return ForwardResult(success=True, returncode=0, output=output)

    return ForwardResult(
        success=False,
        returncode=returncode,
        output=output,
        error=BridgeExitError(returncode, output),
    )


def _report_failure(result: ForwardResult) -> None:
    if isinstance(result.error, BridgeExitError):
        logger.error("adb port forward failed with exit code %d", result.returncode)
        if result.output:
            logger.error("adb output: %s", result.output.rstrip("\r\n"))


async def setup_forward(request: ForwardRequest) -> ForwardResult:
    """Establish the local-to-device port forward.

    Single attempt, no retries.

    Args:
        request: Ports and adb invocation to use

    Returns:
        ForwardResult; ``success`` is True only if adb exited with status 0.
    """
    logger.info("Setting up adb port forward: %s", request.command_line)

    result = await run_captured(request.command)

    if result.success:
        logger.info(
            "adb port forward established (tcp:%d -> tcp:%d)",
            request.local_port,
            request.remote_port,
        )
        if result.output:
            logger.debug("adb output: %s", result.output.rstrip("\r\n"))
    else:
        _report_failure(result)

    return result


async def remove_forward(request: ForwardRequest) -> ForwardResult:
    """Remove a previously established forward for the request's local port."""
    logger.info("Removing adb port forward for tcp:%d", request.local_port)

    result = await run_captured(request.remove_command)

    if result.success:
        logger.info("adb port forward for tcp:%d removed", request.local_port)
    else:
        _report_failure(result)

    return result
