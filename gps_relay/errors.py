"""Failure kinds and process exit codes for the GPS relay."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit status for each way a relay run can end."""

    OK = 0
    USAGE = 2
    BRIDGE_HANDLE = 3
    BRIDGE_SPAWN = 4
    BRIDGE_EXIT = 5
    NETWORK_INIT = 6
    CONNECT = 7
    INTERRUPTED = 130


class RelayError(Exception):
    """Base class for fatal relay failures."""

    exit_code: ExitCode = ExitCode.OK

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize relay error.

        Args:
            message: Human-readable description of the failure
            original_error: Underlying exception, if any
        """
        self.original_error = original_error
        super().__init__(message)


class BridgeHandleError(RelayError):
    """The output pipe for the bridging tool could not be set up."""

    exit_code = ExitCode.BRIDGE_HANDLE


class BridgeSpawnError(RelayError):
    """The bridging tool could not be launched."""

    exit_code = ExitCode.BRIDGE_SPAWN


class BridgeExitError(RelayError):
    """The bridging tool ran but exited with a non-zero status."""

    exit_code = ExitCode.BRIDGE_EXIT

    def __init__(self, returncode: int, output: str = ""):
        self.returncode = returncode
        self.output = output
        super().__init__(f"adb exited with code {returncode}")


class NetworkInitError(RelayError):
    """Address resolution or socket creation failed before connecting."""

    exit_code = ExitCode.NETWORK_INIT


class ConnectError(RelayError):
    """TCP connect to the forwarded port failed."""

    exit_code = ExitCode.CONNECT

    def __init__(self, host: str, port: int, original_error: Exception):
        self.host = host
        self.port = port
        if isinstance(original_error, TimeoutError):
            reason = str(original_error) or "timed out"
        else:
            reason = str(original_error) or type(original_error).__name__
        super().__init__(
            f"Cannot connect to {host}:{port}: {reason}",
            original_error,
        )
