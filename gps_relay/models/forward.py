"""Port forward request and result models."""

from dataclasses import dataclass, field

from gps_relay.errors import RelayError

DEFAULT_LOCAL_PORT = 54321
DEFAULT_REMOTE_PORT = 12345


@dataclass(frozen=True)
class ForwardRequest:
    """An adb port forward from a local TCP port to a port on the device."""

    local_port: int = DEFAULT_LOCAL_PORT
    remote_port: int = DEFAULT_REMOTE_PORT
    adb_path: str = "adb"
    serial: str | None = None

    def _base_command(self) -> list[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd += ["-s", self.serial]
        return cmd

    @property
    def command(self) -> list[str]:
        """Argument vector for ``adb forward tcp:LOCAL tcp:REMOTE``."""
        return self._base_command() + [
            "forward",
            f"tcp:{self.local_port}",
            f"tcp:{self.remote_port}",
        ]

    @property
    def remove_command(self) -> list[str]:
        """Argument vector for ``adb forward --remove tcp:LOCAL``."""
        return self._base_command() + ["forward", "--remove", f"tcp:{self.local_port}"]

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


@dataclass
class ForwardResult:
    """Outcome of one adb forward invocation."""

    success: bool
    returncode: int | None
    output: str = ""
    error: RelayError | None = field(default=None, repr=False)
