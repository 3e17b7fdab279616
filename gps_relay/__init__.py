"""GPS relay client: adb port forward plus TCP stream reader."""

from gps_relay.config import Settings
from gps_relay.errors import ExitCode
from gps_relay.relay import run_relay

__version__ = "0.1.0"

__all__ = ["ExitCode", "Settings", "run_relay"]
