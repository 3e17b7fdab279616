"""Relay settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

from gps_relay.models import ForwardRequest
from gps_relay.models.forward import DEFAULT_LOCAL_PORT, DEFAULT_REMOTE_PORT
from gps_relay.services.stream import DEFAULT_READ_SIZE

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Relay settings.

    Defaults reproduce ``adb forward tcp:54321 tcp:12345`` followed by a
    connection to 127.0.0.1:54321.
    """

    # Bridge
    adb_path: str = field(default="adb")
    adb_serial: str | None = field(default=None)
    local_port: int = field(default=DEFAULT_LOCAL_PORT)
    remote_port: int = field(default=DEFAULT_REMOTE_PORT)

    # Stream
    host: str = field(default="127.0.0.1")
    settle_delay: float = field(default=1.0)
    connect_timeout: float = field(default=5.0)
    read_size: int = field(default=DEFAULT_READ_SIZE)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from GPS_RELAY_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        settings = cls(
            adb_path=os.getenv("GPS_RELAY_ADB_PATH", "adb"),
            adb_serial=os.getenv("GPS_RELAY_ADB_SERIAL") or None,
            local_port=cls._get_port("GPS_RELAY_LOCAL_PORT", DEFAULT_LOCAL_PORT),
            remote_port=cls._get_port("GPS_RELAY_REMOTE_PORT", DEFAULT_REMOTE_PORT),
            host=os.getenv("GPS_RELAY_HOST", "127.0.0.1"),
            settle_delay=cls._get_float("GPS_RELAY_SETTLE_DELAY", 1.0),
            connect_timeout=cls._get_positive_float("GPS_RELAY_CONNECT_TIMEOUT", 5.0),
            read_size=cls._get_positive_int("GPS_RELAY_READ_SIZE", DEFAULT_READ_SIZE),
            log_level=os.getenv("GPS_RELAY_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("GPS_RELAY_LOG_COLORS", True),
        )
        logger.debug(
            "Settings loaded: adb=%s, forward tcp:%d -> tcp:%d, settle_delay=%.1fs",
            settings.adb_path,
            settings.local_port,
            settings.remote_port,
            settings.settle_delay,
        )
        return settings

    def forward_request(self) -> ForwardRequest:
        """Build the port forward request for these settings."""
        return ForwardRequest(
            local_port=self.local_port,
            remote_port=self.remote_port,
            adb_path=self.adb_path,
            serial=self.adb_serial,
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @classmethod
    def _get_port(cls, key: str, default: int) -> int:
        port = cls._get_int(key, default)
        if not 0 < port < 65536:
            logger.warning("%s must be in 1..65535, got %d. Using default: %d", key, port, default)
            return default
        return port

    @classmethod
    def _get_positive_int(cls, key: str, default: int) -> int:
        value = cls._get_int(key, default)
        if value <= 0:
            logger.warning("%s must be > 0, got %d. Using default: %d", key, value, default)
            return default
        return value

    @classmethod
    def _get_positive_float(cls, key: str, default: float) -> float:
        value = cls._get_float(key, default)
        if value <= 0:
            logger.warning("%s must be > 0, got %s. Using default: %.1f", key, value, default)
            return default
        return value

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get a non-negative float from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %.1f", key, value, default)
            return default

        if parsed < 0:
            logger.warning("%s must be >= 0, got %s. Using default: %.1f", key, value, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")
