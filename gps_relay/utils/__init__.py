"""Utilities for the GPS relay."""

from gps_relay.utils.console import ColorfulFormatter, RelayFormatter

__all__ = [
    "ColorfulFormatter",
    "RelayFormatter",
]
