"""Entry point for the GPS relay client."""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from gps_relay.config import Settings
from gps_relay.errors import ExitCode
from gps_relay.relay import run_relay, run_remove
from gps_relay.utils.console import RelayFormatter

logger = logging.getLogger("gps_relay")


def configure_logging(settings: Settings) -> None:
    """Configure colorful stderr logging for the gps_relay package.

    Colors are disabled when stderr is not a TTY.
    """
    use_colors = settings.log_colors and sys.stderr.isatty()

    relay_logger = logging.getLogger("gps_relay")
    relay_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # Only add handler if not already configured
    if not relay_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(RelayFormatter(use_colors=use_colors))
        relay_logger.addHandler(handler)
        relay_logger.propagate = False

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gps-relay",
        description=(
            "Forward a local TCP port to the GPS service on an Android device "
            "with adb, then print the incoming GPS data."
        ),
    )
    parser.add_argument("--adb", dest="adb_path", help="Path to the adb executable")
    parser.add_argument("-s", "--serial", dest="adb_serial", help="Device serial (adb -s)")
    parser.add_argument("--local-port", type=int, help="Local TCP port (default: 54321)")
    parser.add_argument("--remote-port", type=int, help="Device TCP port (default: 12345)")
    parser.add_argument(
        "--settle-delay",
        type=float,
        help="Seconds to wait after forwarding before connecting (default: 1.0)",
    )
    parser.add_argument(
        "--remove",
        action="store_true",
        help="Remove the forward for the local port and exit",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (default: INFO)",
    )
    return parser


def _port(parser: argparse.ArgumentParser, name: str, value: int | None) -> None:
    if value is not None and not 0 < value < 65536:
        parser.error(f"{name} must be in 1..65535, got {value}")


def parse_settings(argv: list[str] | None = None) -> tuple[Settings, bool]:
    """Merge command-line flags over environment settings.

    Returns:
        Tuple of (settings, remove_only).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _port(parser, "--local-port", args.local_port)
    _port(parser, "--remote-port", args.remote_port)
    if args.settle_delay is not None and args.settle_delay < 0:
        parser.error(f"--settle-delay must be >= 0, got {args.settle_delay}")

    overrides = {
        key: value
        for key, value in vars(args).items()
        if key != "remove" and value is not None
    }
    return replace(Settings.from_env(), **overrides), args.remove


def main(argv: list[str] | None = None) -> int:
    """Run the relay and return the process exit code."""
    settings, remove_only = parse_settings(argv)
    configure_logging(settings)

    try:
        if remove_only:
            return asyncio.run(run_remove(settings))
        return asyncio.run(run_relay(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return int(ExitCode.INTERRUPTED)


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
