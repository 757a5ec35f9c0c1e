"""Main entry point for the MUSH bridge."""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Any

import click
import structlog
from dotenv import load_dotenv

from mushbridge import __version__
from mushbridge.bridge import MushBridge
from mushbridge.config import Settings, load_config, split_address
from mushbridge.utils.logging import setup_logging


logger = structlog.get_logger()


def build_overrides(
    address: str | None,
    host: str | None,
    connect_command: str | None,
    poll_interval: float | None,
    log_level: str | None,
    debug: bool,
) -> dict[str, Any]:
    """Turn command line options into a nested settings override."""
    overrides: dict[str, Any] = {"mush": {}, "api": {}, "polling": {}, "logging": {}}

    if address:
        overrides["api"]["host"], overrides["api"]["port"] = split_address(address)
    if host:
        overrides["mush"]["host"], overrides["mush"]["port"] = split_address(host)
    if connect_command is not None:
        overrides["mush"]["connect_command"] = connect_command
    if poll_interval is not None:
        overrides["polling"]["interval"] = poll_interval
    if log_level:
        overrides["logging"]["level"] = log_level
    if debug:
        overrides["development"] = {"debug": True}
        if not log_level:
            overrides["logging"]["level"] = "DEBUG"

    return {key: value for key, value in overrides.items() if value}


async def run(settings: Settings) -> None:
    """Run the bridge until SIGINT or SIGTERM."""
    bridge = MushBridge(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s, bridge))
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    await bridge.start()
    await bridge.wait_for_shutdown()


def handle_signal(sig: int, bridge: MushBridge) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received {signal.Signals(sig).name}, shutting down...")
    asyncio.ensure_future(bridge.shutdown())


@click.command()
@click.option(
    "-f",
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to YAML configuration file",
)
@click.option(
    "-e",
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=".env",
    help="Path to environment file",
)
@click.option("-a", "--address", help="Local host:port at which to bind the HTTP server")
@click.option("-H", "--host", help="Host and port of the MUSH")
@click.option(
    "-c",
    "--connect-command",
    help="Command used to log in once the telnet connection is established",
)
@click.option("--poll-interval", type=float, help="Seconds between polls")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Override log level from config",
)
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--dry-run", is_flag=True, help="Validate configuration without starting the bridge")
@click.version_option(__version__)
def main(
    config: Path | None,
    env_file: Path,
    address: str | None,
    host: str | None,
    connect_command: str | None,
    poll_interval: float | None,
    log_level: str | None,
    debug: bool,
    dry_run: bool,
) -> None:
    """MUSH who bridge.

    Keeps a telnet session open to a MUSH, polls WHO and resolves room
    names, and serves the online players as JSON on GET /api.
    """
    if env_file.exists():
        load_dotenv(env_file)

    try:
        overrides = build_overrides(
            address, host, connect_command, poll_interval, log_level, debug
        )
        settings = load_config(config, overrides)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        log_file=settings.logging.file if not dry_run else None,
    )

    if dry_run:
        logger.info("Configuration validated successfully")
        click.echo("Configuration is valid!")
        sys.exit(0)

    logger.info(
        "Starting MUSH bridge",
        version=__version__,
        config_file=str(config) if config else None,
        debug=settings.development.debug,
    )

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except OSError as e:
        logger.error("Could not start HTTP listener", error=str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception("Fatal error", error=str(e))
        sys.exit(1)
    finally:
        logger.info("MUSH bridge stopped")


if __name__ == "__main__":
    main()
