"""
Command-line host for the rebuild coordinator.

Development servers normally embed RebuildCoordinator directly and pass
their own reload sink. This host runs it standalone with the sink selected
in config.toml.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..config.validators import LOG_LEVELS
from ..orchestration import RebuildCoordinator, SignalHandler
from ..validation import ConfigError, handle_cli_error

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the standalone host."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger().setLevel(level)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch a native module's sources and rebuild it on change."
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config.toml. Defaults to conf/config.toml in the repository.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override [logging] level from the configuration.",
    )
    return parser.parse_args(argv)


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Load configuration, run the coordinator until SIGINT/SIGTERM.

    Returns:
        0 after a signal-driven shutdown

    Raises:
        SystemExit: With code 1 on configuration errors
    """
    args = parse_args(argv)
    setup_logging(args.log_level or "INFO")

    if args.config is not None:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except ConfigError as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    logging.getLogger().setLevel(args.log_level or app_config.logging.level)

    coordinator = RebuildCoordinator(app_config)

    with SignalHandler(coordinator.request_stop):
        try:
            asyncio.run(coordinator.run())
        except ConfigError as e:
            handle_cli_error(error=e, context="watch configuration", exit_code=1, logger=logger)

    logger.info(
        f"Processed {coordinator.events_received} filesystem events, "
        f"triggered {coordinator.rebuilds_triggered} rebuilds"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main_cli())
