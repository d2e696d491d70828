"""Command-line entry point for grafana-keeper.

Two modes, chosen once at start:

* save-script (``--save-script`` with any value but ``false``): write every
  data source and dashboard to the work directory and exit.
* keep (default): replace Grafana's objects with the definitions in the
  work directory, then save new and changed objects every retry interval
  until the process is stopped.
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import load_config, redact_url
from .config_loader import load_hierarchical_config
from .config_schema import build_config
from .core.client import GrafanaClient
from .errors import ConfigError, KeeperError
from .keeper.engine import Keeper
from .keeper.retry import RetryPolicy
from .logger import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grafana-keeper",
        description="Keep Grafana data sources and dashboards in JSON files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Save the current Grafana objects once, then review the files
  grafana-keeper --grafana-url http://localhost:3000 \\
      --work-dir /var/grafana-dashboards --save-script true

  # Restore objects from the work directory and keep saving changes
  GRAFANA_USER=admin GRAFANA_PASSWORD=admin grafana-keeper \\
      --grafana-url http://localhost:3000 --work-dir /var/grafana-dashboards

Note: keep mode starts by deleting every data source and dashboard in
Grafana. Run save-script mode first if the server holds objects that are
not yet in the work directory.
        """,
    )

    parser.add_argument(
        "--grafana-url",
        help="Grafana server url, usually http://localhost:3000",
    )
    parser.add_argument(
        "--work-dir",
        help="Directory to save grafana objects, usually /var/grafana-dashboards",
    )
    parser.add_argument(
        "--save-script",
        default="false",
        help="Save-script mode: any value other than 'false' saves all objects and exits",
    )
    parser.add_argument(
        "--retry-interval",
        type=float,
        help="Seconds between polling passes and bootstrap retries (default: 30)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check connectivity to Grafana and exit",
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML config file (overrides KEEPER_CONFIG and discovery)",
    )
    parser.add_argument(
        "--log-file",
        help="Also append log records to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"grafana-keeper version {__version__}",
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Entry point that parses CLI arguments and runs the selected mode."""
    args = build_parser().parse_args(argv)

    load_dotenv()

    try:
        unified = build_config(load_hierarchical_config(args.config))
    except (ConfigError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    setup_logging(
        level=unified.logging.level,
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        log_format=args.log_format or unified.logging.format,
    )

    try:
        config = load_config(
            grafana_url=args.grafana_url,
            work_dir=args.work_dir,
            save_script=args.save_script,
            retry_interval=args.retry_interval,
            fallbacks=unified,
        )
    except ConfigError as exc:
        logger.critical("%s", exc)
        sys.exit(EXIT_CONFIG_ERROR)

    logger.info("### Grafana-keeper started...")
    logger.info("grafana-url: %s", redact_url(config.grafana_url))
    logger.info("work-dir: %s", config.work_dir)
    if config.save_script:
        logger.info("save-script mode on")

    client = GrafanaClient(config)
    keeper = Keeper(client, Path(config.work_dir))

    try:
        if args.check:
            sys.exit(_check(client))
        if config.save_script:
            sys.exit(_snapshot(keeper))
        keeper.keep(RetryPolicy(interval=config.retry_interval))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(EXIT_OK)
    finally:
        client.close()


def _check(client: GrafanaClient) -> int:
    try:
        version = client.validate_connection()
    except KeeperError as exc:
        logger.error("Grafana connection failed: %s", exc)
        return EXIT_FAILURE
    logger.info(
        "Grafana connected successfully. Version: %s", version or "unknown"
    )
    return EXIT_OK


def _snapshot(keeper: Keeper) -> int:
    try:
        report = keeper.snapshot()
    except KeeperError as exc:
        logger.critical("Snapshot failed: %s. Grafana-keeper terminated", exc)
        return EXIT_FAILURE
    logger.info("Snapshot saved: %s", report.summary())
    logger.info("### Grafana-keeper finished ok")
    return EXIT_OK


if __name__ == "__main__":
    run()
