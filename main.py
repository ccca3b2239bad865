"""Command-line entry point for the pamonitor sink monitor."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import signal
import sys
import threading

from config import ConfigController
from core.logging import enable_file_logging, log_error, logger, set_level
from interaction.pactl import PactlAdapter
from monitor.runner import MonitorRunner


def configure_logging(level_name: str) -> None:
    """Configure application logging."""

    level = logging._nameToLevel.get(level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    set_level(level_name)


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Track the newest audio sink, cache its state and move streams to it."
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override the configured logging level (e.g. DEBUG).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    config = ConfigController.get_instance().get_config()
    configure_logging(args.log_level or config.get("logging_level", "INFO"))

    if args.diagnostics:
        from diagnostics.runner import default_probes, format_results, run_diagnostics

        results = run_diagnostics(default_probes())
        print(format_results(results))
        return 1 if any(result.failed for result in results) else 0

    if config.get("file_logging_enabled", False):
        log_file_path = Path(config["log_file"])
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    stop_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda _signum, _frame: stop_event.set())

    runner = MonitorRunner.from_config(PactlAdapter.from_config(config), config)
    try:
        logger.info("Connecting to the audio server...")
        runner.wait_until_ready(stop_event)
        runner.start()
        runner.run_forever(stop_event)
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
    except Exception as exc:
        log_error(f"Fatal error: {exc}")
        logger.exception("Monitor stopped")
        return 1
    finally:
        runner.close()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
