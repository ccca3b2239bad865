"""Command-line entry point for running diagnostics."""

from __future__ import annotations

import argparse
from pathlib import Path
import tempfile

from diagnostics.runner import default_probes, format_results, run_diagnostics


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Run pamonitor diagnostics probes.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run probes against a temporary directory and a fake audio server.",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Optional base directory holding config/ and cache/ folders.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run diagnostics and return an exit code."""

    args = parse_args(argv)
    base_dir = args.base_dir

    if args.offline and base_dir is None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp_base = Path(tmp_dir)
            config_dir = tmp_base / "config"
            config_dir.mkdir(parents=True, exist_ok=True)
            (config_dir / "default.yaml").write_text("{}", encoding="utf-8")
            (tmp_base / "cache").mkdir(parents=True, exist_ok=True)

            results = run_diagnostics(default_probes(offline=True, base_dir=tmp_base))
    else:
        results = run_diagnostics(default_probes(offline=args.offline, base_dir=base_dir))

    print(format_results(results))

    has_failures = any(result.failed for result in results)
    return 1 if has_failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
