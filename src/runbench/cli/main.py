"""
Command-line interface for the runbench benchmark harness.

This module parses the command line, loads and validates the configuration,
runs the selected benchmark mode, prints a plain-text summary and hands the
result record to the storage layer.
"""

import argparse
import logging
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..models.runtime import RunContext
from ..orchestration import MODES, BenchmarkRunner, format_summary, verify_variants
from ..storage import ResultArchive
from ..validation import (
    HarnessError,
    ValidationError,
    handle_cli_error,
    validate_positive_integer,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="runbench",
        description="Compare startup, memory, CPU and network resilience of two application runtimes.",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=MODES,
        default="comparison",
        help="Benchmark mode to run (default: comparison).",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config.toml. Defaults to conf/config.toml in the project root.",
    )
    parser.add_argument(
        "-v",
        "--variant",
        type=str,
        help="Variant id to run (baseline, network-test and startup modes).",
    )
    parser.add_argument(
        "-n",
        "--iterations",
        type=str,
        help="Number of startup iterations. Defaults to harness.startup_iterations.",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Print the summary without writing results to disk.",
    )
    parser.add_argument(
        "--kill-existing",
        action="store_true",
        help="Terminate already running instances of a variant instead of aborting.",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Only check that every variant can be launched, then exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log per-tick readings.",
    )
    return parser


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line entry point.

    Configuration errors and precondition violations (a variant already
    running) exit with status 1 before any launch. Skipped iterations never
    fail the run; missing data is reported as N/A.

    Raises:
        SystemExit: On configuration or validation errors
    """
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except (FileNotFoundError, KeyError, tomllib.TOMLDecodeError, ValidationError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=True,
            logger=logger,
        )

    if args.verify:
        checks = verify_variants(app_config.variants)
        sys.exit(0 if all(check["ok"] for check in checks) else 1)

    iterations = None
    if args.iterations is not None:
        try:
            iterations = validate_positive_integer(
                args.iterations, min_value=1, max_value=1000, field_name="--iterations"
            )
        except ValidationError as e:
            handle_cli_error(error=e, context="argument validation", exit_code=1, logger=logger)

    context = RunContext(mode=args.mode)
    try:
        runner = BenchmarkRunner(app_config, kill_existing=args.kill_existing)
        record = runner.run(args.mode, context, variant_id=args.variant, iterations=iterations)
    except (ValidationError, HarnessError) as e:
        handle_cli_error(error=e, context=f"{args.mode} run", exit_code=1, logger=logger)

    summary = format_summary(record)
    print(summary)

    if args.no_save:
        logger.info("--no-save given; results not written")
        return

    archive = ResultArchive(app_config.storage)
    run_dir = archive.save_run(record, context, summary_text=summary)
    logger.info(f"Results saved to: {run_dir}")


if __name__ == "__main__":
    main_cli()
