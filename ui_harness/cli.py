"""CLI entry point for the UI test harness."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ui_harness.collection import load_units
from ui_harness.config_store import ConfigurationError, ConfigurationStore
from ui_harness.coordinator import SuiteCoordinator
from ui_harness.models.result import UnitResult
from ui_harness.reporting.loading import (
    ReportSinkNotFoundError,
    available_report_sinks,
    load_report_sink_manifest,
)
from ui_harness.reporting.manifest import ReportSinkConfigError
from ui_harness.session_pool import EngineFactory, EngineStartError, start_playwright

STATUS_SYMBOLS = {
    "pass": "✓",
    "fail": "✗",
    "skip": "-",
}

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ABORTED = 2


def log_results_summary(log: logging.Logger, results: Sequence[UnitResult]) -> None:
    """Log a formatted summary of unit results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for result in results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info("%s %s: %s (%.2fs)", symbol, result.name, result.status, result.duration)
        if result.retries_used:
            log.info("  Retries: %d", result.retries_used)
        if result.message:
            log.info("  Message: %s", result.message)


def format_output(results: Sequence[UnitResult]) -> dict[str, Any]:
    """Format unit results for JSON output."""
    all_results = [
        {
            "name": result.name,
            "status": result.status,
            "duration": result.duration,
            "message": result.message,
            "worker": result.worker_id,
        }
        for result in results
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "pass"),
        "failed": sum(1 for r in all_results if r["status"] == "fail"),
        "skipped": sum(1 for r in all_results if r["status"] == "skip"),
        "results": all_results,
    }


def run(
    test_modules: Sequence[str],
    environment: str | None = None,
    config_dir: Path | None = None,
    report_sink: str = "memory",
    report_config_json: str = "{}",
    engine_factory: EngineFactory = start_playwright,
) -> int:
    """Run the collected test units and return an exit code."""
    log = logging.getLogger("ui_harness")

    store = ConfigurationStore(config_dir=config_dir, environment=environment)
    try:
        config = store.load()
    except ConfigurationError as e:
        log.error("Failed to load configuration: %s", e)
        return EXIT_ABORTED

    units = load_units(test_modules)
    if not units:
        log.info("No test units collected")
        print(json.dumps(format_output([])))
        return EXIT_OK

    log.info("Loading report sink: %s", report_sink)
    try:
        sink_context = load_report_sink_manifest(report_sink).open(report_config_json)
    except (ReportSinkNotFoundError, ReportSinkConfigError) as e:
        log.error("Cannot open report sink: %s", e)
        return EXIT_ABORTED

    with sink_context as sink:
        coordinator = SuiteCoordinator(
            config=config, sink=sink, engine_factory=engine_factory
        )
        try:
            results = coordinator.run(units)
        except EngineStartError as e:
            log.error("Run aborted: %s", e)
            return EXIT_ABORTED

    log_results_summary(log, results)
    print(json.dumps(format_output(results), indent=2))

    return EXIT_FAILURES if any(r.status == "fail" for r in results) else EXIT_OK


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run browser UI tests in parallel with retries"
    )
    parser.add_argument(
        "--tests",
        action="append",
        required=True,
        help="Dotted module name to collect test_* functions from (repeatable)",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment name selecting <config-dir>/<env>.yaml (default: qa)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding the environment configuration files",
    )
    parser.add_argument(
        "--report-sink",
        default="memory",
        help="Report sink key, one of: " + ", ".join(available_report_sinks()),
    )
    parser.add_argument(
        "--report-config",
        default="{}",
        help="JSON configuration for the report sink",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = run(
        test_modules=args.tests,
        environment=args.env,
        config_dir=args.config_dir,
        report_sink=args.report_sink,
        report_config_json=args.report_config,
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
