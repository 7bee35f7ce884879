"""CLI entry point for running a browser test."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from browser_test_runner.config import RunnerConfig
from browser_test_runner.errors import BrowserTestRunnerError
from browser_test_runner.models.configuration import DartProject, TestConfiguration
from browser_test_runner.models.result import TestExecutionResult
from browser_test_runner.runners.browser import BrowserTestRunner

STATUS_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "crashed": "💥",
    "incomplete": "❗",
    "timeout": "⏱️",
}


def log_result_summary(log: logging.Logger, result: TestExecutionResult) -> None:
    """Log a formatted summary of a test execution result."""
    log.info("=" * 80)
    log.info("Test Result Summary:")
    log.info("=" * 80)

    symbol = STATUS_SYMBOLS.get(result.outcome, "?")
    log.info(
        "%s %s: %s (%.2fs)",
        symbol,
        result.test.test_file_name,
        result.outcome,
        result.duration,
    )
    if result.test_output:
        log.info("  Output:\n%s", result.test_output)
    if result.test_error_output:
        log.info("  Error output:\n%s", result.test_error_output)


def format_output(result: TestExecutionResult) -> dict[str, Any]:
    """Format a test execution result for JSON output."""
    return {
        "test": result.test.test_file_name,
        "outcome": result.outcome,
        "success": result.success,
        "duration": result.duration,
        "output": result.test_output,
        "error_output": result.test_error_output,
    }


def format_error(test: TestConfiguration, error: Exception) -> dict[str, Any]:
    """Format a test that could not be started for JSON output."""
    return {
        "test": test.test_file_name,
        "outcome": "error",
        "success": False,
        "duration": 0.0,
        "output": "",
        "error_output": str(error),
    }


async def run(
    config: RunnerConfig,
    project_path: Path,
    test: TestConfiguration,
) -> int:
    """Run a browser test and return exit code."""
    log = logging.getLogger("browser_test_runner")

    project = DartProject(project_path=project_path.resolve())
    log.info("Running %s from %s", test.test_file_name, project.project_path)

    async with BrowserTestRunner.from_config(config, project) as runner:
        try:
            result = await runner.run_test(test)
        except BrowserTestRunnerError as e:
            log.error("Test could not be run: %s", e)
            print(json.dumps(format_error(test, e), indent=2))
            return 1

    log_result_summary(log, result)
    print(json.dumps(format_output(result), indent=2))

    return 0 if result.success else 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run a Dart browser test in Content Shell"
    )
    parser.add_argument(
        "--project-path",
        type=Path,
        required=True,
        help="Root directory of the Dart project",
    )
    parser.add_argument(
        "--test-file",
        required=True,
        help="Test file path, relative to the project test directory",
    )
    parser.add_argument(
        "--html-file",
        type=Path,
        default=None,
        help="Custom HTML harness file, relative to the project test directory",
    )
    parser.add_argument(
        "--config",
        default="{}",
        help="JSON configuration for the runner (binaries, port, test_timeout)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = RunnerConfig(**json.loads(args.config))
    test = TestConfiguration(
        test_file_name=args.test_file, html_file_path=args.html_file
    )

    exit_code = asyncio.run(
        run(
            config=config,
            project_path=args.project_path,
            test=test,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
