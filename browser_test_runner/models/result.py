"""Models for test execution results."""

from dataclasses import dataclass
from typing import Literal

from browser_test_runner.models.configuration import TestConfiguration

Outcome = Literal["passed", "failed", "crashed", "incomplete", "timeout"]


@dataclass(frozen=True, kw_only=True)
class TestExecutionResult:
    """Result of a single browser test execution.

    ``outcome`` says how the run ended:

    - ``passed``/``failed``: the end-of-test marker was seen, with or without a
      preceding pass marker.
    - ``crashed``: the browser engine reported a crash.
    - ``incomplete``: the process exited without the end-of-test marker.
    - ``timeout``: the deadline expired and the process was terminated.

    The outcome is fixed by the first ending event, but both outputs are
    collected after the process is stopped: ``test_error_output`` holds every
    stderr line written before then, while ``test_output`` stops at the line
    that ended the run. Lines longer than 1 MiB are cut and marked
    ``[truncated]``.
    """

    __test__ = False

    test: TestConfiguration
    outcome: Outcome
    success: bool
    test_output: str = ""
    test_error_output: str = ""
    duration: float = 0.0
