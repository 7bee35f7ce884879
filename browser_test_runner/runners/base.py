"""Abstract base class for test runners."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from browser_test_runner.models.configuration import TestConfiguration
from browser_test_runner.models.result import TestExecutionResult


@dataclass(frozen=True, kw_only=True)
class TestRunner(ABC):
    """Runs one test case at a time and reports its result."""

    __test__ = False

    @abstractmethod
    async def run_test(self, test: TestConfiguration) -> TestExecutionResult:
        """Run a single test and return its result.

        Errors preventing the test from starting are raised. Once the test
        process is running, every outcome is reported through the result.
        """
