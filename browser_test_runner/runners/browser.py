"""Runner for Dart tests that run in a web browser."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from yarl import URL

from browser_test_runner.code_generator import (
    GENERATED_TEST_FILES_DIR_NAME,
    BrowserTestCodeGenerator,
    HarnessGenerator,
    html_file_name,
)
from browser_test_runner.config import RunnerConfig
from browser_test_runner.dev_server import DevServerRegistry
from browser_test_runner.errors import ProcessLaunchFailed, SetupTimedOut
from browser_test_runner.line_protocol import classify_line
from browser_test_runner.models.configuration import DartProject, TestConfiguration
from browser_test_runner.models.result import Outcome, TestExecutionResult
from browser_test_runner.processes import iter_lines, terminate
from browser_test_runner.runners.base import TestRunner

log = logging.getLogger(__name__)

# Seconds the readers get to drain the pipes once the process is stopped.
DRAIN_TIMEOUT = 5.0


@dataclass(kw_only=True)
class _Execution:
    """Output accumulated while a test process runs."""

    test: TestConfiguration
    started_at: float
    ended: asyncio.Event = field(default_factory=asyncio.Event)
    outcome: Outcome | None = None
    output: list[str] = field(default_factory=list)
    error_output: list[str] = field(default_factory=list)
    success: bool = False

    def complete(self, outcome: Outcome) -> None:
        """Record how the run ended, unless an earlier event already did."""
        if self.outcome is not None:
            return

        log.info("Test %s completed: %s", self.test.test_file_name, outcome)
        self.outcome = outcome
        self.ended.set()

    def build_result(self, finished_at: float) -> TestExecutionResult:
        """Build the result of a completed execution."""
        assert self.outcome is not None
        return TestExecutionResult(
            test=self.test,
            outcome=self.outcome,
            success=self.outcome == "passed",
            test_output="\n".join(self.output),
            test_error_output="\n".join(self.error_output),
            duration=finished_at - self.started_at,
        )


@dataclass(frozen=True, kw_only=True)
class BrowserTestRunner(TestRunner):
    """Runs browser tests in Content Shell against a shared pub serve."""

    config: RunnerConfig
    project: DartProject
    registry: DevServerRegistry
    generator: HarnessGenerator

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: RunnerConfig, project: DartProject
    ) -> AsyncGenerator["BrowserTestRunner", None]:
        """Create a runner whose dev servers are stopped on exit."""
        registry = DevServerRegistry(pub_bin=config.binaries.pub_bin, port=config.port)
        try:
            yield cls(
                config=config,
                project=project,
                registry=registry,
                generator=BrowserTestCodeGenerator(project=project),
            )
        finally:
            await registry.close()

    async def run_test(self, test: TestConfiguration) -> TestExecutionResult:
        """Generate the harness, wait for pub serve and run the test.

        Raises:
            GenerationFailed: If a harness file could not be written.
            ServerStartupFailed: If pub serve could not be started.
            ProcessLaunchFailed: If Content Shell could not be started.
            SetupTimedOut: If setup did not finish before the deadline.

        """
        timeout = self.config.test_timeout
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        log.info("Preparing browser test %s", test.test_file_name)
        try:
            async with asyncio.timeout_at(deadline):
                await asyncio.gather(
                    self.generator.create_test_html_file(
                        test.test_file_name, test.html_file_path
                    ),
                    self.generator.create_test_dart_file(test.test_file_name),
                    self.registry.acquire_server(self.project),
                )
        except TimeoutError as e:
            raise SetupTimedOut(
                f"Test {test.test_file_name} was not ready to run "
                f"within {timeout} seconds"
            ) from e

        return await self._execute(
            test, self.build_test_url(test.test_file_name), deadline
        )

    def build_test_url(self, test_file_name: str) -> URL:
        """Return the URL of the harness page running the given test file."""
        return URL.build(
            scheme="http",
            host=self.config.host,
            port=self.config.port,
            path=f"/{GENERATED_TEST_FILES_DIR_NAME}/{html_file_name(test_file_name)}",
        )

    async def _execute(
        self, test: TestConfiguration, url: URL, deadline: float | None
    ) -> TestExecutionResult:
        loop = asyncio.get_running_loop()
        content_shell_bin = self.config.binaries.content_shell_bin

        log.info("Running %s in Content Shell: %s", test.test_file_name, url)
        try:
            process = await asyncio.create_subprocess_exec(
                content_shell_bin,
                "--args",
                "--dump-render-tree",
                "--disable-gpu",
                str(url),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessLaunchFailed(
                f"Could not launch {content_shell_bin}: {e}"
            ) from e

        execution = _Execution(test=test, started_at=loop.time())
        readers = [
            asyncio.create_task(self._read_stdout(execution, process)),
            asyncio.create_task(self._read_stderr(execution, process)),
        ]

        try:
            try:
                async with asyncio.timeout_at(deadline):
                    await execution.ended.wait()
            except TimeoutError:
                log.warning(
                    "Test %s did not complete within %s seconds",
                    test.test_file_name,
                    self.config.test_timeout,
                )
                execution.complete("timeout")
        finally:
            await terminate(process)
            await self._drain(readers)

        return execution.build_result(loop.time())

    async def _drain(self, readers: list[asyncio.Task[None]]) -> None:
        """Let the readers consume what the stopped process left in its pipes."""
        _, pending = await asyncio.wait(readers, timeout=DRAIN_TIMEOUT)
        for reader in pending:
            reader.cancel()

        results = await asyncio.gather(*readers, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                log.error("Reading Content Shell output failed", exc_info=result)

    async def _read_stdout(
        self, execution: _Execution, process: asyncio.subprocess.Process
    ) -> None:
        assert process.stdout is not None

        async for line in iter_lines(process.stdout):
            outcome = self._handle_line(execution, line)
            if outcome is not None:
                execution.complete(outcome)
                return

        exit_code = await process.wait()
        if execution.outcome is None:
            log.warning(
                "Content Shell exited with code %d before the end of %s",
                exit_code,
                execution.test.test_file_name,
            )
        execution.complete("incomplete")

    def _handle_line(self, execution: _Execution, line: str) -> Outcome | None:
        """Apply one stdout line, returning the outcome once the run ended."""
        kind = classify_line(line)
        if kind == "content":
            execution.output.append(line)
        elif kind == "pass":
            execution.output.append(line)
            execution.success = True
        elif kind == "terminal":
            return "passed" if execution.success else "failed"
        elif kind == "crash":
            log.error("Content Shell crashed running %s", execution.test.test_file_name)
            return "crashed"
        return None

    async def _read_stderr(
        self, execution: _Execution, process: asyncio.subprocess.Process
    ) -> None:
        assert process.stderr is not None

        async for line in iter_lines(process.stderr):
            execution.error_output.append(line)
