"""Exceptions raised while setting up a browser test execution."""


class BrowserTestRunnerError(Exception):
    """Base class for errors raised by the browser test runner."""


class GenerationFailed(BrowserTestRunnerError):
    """Raised when a harness file could not be written."""


class ProcessLaunchFailed(BrowserTestRunnerError):
    """Raised when the browser test process could not be started."""


class ServerStartupFailed(BrowserTestRunnerError):
    """Raised when the dev server exits before it reports being ready.

    The accumulated server output is kept on the exception so failure reports
    can show what the server printed before giving up.
    """

    def __init__(self, project_path: str, logs: str, exit_code: int | None) -> None:
        self.project_path = project_path
        self.logs = logs
        self.exit_code = exit_code
        super().__init__(
            f"Pub serve has exited before being ready "
            f"(project={project_path}, exit_code={exit_code}):\n{logs}"
        )


class SetupTimedOut(BrowserTestRunnerError):
    """Raised when the harness or the dev server is not ready before the deadline."""
