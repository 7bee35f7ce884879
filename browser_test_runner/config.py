"""Configuration for the browser test runner."""

from pydantic import BaseModel, Field


class DartBinaries(BaseModel):
    """Locations of the executables the runner launches."""

    content_shell_bin: str = "content_shell"
    pub_bin: str = "pub"


class RunnerConfig(BaseModel):
    """Configuration for running browser tests."""

    binaries: DartBinaries = Field(default_factory=DartBinaries)
    host: str = "127.0.0.1"
    # TODO: pick a free port when 7478 is already taken.
    port: int = 7478
    # Seconds from the start of run_test, setup included, before the test is
    # abandoned; None waits forever.
    test_timeout: float | None = 300.0
