"""Fixtures for integration tests running fake pub and Content Shell binaries."""

import shlex
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Protocol

import pytest

from browser_test_runner.code_generator import BrowserTestCodeGenerator
from browser_test_runner.config import DartBinaries, RunnerConfig
from browser_test_runner.dev_server import DevServerRegistry
from browser_test_runner.models.configuration import DartProject
from browser_test_runner.runners.browser import BrowserTestRunner

# Fake pub serve: records its arguments in the working directory, reports a
# completed build and keeps serving until terminated.
SERVER_READY_SCRIPT = """\
echo "$@" >> spawned.log
echo "Loading source assets..."
echo "Serving app test on http://localhost:$4"
echo "Build completed successfully"
exec sleep 30
"""

FAILING_SERVER_SCRIPT = """\
echo "$@" >> spawned.log
echo "Resolving dependencies..."
echo "Loading source assets..."
echo "Could not find a file named \\"pubspec.yaml\\"" >&2
exit 1
"""


def print_lines(*lines: str, then: str = "exec sleep 30") -> str:
    """Return a shell script body printing the given lines to stdout."""
    body = "".join(f"printf '%s\\n' {shlex.quote(line)}\n" for line in lines)
    return f"{body}{then}\n"


def print_long_line(*, stream: str = "stdout") -> str:
    """Return a shell script body printing a 2 MB line of ``a`` characters."""
    redirect = " >&2" if stream == "stderr" else ""
    return (
        "line=$(head -c 2000000 /dev/zero | tr '\\0' a)\n"
        f"printf '%s\\n' \"$line\"{redirect}\n"
    )


class WriteExecutableFn(Protocol):
    """Protocol for fake binary creation function."""

    def __call__(self, name: str, body: str) -> Path:
        """Write an executable shell script and return its path."""


class CreateProjectFn(Protocol):
    """Protocol for project creation function."""

    def __call__(self, name: str) -> DartProject:
        """Create a project with a test directory."""


class MakeRegistryFn(Protocol):
    """Protocol for registry creation function."""

    def __call__(self, pub_bin: Path | str) -> DevServerRegistry:
        """Create a registry that is closed after the test."""


class MakeRunnerFn(Protocol):
    """Protocol for runner creation function."""

    def __call__(
        self,
        content_shell_body: str,
        *,
        pub_body: str = SERVER_READY_SCRIPT,
        test_timeout: float | None = 30.0,
    ) -> BrowserTestRunner:
        """Create a runner using fake binaries with the given script bodies."""


@pytest.fixture
def write_executable(tmp_path: Path) -> WriteExecutableFn:
    """Return a function to write fake binaries."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _write(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text(f"#!/bin/sh\n{body}")
        path.chmod(0o755)
        return path

    return _write


@pytest.fixture
def create_project(tmp_path: Path) -> CreateProjectFn:
    """Return a function to create Dart project directories."""

    def _create(name: str) -> DartProject:
        project_path = tmp_path / "projects" / name
        (project_path / "test").mkdir(parents=True)
        return DartProject(project_path=project_path)

    return _create


@pytest.fixture
def project(create_project: CreateProjectFn) -> DartProject:
    """Create the default project."""
    return create_project("app")


@pytest.fixture
async def make_registry() -> AsyncGenerator[MakeRegistryFn, None]:
    """Return a function creating registries, stopping their servers afterwards."""
    registries: list[DevServerRegistry] = []

    def _make(pub_bin: Path | str) -> DevServerRegistry:
        registry = DevServerRegistry(pub_bin=str(pub_bin), port=7478)
        registries.append(registry)
        return registry

    yield _make

    for registry in registries:
        await registry.close()


@pytest.fixture
def make_runner(
    project: DartProject,
    write_executable: WriteExecutableFn,
    make_registry: MakeRegistryFn,
) -> MakeRunnerFn:
    """Return a function to create runners for the default project."""

    def _make(
        content_shell_body: str,
        *,
        pub_body: str = SERVER_READY_SCRIPT,
        test_timeout: float | None = 30.0,
    ) -> BrowserTestRunner:
        config = RunnerConfig(
            binaries=DartBinaries(
                content_shell_bin=str(
                    write_executable("content_shell", content_shell_body)
                ),
                pub_bin=str(write_executable("pub", pub_body)),
            ),
            test_timeout=test_timeout,
        )
        return BrowserTestRunner(
            config=config,
            project=project,
            registry=make_registry(config.binaries.pub_bin),
            generator=BrowserTestCodeGenerator(project=project),
        )

    return _make
