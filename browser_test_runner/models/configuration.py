"""Models describing the test to run and the project it belongs to."""

from pathlib import Path

from pydantic import Field, field_validator

from browser_test_runner.models.base import Model

TEST_DIRECTORY_NAME = "test"


class DartProject(Model):
    """A Dart project whose ``test/`` directory holds the tests to run."""

    project_path: Path = Field(..., description="Root directory of the project")

    @property
    def test_directory(self) -> Path:
        """Directory served by the dev server and holding the tests."""
        return self.project_path / TEST_DIRECTORY_NAME


class TestConfiguration(Model):
    """A single browser test case to execute."""

    __test__ = False

    test_file_name: str = Field(
        ..., description="Test file path, relative to the project test directory"
    )
    html_file_path: Path | None = Field(
        default=None,
        description="Custom HTML harness, relative to the project test directory",
    )

    @field_validator("test_file_name")
    @classmethod
    def _must_be_dart_file(cls, value: str) -> str:
        if not value.endswith(".dart"):
            raise ValueError(f"Test file must be a .dart file: {value}")
        return value
