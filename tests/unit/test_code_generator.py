"""Tests for harness file generation."""

from pathlib import Path

import pytest

from browser_test_runner.code_generator import BrowserTestCodeGenerator, html_file_name
from browser_test_runner.errors import GenerationFailed
from browser_test_runner.models.configuration import DartProject


@pytest.fixture
def project(tmp_path: Path) -> DartProject:
    """Create a project with an empty test directory."""
    (tmp_path / "test").mkdir()
    return DartProject(project_path=tmp_path)


@pytest.fixture
def generator(project: DartProject) -> BrowserTestCodeGenerator:
    """Create generator for the project."""
    return BrowserTestCodeGenerator(project=project)


@pytest.mark.parametrize(
    ("test_file_name", "expected"),
    [
        ("button_test.dart", "button_test.html"),
        ("widgets/button_test.dart", "widgets/button_test.html"),
        ("dart_test.dart", "dart_test.html"),
    ],
)
def test_html_file_name(test_file_name: str, expected: str) -> None:
    """Replaces only the trailing .dart extension."""
    assert html_file_name(test_file_name) == expected


class TestCreateTestHtmlFile:
    """Tests for create_test_html_file."""

    async def test_writes_default_harness(
        self, project: DartProject, generator: BrowserTestCodeGenerator
    ) -> None:
        """Writes the default harness loading the generated entry script."""
        path = await generator.create_test_html_file("button_test.dart")

        assert path == project.test_directory / "__test_runner" / "button_test.html"
        content = path.read_text()
        assert 'src="/__test_runner/button_test.dart"' in content
        assert 'src="/packages/unittest/test_controller.js"' in content
        assert "{{test_file_name}}" not in content

    async def test_writes_nested_harness(
        self, project: DartProject, generator: BrowserTestCodeGenerator
    ) -> None:
        """Mirrors the test subdirectory in the generated directory."""
        path = await generator.create_test_html_file("widgets/button_test.dart")

        assert path == (
            project.test_directory / "__test_runner" / "widgets" / "button_test.html"
        )
        assert 'src="/__test_runner/widgets/button_test.dart"' in path.read_text()

    async def test_uses_custom_html_file_as_template(
        self, project: DartProject, generator: BrowserTestCodeGenerator
    ) -> None:
        """Uses the test's own HTML file instead of the default template."""
        (project.test_directory / "custom.html").write_text(
            '<div id="app"></div><script src="/{{test_file_name}}"></script>\n'
        )

        path = await generator.create_test_html_file(
            "button_test.dart", Path("custom.html")
        )

        assert path.read_text() == (
            '<div id="app"></div>'
            '<script src="/__test_runner/button_test.dart"></script>\n'
        )

    async def test_raises_when_custom_html_file_is_missing(
        self, generator: BrowserTestCodeGenerator
    ) -> None:
        """Raises GenerationFailed when the custom HTML file cannot be read."""
        with pytest.raises(GenerationFailed, match="Cannot read HTML file"):
            await generator.create_test_html_file(
                "button_test.dart", Path("missing.html")
            )

    async def test_raises_when_directory_cannot_be_created(
        self, tmp_path: Path
    ) -> None:
        """Raises GenerationFailed when the test directory is not a directory."""
        (tmp_path / "test").write_text("not a directory")
        generator = BrowserTestCodeGenerator(project=DartProject(project_path=tmp_path))

        with pytest.raises(GenerationFailed, match="Cannot write"):
            await generator.create_test_html_file("button_test.dart")


class TestCreateTestDartFile:
    """Tests for create_test_dart_file."""

    async def test_writes_entry_importing_test(
        self, project: DartProject, generator: BrowserTestCodeGenerator
    ) -> None:
        """Writes an entry file running the test with the HTML configuration."""
        path = await generator.create_test_dart_file("button_test.dart")

        assert path == project.test_directory / "__test_runner" / "button_test.dart"
        content = path.read_text()
        assert "import '../button_test.dart' as test;" in content
        assert "useHtmlConfiguration();" in content
        assert "test.main();" in content

    async def test_nested_entry_imports_relative_to_its_directory(
        self, generator: BrowserTestCodeGenerator
    ) -> None:
        """Climbs out of the mirrored subdirectory to import the test."""
        path = await generator.create_test_dart_file("widgets/button_test.dart")

        assert "import '../../widgets/button_test.dart' as test;" in path.read_text()
