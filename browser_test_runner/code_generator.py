"""Generation of the HTML harness and Dart entry files for browser tests."""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

from browser_test_runner.errors import GenerationFailed
from browser_test_runner.models.configuration import DartProject

log = logging.getLogger(__name__)

GENERATED_TEST_FILES_DIR_NAME = "__test_runner"

TEST_FILE_NAME_PLACEHOLDER = "{{test_file_name}}"

BROWSER_TEST_HTML_FILE_TEMPLATE = """\
<!DOCTYPE html>

<html>
  <head>
    <title>Default Web Test HTML file</title>
    <meta charset="utf-8" />
    <meta name="description" content="Runs a Web test" />
  </head>
  <body>
    <!-- Scripts -->
    <script type="application/dart" src="/{{test_file_name}}"></script>
    <script type="text/javascript" src="/packages/unittest/test_controller.js"></script>
  </body>
</html>
"""

BROWSER_TEST_DART_FILE_TEMPLATE = """\
import 'package:unittest/html_config.dart';
import '{test_import}' as test;

main() {{
  useHtmlConfiguration();
  test.main();
}}
"""


def html_file_name(test_file_name: str) -> str:
    """Return the harness page name for a Dart test file."""
    return re.sub(r"\.dart$", ".html", test_file_name)


class HarnessGenerator(Protocol):
    """Writes the files a browser test is loaded from."""

    async def create_test_html_file(
        self, test_file_name: str, html_file_path: Path | None = None
    ) -> Path:
        """Write the harness page for the test and return its path."""

    async def create_test_dart_file(self, test_file_name: str) -> Path:
        """Write the Dart entry file for the test and return its path."""


@dataclass(frozen=True, kw_only=True)
class BrowserTestCodeGenerator:
    """Generates harness files under ``test/__test_runner`` of a project."""

    project: DartProject

    @property
    def generated_directory(self) -> Path:
        return self.project.test_directory / GENERATED_TEST_FILES_DIR_NAME

    async def create_test_html_file(
        self, test_file_name: str, html_file_path: Path | None = None
    ) -> Path:
        """Write the harness page loading the generated Dart entry file.

        A test that ships its own HTML file gets that file used as the
        template instead of the default one. Its ``{{test_file_name}}``
        placeholder is substituted the same way.
        """
        if html_file_path is None:
            template = BROWSER_TEST_HTML_FILE_TEMPLATE
        else:
            source = self.project.test_directory / html_file_path
            try:
                template = await asyncio.to_thread(source.read_text, encoding="utf-8")
            except OSError as e:
                raise GenerationFailed(f"Cannot read HTML file {source}: {e}") from e

        entry_script = PurePosixPath(GENERATED_TEST_FILES_DIR_NAME) / test_file_name
        content = template.replace(TEST_FILE_NAME_PLACEHOLDER, str(entry_script))

        target = self.generated_directory / html_file_name(test_file_name)
        await self._write(target, content)
        return target

    async def create_test_dart_file(self, test_file_name: str) -> Path:
        """Write the Dart entry file that runs the test with the HTML config."""
        # Generated files mirror the test path one directory deeper.
        depth = len(PurePosixPath(test_file_name).parts)
        test_import = "../" * depth + test_file_name
        content = BROWSER_TEST_DART_FILE_TEMPLATE.format(test_import=test_import)

        target = self.generated_directory / test_file_name
        await self._write(target, content)
        return target

    async def _write(self, target: Path, content: str) -> None:
        def write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            raise GenerationFailed(f"Cannot write {target}: {e}") from e

        log.debug("Generated %s", target)
