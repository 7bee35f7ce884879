"""Registry of the pub serve processes that serve project test directories."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from browser_test_runner.errors import ServerStartupFailed
from browser_test_runner.models.configuration import DartProject
from browser_test_runner.processes import iter_lines, terminate

log = logging.getLogger(__name__)

READY_MARKER = "Build completed"


@dataclass(kw_only=True)
class ProjectServerEntry:
    """Startup state of the dev server for one project test directory."""

    project_path: str
    ready: asyncio.Future[None]
    logs: list[str] = field(default_factory=list)
    process: asyncio.subprocess.Process | None = None
    watcher: asyncio.Task[None] | None = None

    @property
    def log_text(self) -> str:
        """Everything the server printed so far, one line per entry."""
        return "".join(f"{line}\n" for line in self.logs)


@dataclass(frozen=True, kw_only=True)
class DevServerRegistry:
    """Starts at most one ``pub serve`` per project and shares its readiness.

    Servers that became ready keep running until :meth:`close` is called, so
    every later test of the same project reuses them. A server that failed to
    start stays failed for the lifetime of the registry.
    """

    pub_bin: str
    port: int
    _entries: dict[str, ProjectServerEntry] = field(
        default_factory=dict, init=False, repr=False
    )

    async def acquire_server(self, project: DartProject) -> None:
        """Wait until the dev server for the project is ready to serve files.

        Raises:
            ServerStartupFailed: If the server exited before reporting that
                its build completed.

        """
        key = str(project.test_directory.resolve())

        # No await between lookup and insert: concurrent callers on the event
        # loop always find the entry created by the first one.
        entry = self._entries.get(key)
        if entry is None:
            entry = ProjectServerEntry(
                project_path=key,
                ready=asyncio.get_running_loop().create_future(),
            )
            self._entries[key] = entry
            entry.watcher = asyncio.create_task(
                self._start_server(entry, project.project_path)
            )

        await asyncio.shield(entry.ready)

    async def close(self) -> None:
        """Stop every server process started by this registry."""
        entries = list(self._entries.values())
        await asyncio.gather(
            *(terminate(e.process) for e in entries if e.process is not None)
        )

        for entry in entries:
            if entry.watcher is not None and entry.process is None:
                entry.watcher.cancel()
        await asyncio.gather(
            *(e.watcher for e in entries if e.watcher is not None),
            return_exceptions=True,
        )

    async def _start_server(self, entry: ProjectServerEntry, cwd: Path) -> None:
        try:
            await self._serve(entry, cwd)
        except Exception:
            log.exception("Watching pub serve for %s failed", entry.project_path)
            raise
        finally:
            # Waiters must never hang, whatever stopped the watcher.
            if not entry.ready.done():
                exit_code = (
                    entry.process.returncode if entry.process is not None else None
                )
                entry.ready.set_exception(
                    ServerStartupFailed(entry.project_path, entry.log_text, exit_code)
                )

    async def _serve(self, entry: ProjectServerEntry, cwd: Path) -> None:
        log.info(
            "Starting pub serve for %s on port %d", entry.project_path, self.port
        )
        try:
            process = await asyncio.create_subprocess_exec(
                self.pub_bin,
                "serve",
                "test",
                "--port",
                str(self.port),
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            entry.logs.append(f"Could not launch {self.pub_bin}: {e}")
            entry.ready.set_exception(
                ServerStartupFailed(entry.project_path, entry.log_text, None)
            )
            return

        entry.process = process
        assert process.stdout is not None
        assert process.stderr is not None

        await asyncio.gather(
            self._read_stdout(entry, process.stdout),
            self._read_stderr(entry, process.stderr),
        )
        exit_code = await process.wait()

        if entry.ready.done():
            log.info(
                "Pub serve for %s exited with code %d", entry.project_path, exit_code
            )
            return

        log.error(
            "Pub serve for %s exited with code %d before being ready",
            entry.project_path,
            exit_code,
        )
        entry.ready.set_exception(
            ServerStartupFailed(entry.project_path, entry.log_text, exit_code)
        )

    async def _read_stdout(
        self, entry: ProjectServerEntry, stream: asyncio.StreamReader
    ) -> None:
        async for line in iter_lines(stream):
            log.debug("pub serve: %s", line)
            entry.logs.append(line)
            if READY_MARKER in line and not entry.ready.done():
                log.info("Pub serve for %s is ready", entry.project_path)
                entry.ready.set_result(None)

    async def _read_stderr(
        self, entry: ProjectServerEntry, stream: asyncio.StreamReader
    ) -> None:
        async for line in iter_lines(stream):
            log.debug("pub serve (stderr): %s", line)
            entry.logs.append(line)
