"""Helpers for reading from and stopping subprocesses."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

log = logging.getLogger(__name__)

# Content Shell dumps whole render trees on a single line.
MAX_LINE_LENGTH = 2**20
TRUNCATION_MARKER = " [truncated]"
READ_CHUNK_SIZE = 2**16


def _decode(data: bytes | bytearray, truncated: bool) -> str:
    line = bytes(data[:MAX_LINE_LENGTH]).decode("utf-8", errors="replace")
    line = line.rstrip("\r")
    if truncated:
        return line + TRUNCATION_MARKER
    return line


async def iter_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield decoded lines from a stream until it reaches EOF.

    A line longer than ``MAX_LINE_LENGTH`` bytes is cut there and marked with
    ``TRUNCATION_MARKER``; the rest of it is read and discarded, so the
    stream keeps draining and the lines after it are still yielded.
    """
    pending = bytearray()
    truncated = False

    while chunk := await stream.read(READ_CHUNK_SIZE):
        start = 0
        while (end := chunk.find(b"\n", start)) != -1:
            if not truncated:
                pending += chunk[start:end]
            yield _decode(pending, truncated or len(pending) > MAX_LINE_LENGTH)
            pending.clear()
            truncated = False
            start = end + 1

        if not truncated:
            pending += chunk[start:]
            if len(pending) > MAX_LINE_LENGTH:
                log.warning(
                    "Truncating output line longer than %d bytes", MAX_LINE_LENGTH
                )
                del pending[MAX_LINE_LENGTH:]
                truncated = True

    if pending or truncated:
        yield _decode(pending, truncated)


async def terminate(process: asyncio.subprocess.Process, grace: float = 5.0) -> None:
    """Terminate a process, killing it if it outlives the grace period."""
    if process.returncode is not None:
        return

    with contextlib.suppress(ProcessLookupError):
        process.terminate()

    try:
        await asyncio.wait_for(process.wait(), grace)
    except TimeoutError:
        log.warning("Process %d ignored SIGTERM, killing it", process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
