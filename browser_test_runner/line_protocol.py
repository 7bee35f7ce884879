"""Classification of the lines Content Shell prints while running a test."""

from typing import Literal

LineKind = Literal["ignored", "content", "pass", "crash", "terminal"]

CRASH_MARKER = "#CRASHED"
PASS_MARKER = "PASS"
EOF_MARKER = "#EOF"

IGNORED_LINES = frozenset(
    {
        "CONSOLE MESSAGE: Warning: The unittestConfiguration has already been "
        "set. New unittestConfiguration ignored.",
        "Content-Type: text/plain",
        "#READY",
        "unittest-suite-wait-for-done",
    }
)


def classify_line(line: str) -> LineKind:
    """Classify one line of browser test output.

    Matching is exact and case-sensitive. The classification depends only on
    the line itself, so callers must feed lines in the order they were
    emitted.
    """
    if line == EOF_MARKER:
        return "terminal"
    if line == CRASH_MARKER:
        return "crash"
    if line == PASS_MARKER:
        return "pass"
    if line in IGNORED_LINES:
        return "ignored"
    return "content"
