"""Test runners."""

from browser_test_runner.runners.base import TestRunner
from browser_test_runner.runners.browser import BrowserTestRunner

__all__ = ["BrowserTestRunner", "TestRunner"]
