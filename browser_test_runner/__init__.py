"""Runs browser-hosted Dart unit tests in a headless Content Shell."""
