"""
Reactive Config - Test Suite Package.

Contains Pytest-based test suites:
- Unit tests for the configuration handle and its building blocks.
- functional/: Tests relying on real filesystem change notifications.
"""
