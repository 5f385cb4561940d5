"""
Configuration Errors Module.

Exception types raised by the reactive configuration handle:
- ConfigurationError: a document on disk cannot be parsed or has the wrong shape.
- SchemaValidationError: a candidate payload violates the compiled JSON schema.
- ConfigStateError: an operation was called before the configuration was read.
"""

from __future__ import annotations

from typing import List, Optional


class ConfigurationError(Exception):
    """Raised when a configuration or schema file is invalid or cannot be parsed."""

    pass


class SchemaValidationError(Exception):
    """Raised when a configuration payload fails schema validation."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class ConfigStateError(RuntimeError):
    """Raised when an operation requires a configuration that has been read."""

    pass
