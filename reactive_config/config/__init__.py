"""
Configuration Module.

Handles the lifecycle of a reactive configuration file:
- Loading JSON/YAML/TOML configuration files and their sibling JSON schema.
- Schema-validated payload mutation and dotted-path field access.
- Persistence, hot reload and per-field observation (see Config).
"""

from reactive_config.config.errors import (
    ConfigStateError,
    ConfigurationError,
    SchemaValidationError,
)
from reactive_config.config.handle import Config
from reactive_config.config.options import ConfigOptions
from reactive_config.config.schema import DEFAULT_SCHEMA, CompiledSchema

__all__ = [
    "CompiledSchema",
    "Config",
    "ConfigOptions",
    "ConfigStateError",
    "ConfigurationError",
    "DEFAULT_SCHEMA",
    "SchemaValidationError",
]
