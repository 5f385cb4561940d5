"""
Reactive Config — schema-validated JSON/YAML/TOML configuration with hot reload.

Main entry points:
- Config: handle on one configuration file.
- ConfigOptions: construction options of a Config.
- ConfigEvent: notifications emitted by a Config.
"""

from reactive_config.config import (
    DEFAULT_SCHEMA,
    Config,
    ConfigOptions,
    ConfigStateError,
    ConfigurationError,
    SchemaValidationError,
)
from reactive_config.reactive import ConfigEvent, FieldObservable, Subscription

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConfigEvent",
    "ConfigOptions",
    "ConfigStateError",
    "ConfigurationError",
    "DEFAULT_SCHEMA",
    "FieldObservable",
    "SchemaValidationError",
    "Subscription",
    "__version__",
]
