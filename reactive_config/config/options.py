"""
Configuration Options Module.

Immutable construction options of a configuration handle.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class ConfigOptions:
    """
    Options captured once when a configuration handle is created.

    Attributes:
        create_on_no_entry: Create the file from a default payload when it is missing.
        auto_reload: Watch the file and reload it on change after the first read.
        write_on_set: Schedule a lazy disk write after every successful set().
        reload_delay: Debounce delay of the file watcher, in milliseconds.
        default_schema: Schema used when no schema file exists on disk.
        indent: Indentation width used when writing the file.
    """

    create_on_no_entry: bool = False
    auto_reload: bool = False
    write_on_set: bool = False
    reload_delay: float = 500
    default_schema: Optional[Dict[str, Any]] = None
    indent: int = 4

    def __post_init__(self) -> None:
        for name in ("create_on_no_entry", "auto_reload", "write_on_set"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"ConfigOptions.{name} should be a bool")

        if isinstance(self.reload_delay, bool) or not isinstance(self.reload_delay, (int, float)):
            raise TypeError("ConfigOptions.reload_delay should be a number (milliseconds)")
        if self.reload_delay < 0:
            raise ValueError("ConfigOptions.reload_delay should not be negative")

        if isinstance(self.indent, bool) or not isinstance(self.indent, int) or self.indent < 0:
            raise TypeError("ConfigOptions.indent should be a non-negative int")

        if self.default_schema is not None:
            if not isinstance(self.default_schema, Mapping):
                raise TypeError("ConfigOptions.default_schema should be a mapping")
            object.__setattr__(self, "default_schema", copy.deepcopy(dict(self.default_schema)))

    @classmethod
    def coerce(cls, options: Union[ConfigOptions, Mapping[str, Any], None]) -> ConfigOptions:
        """
        Build options from None, a ConfigOptions or a mapping of option names.

        Raises:
            TypeError: If ``options`` has another type or an unknown key.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise TypeError(
                f"options should be a mapping or ConfigOptions, got {type(options).__name__}"
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise TypeError(f"Unknown config option(s): {unknown}. Known: {sorted(known)}")
        return cls(**options)
