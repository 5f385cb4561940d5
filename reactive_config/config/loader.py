"""
Configuration Loader Module.

File primitives used by the configuration handle:
- Recognising configuration file formats (JSON/YAML/TOML) by extension.
- Deriving the sibling JSON schema path of a configuration file.
- Parsing configuration documents and reading schema documents.
- Serialising a payload back to disk.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Mapping

import tomli_w
import yaml
from loguru import logger

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from reactive_config.config.errors import ConfigurationError

SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml", ".toml"}
YAML_EXTENSIONS = {".yaml", ".yml"}
TOML_EXTENSIONS = {".toml"}


def check_extension(path: Path) -> None:
    """
    Ensure ``path`` names a supported configuration format.

    Raises:
        ValueError: If the extension is not one of SUPPORTED_EXTENSIONS.
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported configuration file extension '{suffix}' for {path}. "
            f"Supported: {sorted(SUPPORTED_EXTENSIONS)}"
        )


def schema_path_for(config_path: Path) -> Path:
    """
    Return the JSON schema path that belongs to a configuration file.

    Examples:
        config/app.json -> config/app.schema.json
        config/app.toml -> config/app.schema.json
        config/app.schema.json -> config/app.schema.schema.json
    """
    return config_path.with_name(f"{config_path.stem}.schema.json")


def parse_document(content: str, file_path: Path) -> Dict[str, Any]:
    """
    Parse the text of a configuration document.

    The format is chosen from the extension of ``file_path``.

    Raises:
        ConfigurationError: If the text cannot be parsed or is not a mapping.
    """
    suffix = file_path.suffix.lower()
    try:
        if suffix in YAML_EXTENSIONS:
            data = yaml.safe_load(content)
        elif suffix in TOML_EXTENSIONS:
            data = tomllib.loads(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to parse {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping (dict), "
            f"got {type(data).__name__}: {file_path}"
        )
    return data


def read_schema(file_path: Path) -> Dict[str, Any]:
    """Read a JSON schema file (always JSON, whatever the config format)."""
    try:
        schema = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse schema {file_path}: {e}") from e

    if not isinstance(schema, dict):
        raise ConfigurationError(
            f"Schema file must contain a mapping (dict), "
            f"got {type(schema).__name__}: {file_path}"
        )
    return schema


def serialize_document(file_path: Path, payload: Mapping[str, Any], indent: int = 4) -> str:
    """
    Render ``payload`` in the format of ``file_path``.

    JSON is pretty-printed with ``indent`` spaces; YAML and TOML keep the
    key order of the payload.

    Raises:
        ConfigurationError: If the payload cannot be represented in TOML
            (for instance a None value).
    """
    suffix = file_path.suffix.lower()
    if suffix in YAML_EXTENSIONS:
        return yaml.safe_dump(dict(payload), indent=indent, sort_keys=False, allow_unicode=True)
    if suffix in TOML_EXTENSIONS:
        try:
            return tomli_w.dumps(dict(payload))
        except TypeError as e:
            raise ConfigurationError(f"Payload cannot be written as TOML to {file_path}: {e}") from e
    return json.dumps(payload, indent=indent, ensure_ascii=False) + "\n"


def write_document(file_path: Path, payload: Mapping[str, Any], indent: int = 4) -> str:
    """
    Serialise ``payload`` to ``file_path``, overwriting it.

    Returns:
        The text that was written.
    """
    content = serialize_document(file_path, payload, indent=indent)
    file_path.write_text(content, encoding="utf-8")
    logger.debug(f"Document written: {file_path}")
    return content
