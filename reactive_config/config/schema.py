"""
Schema Module.

Compiles JSON schemas into validators and validates configuration payloads
using jsonschema. Missing properties that declare a ``default`` in the
schema are filled into the validated payload.
"""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import SchemaError
from loguru import logger

from reactive_config.config.errors import ConfigurationError, SchemaValidationError

# Permissive schema used when no schema file (and no default schema) exists.
DEFAULT_SCHEMA: Mapping[str, Any] = MappingProxyType({
    "title": "CONFIG",
    "additionalProperties": True,
})


def _extend_with_default(validator_class):
    """Extend a validator class so that ``properties`` fills in schema defaults."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema) -> Iterator[Any]:
        if validator.is_type(instance, "object"):
            for name, subschema in properties.items():
                if isinstance(subschema, dict) and "default" in subschema:
                    instance.setdefault(name, copy.deepcopy(subschema["default"]))
        yield from validate_properties(validator, properties, instance, schema)

    return validators.extend(validator_class, {"properties": set_defaults})


class CompiledSchema:
    """
    A JSON schema compiled into a reusable validator.

    The draft is picked from the schema's ``$schema`` keyword, defaulting
    to Draft 7. Instances are never mutated after compilation; loading a
    new schema means compiling a new CompiledSchema.

    Attributes:
        document: Deep copy of the schema document that was compiled.
    """

    def __init__(self, document: Mapping[str, Any]) -> None:
        """
        Compile a schema document.

        Args:
            document: Parsed JSON schema.

        Raises:
            ConfigurationError: If the document is not a valid JSON schema.
        """
        self.document: Dict[str, Any] = copy.deepcopy(dict(document))
        validator_cls = validators.validator_for(self.document, default=Draft7Validator)
        try:
            validator_cls.check_schema(self.document)
        except SchemaError as e:
            raise ConfigurationError(f"Invalid JSON schema: {e.message}") from e

        self._validator = _extend_with_default(validator_cls)(self.document)
        logger.debug(
            f"Schema compiled — title={self.document.get('title', '(untitled)')}, "
            f"draft={validator_cls.__name__}"
        )

    def violations(self, payload: Dict[str, Any]) -> List[str]:
        """
        Validate ``payload`` in place and list every violation.

        Schema defaults are written into ``payload`` for missing properties.

        Returns:
            One ``property <path> <reason>`` line per violation, sorted by path.
        """
        errors = sorted(self._validator.iter_errors(payload), key=lambda e: e.json_path)
        return [f"property {error.json_path} {error.message}" for error in errors]

    def validate(self, payload: Dict[str, Any]) -> None:
        """
        Validate a candidate payload, raising with all violations at once.

        Args:
            payload: Candidate payload (schema defaults are filled into it).

        Raises:
            SchemaValidationError: If the payload violates the schema.
        """
        error_messages = self.violations(payload)
        if error_messages:
            all_errors = "\n".join(error_messages)
            raise SchemaValidationError(
                f"Failed to validate new configuration "
                f"({len(error_messages)} error(s)):\n{all_errors}",
                errors=error_messages,
            )
