"""Argument validation against a tool's declared input schema.

Schemas are checked with :class:`jsonschema.Draft7Validator`, tightened
with ``additionalProperties: false`` so undeclared arguments are rejected.
Arguments whose value is ``None`` count as absent.  Declared defaults are
advisory and are not injected; the HTTP API applies its own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError, best_match

from ghmcp.protocol.errors import InvalidArgumentsError

if TYPE_CHECKING:
    from ghmcp.protocol.models import ToolDescriptor


def validator_for(tool: ToolDescriptor) -> Draft7Validator:
    """Build the validator for *tool*, closed to undeclared properties."""
    schema = {"type": "object", **tool.input_schema, "additionalProperties": False}
    return Draft7Validator(schema)


def describe(error: ValidationError) -> str:
    """Render *error* as ``<argument path>: <message>``."""
    location = ".".join(str(part) for part in error.absolute_path)
    return f"{location}: {error.message}" if location else error.message


def validate_arguments(tool: ToolDescriptor, arguments: dict[str, Any]) -> None:
    """Raise :class:`InvalidArgumentsError` if *arguments* violate *tool*'s schema."""
    present = {name: value for name, value in arguments.items() if value is not None}
    error = best_match(validator_for(tool).iter_errors(present))
    if error is not None:
        raise InvalidArgumentsError(tool.name, describe(error))
