"""JSON Schema utilities for tool arguments."""

from typing import Any

from jsonschema import Draft7Validator

from shared.models import FieldSchema


def project_input_schema(fields: dict[str, FieldSchema]) -> dict[str, Any]:
    """
    Project declared tool fields onto the simplified discovery schema.

    The projection is intentionally lossy: every field that carries a
    description becomes a required ``string`` property, fields without a
    description are left out, and types, bounds, enums and optionality are
    dropped. Callers that need the real constraints use
    :func:`build_json_schema`.

    Args:
        fields: Declared fields keyed by argument name

    Returns:
        JSON-Schema-like object for tools/list
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, field in fields.items():
        if not field.description:
            continue
        properties[name] = {
            "type": "string",
            "description": field.description,
        }
        required.append(name)

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }
    if required:
        schema["required"] = required

    return schema


def build_json_schema(fields: dict[str, FieldSchema]) -> dict[str, Any]:
    """
    Build the full JSON Schema for a set of declared fields.

    Args:
        fields: Declared fields keyed by argument name

    Returns:
        JSON Schema dictionary
    """
    return {
        "type": "object",
        "properties": {name: field.to_json_schema() for name, field in fields.items()},
        "required": [name for name, field in fields.items() if field.required],
    }


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = list(validator.iter_errors(data))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages
