"""Input resolution and validation for a single function call."""

from __future__ import annotations

import json
from typing import Any

from oidclab.engine.expressions import resolve_template
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType


def resolve_inputs(inputs: Any, context: ExecutionContext) -> Any:
    """Recursively resolve ``{{...}}`` templates in an inputs structure.

    Strings go through resolve_template, dicts and lists recurse, anything else
    passes through. Always returns a new structure.
    """
    if isinstance(inputs, str):
        return resolve_template(inputs, context)
    if isinstance(inputs, dict):
        return {k: resolve_inputs(v, context) for k, v in inputs.items()}
    if isinstance(inputs, list):
        return [resolve_inputs(v, context) for v in inputs]
    return inputs


def apply_defaults(descriptor: FunctionDescriptor, inputs: dict) -> dict:
    """Copy of ``inputs`` with declared defaults filled in for absent/None values."""
    merged = dict(inputs)
    for name, spec in descriptor.inputs.items():
        if merged.get(name) is None and spec.default is not None:
            merged[name] = spec.default
    return merged


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _parses_as(value: str, kind: type) -> bool:
    try:
        return isinstance(json.loads(value), kind)
    except ValueError:
        return False


def _check_type(name: str, spec: InputSpec, value: Any) -> str | None:
    """Return an error message if ``value`` does not fit ``spec.type``."""
    kind = spec.type
    if kind is InputType.ANY:
        return None
    if kind is InputType.JWK:
        if isinstance(value, dict):
            return None
        if isinstance(value, str):
            try:
                json.loads(value)
                return None
            except ValueError:
                pass
        return f'Input "{name}" must be valid JSON (JWK format)'
    if kind is InputType.OBJECT:
        if isinstance(value, dict) or (isinstance(value, str) and _parses_as(value, dict)):
            return None
        return f'Input "{name}" must be an object'
    if kind is InputType.ARRAY:
        if isinstance(value, list) or (isinstance(value, str) and _parses_as(value, list)):
            return None
        return f'Input "{name}" must be an array'
    if kind is InputType.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                float(value)
                return None
            except ValueError:
                pass
        return f'Input "{name}" must be a number'
    if kind is InputType.BOOLEAN:
        if isinstance(value, bool) or (isinstance(value, str) and value.lower() in ("true", "false")):
            return None
        return f'Input "{name}" must be a boolean'
    if kind is InputType.STRING:
        if isinstance(value, (dict, list)):
            return f'Input "{name}" must be a string'
        return None
    raise AssertionError(f"unhandled input type {kind!r}")


def validate_inputs(descriptor: FunctionDescriptor, inputs: dict) -> list[str]:
    """Check resolved inputs against the descriptor's declared schema.

    Returns:
        List of human-readable errors; empty when the inputs are valid.
    """
    errors: list[str] = []
    for name, spec in descriptor.inputs.items():
        value = inputs.get(name)

        if spec.required and _is_empty(value):
            errors.append(f"Missing required input: {name}")
            continue

        # Optional and not provided (blank form fields arrive as "")
        if _is_empty(value):
            continue

        error = _check_type(name, spec, value)
        if error:
            errors.append(error)
    return errors


def coerce_bool(value: Any, default: bool = False) -> bool:
    """Read a boolean input that may have arrived as "true"/"false"."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def coerce_json(value: Any) -> Any:
    """Parse object/array/jwk inputs that arrived as JSON text."""
    if isinstance(value, str):
        return json.loads(value)
    return value
