"""
Template expression resolution for ``{{namespace.path}}`` strings.

Grammar (one expression body per ``{{...}}``, no braces inside)::

    body        := alternative ( "||" alternative )*
    alternative := namespace ( "." segment )*
    namespace   := "config" | "state" | "subFn" | "env"

Each alternative is parsed into a Reference and dispatched to the resolver of
its namespace. Unknown namespaces fail at parse time with ExpressionError.

Resolution rules:

* a string that is exactly one ``{{...}}`` returns the raw value (dicts, lists,
  numbers keep their type);
* otherwise each expression is rendered to text and spliced in;
* a reference that resolves to nothing leaves its ``{{...}}`` text in place so
  a broken chain shows the offending expression in its output.

All functions here are pure apart from the ``env`` namespace reading
``os.environ``.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from oidclab.exceptions import ExpressionError
from oidclab.types import ExecutionContext

TEMPLATE_RE = re.compile(r"\{\{([^{}]+)\}\}")


class _Missing:
    """Sentinel for "no value" (distinct from a JSON null present in a scope)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class Namespace(str, Enum):
    CONFIG = "config"
    STATE = "state"
    SUB_FN = "subFn"
    ENV = "env"


@dataclass(frozen=True)
class Reference:
    """One namespace-qualified path, e.g. ``subFn.clientAuth.assertion``."""
    namespace: Namespace
    path: tuple[str, ...]


# ── Parsing ───────────────────────────────────────────────────────────────────


def parse_expression(body: str) -> tuple[Reference, ...]:
    """Parse an expression body (the text between the braces) into references.

    Raises:
        ExpressionError: empty alternative, unknown namespace, or a ``subFn`` /
            ``env`` reference with no path.
    """
    expression = "{{" + body + "}}"
    references = []
    for alternative in body.split("||"):
        alternative = alternative.strip()
        if not alternative:
            raise ExpressionError(f"Empty alternative in expression '{expression}'", expression=expression)
        head, *path = alternative.split(".")
        try:
            namespace = Namespace(head)
        except ValueError:
            allowed = ", ".join(n.value for n in Namespace)
            raise ExpressionError(
                f"Unknown namespace '{head}' in expression '{expression}'. Expected one of: {allowed}",
                expression=expression,
            ) from None
        if namespace in (Namespace.SUB_FN, Namespace.ENV) and not path:
            raise ExpressionError(
                f"'{namespace.value}' needs a name in expression '{expression}'",
                expression=expression,
            )
        references.append(Reference(namespace=namespace, path=tuple(path)))
    return tuple(references)


# ── Namespace resolvers ───────────────────────────────────────────────────────


def get_nested_value(obj: Any, path: tuple[str, ...] | list[str]) -> Any:
    """Walk ``path`` through dicts (and lists, by numeric segment).

    Returns MISSING if any segment is absent or an intermediate value is None.
    An empty path returns ``obj`` itself.
    """
    current = obj
    for key in path:
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, dict):
            current = current.get(key, MISSING)
        elif isinstance(current, list) and key.isascii() and key.isdecimal() and int(key) < len(current):
            current = current[int(key)]
        else:
            return MISSING
    return current


def _resolve_config(path: tuple[str, ...], context: ExecutionContext) -> Any:
    return get_nested_value(context.config, path)


def _resolve_state(path: tuple[str, ...], context: ExecutionContext) -> Any:
    return get_nested_value(context.state, path)


def _resolve_sub_fn(path: tuple[str, ...], context: ExecutionContext) -> Any:
    step_id, *output_path = path
    if step_id not in context.sub_fn_results:
        return MISSING
    return get_nested_value(context.sub_fn_results[step_id], output_path)


def _resolve_env(path: tuple[str, ...], context: ExecutionContext) -> Any:
    return os.environ.get(".".join(path), MISSING)


_RESOLVERS: dict[Namespace, Callable[[tuple[str, ...], ExecutionContext], Any]] = {
    Namespace.CONFIG: _resolve_config,
    Namespace.STATE: _resolve_state,
    Namespace.SUB_FN: _resolve_sub_fn,
    Namespace.ENV: _resolve_env,
}


# ── Evaluation ────────────────────────────────────────────────────────────────


def is_falsy(value: Any) -> bool:
    """Falsy for ``||`` purposes: MISSING, None, False, "" and 0.

    Empty dicts and lists count as values.
    """
    if value is MISSING or value is None:
        return True
    if isinstance(value, (dict, list)):
        return False
    return not value


def evaluate(references: tuple[Reference, ...], context: ExecutionContext) -> Any:
    """Evaluate alternatives left to right; the first truthy one wins,
    otherwise the last alternative's value is returned as-is."""
    value: Any = MISSING
    for reference in references:
        value = _RESOLVERS[reference.namespace](reference.path, context)
        if not is_falsy(value):
            return value
    return value


def stringify(value: Any) -> str:
    """Render a resolved value for splicing into surrounding text."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_template(template: Any, context: ExecutionContext) -> Any:
    """Resolve every ``{{...}}`` in ``template`` against ``context``.

    Non-string templates are returned unchanged.

    Raises:
        ExpressionError: if any expression in the string fails to parse.
    """
    if not isinstance(template, str):
        return template

    matches = list(TEMPLATE_RE.finditer(template))
    if not matches:
        return template

    # Whole-value template: hand back the raw Python value
    if len(matches) == 1 and matches[0].group(0) == template:
        value = evaluate(parse_expression(matches[0].group(1)), context)
        return template if value is MISSING else value

    def _sub(m: re.Match) -> str:
        value = evaluate(parse_expression(m.group(1)), context)
        if value is MISSING:
            return m.group(0)
        return stringify(value)

    return TEMPLATE_RE.sub(_sub, template)
