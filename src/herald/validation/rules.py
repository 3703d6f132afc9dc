"""Built-in validation rules for schema parameters.

Each validator is a callable with the signature::

    def rule(value: Any) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized validators are factory functions that return a validator.
``rules_for(schema)`` turns the constraint keywords of one Swagger
parameter or JSON schema node into a list of validators.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any

# Type alias for a validator function
type Validator = Callable[[Any], str | None]


# ---------------------------------------------------------------------------
# Type
# ---------------------------------------------------------------------------


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


_TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "integer": _is_integer,
    "number": _is_number,
    "boolean": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
    "file": lambda v: v is not None,
}


def of_type(type_name: str) -> Validator:
    """Value must be of the given Swagger/JSON-schema type."""
    check_type = _TYPE_CHECKS.get(type_name)

    def check(value: Any) -> str | None:
        if check_type is not None and not check_type(value):
            return f"Expected type {type_name} but found type {_type_name(value)}"
        return None

    return check


def _type_name(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int():
            return "integer"
        case float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
        case _:
            return type(value).__name__


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: Any) -> Validator:
    """Value must be one of the given choices."""
    allowed = list(choices)

    def check(value: Any) -> str | None:
        if value not in allowed:
            options = ", ".join(str(c) for c in allowed)
            return f"No enum match for: {value!r} (allowed: {options})"
        return None

    return check


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String must be at most *n* characters."""

    def check(value: Any) -> str | None:
        if isinstance(value, str) and len(value) > n:
            return f"String is too long ({len(value)} chars), maximum {n}"
        return None

    return check


def min_length(n: int) -> Validator:
    """String must be at least *n* characters."""

    def check(value: Any) -> str | None:
        if isinstance(value, str) and len(value) < n:
            return f"String is too short ({len(value)} chars), minimum {n}"
        return None

    return check


def max_items(n: int) -> Validator:
    def check(value: Any) -> str | None:
        if isinstance(value, list) and len(value) > n:
            return f"Array is too long ({len(value)}), maximum {n}"
        return None

    return check


def min_items(n: int) -> Validator:
    def check(value: Any) -> str | None:
        if isinstance(value, list) and len(value) < n:
            return f"Array is too short ({len(value)}), minimum {n}"
        return None

    return check


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------


def minimum(bound: float, *, exclusive: bool = False) -> Validator:
    """Number must be >= *bound* (or > when *exclusive*)."""

    def check(value: Any) -> str | None:
        if not _is_number(value):
            return None
        if value < bound or (exclusive and value == bound):
            op = ">" if exclusive else ">="
            return f"Value {value} must be {op} {bound}"
        return None

    return check


def maximum(bound: float, *, exclusive: bool = False) -> Validator:
    """Number must be <= *bound* (or < when *exclusive*)."""

    def check(value: Any) -> str | None:
        if not _is_number(value):
            return None
        if value > bound or (exclusive and value == bound):
            op = "<" if exclusive else "<="
            return f"Value {value} must be {op} {bound}"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------


def matches(pattern: str, message: str | None = None) -> Validator:
    """String must match the given regex pattern (searched, as in JSON schema)."""
    compiled = re.compile(pattern)

    def check(value: Any) -> str | None:
        if isinstance(value, str) and not compiled.search(value):
            return message or f"String does not match pattern: {pattern}"
        return None

    return check


def rules_for(schema: Mapping[str, Any], *, include_type: bool = True) -> list[Validator]:
    """Build the validator list for one schema node's scalar keywords.

    Structural keywords (``properties``, ``items``, ``required``) are
    handled by the recursive walker, not here.
    """
    rules: list[Validator] = []
    if include_type and "type" in schema:
        rules.append(of_type(schema["type"]))
    if "enum" in schema:
        rules.append(one_of(*schema["enum"]))
    if "maxLength" in schema:
        rules.append(max_length(int(schema["maxLength"])))
    if "minLength" in schema:
        rules.append(min_length(int(schema["minLength"])))
    if "pattern" in schema:
        rules.append(matches(schema["pattern"]))
    if "maximum" in schema:
        rules.append(maximum(schema["maximum"], exclusive=bool(schema.get("exclusiveMaximum"))))
    if "minimum" in schema:
        rules.append(minimum(schema["minimum"], exclusive=bool(schema.get("exclusiveMinimum"))))
    if "maxItems" in schema:
        rules.append(max_items(int(schema["maxItems"])))
    if "minItems" in schema:
        rules.append(min_items(int(schema["minItems"])))
    return rules
