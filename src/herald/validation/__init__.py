"""Request validation against schema operations.

Usage::

    from herald.validation import validate_request

    result = await validate_request(request, document)
    if not result:
        # result.violations lists every failed rule
        ...

Validation never raises for bad input: it returns a ``ValidationResult``
and leaves the decision between dispatch and an error response to the
router.
"""

import re
from collections.abc import Mapping
from typing import Any

from herald.http.request import Request
from herald.schema.document import SchemaDocument
from herald.validation.result import ValidationResult, Violation
from herald.validation.rules import (
    Validator,
    matches,
    max_length,
    maximum,
    min_length,
    minimum,
    of_type,
    one_of,
    rules_for,
)

__all__ = [
    "ValidationResult",
    "Validator",
    "Violation",
    "coerce",
    "matches",
    "max_length",
    "maximum",
    "min_length",
    "minimum",
    "of_type",
    "one_of",
    "rules_for",
    "validate_request",
    "validate_schema",
]

_COLLECTION_SEPARATORS = {"csv": ",", "ssv": " ", "tsv": "\t", "pipes": "|"}

_BOOLEANS = {"true": True, "false": False}

# JSON number syntax; rejects "1_000", padding, non-ASCII digits, nan and inf
_INTEGER = re.compile(r"-?[0-9]+")
_NUMBER = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class _CoercionError(ValueError):
    pass


def coerce(raw: str | list[str], param: Mapping[str, Any]) -> Any:
    """Convert a raw string (or list of strings) to the parameter's type.

    Raises ``ValueError`` when the string cannot represent that type.
    """
    type_name = param.get("type", "string")

    if type_name == "array":
        if isinstance(raw, list):
            if param.get("collectionFormat") == "multi":
                items = raw
            else:
                items = _split(raw[0] if raw else "", param)
        else:
            items = _split(raw, param)
        item_schema = param.get("items") or {}
        return [coerce(item, item_schema) for item in items]

    value = raw[0] if isinstance(raw, list) else raw
    match type_name:
        case "integer":
            if not _INTEGER.fullmatch(value):
                raise _CoercionError(f"Expected type integer but found type string ({value!r})")
            return int(value)
        case "number":
            if not _NUMBER.fullmatch(value):
                raise _CoercionError(f"Expected type number but found type string ({value!r})")
            return float(value)
        case "boolean":
            try:
                return _BOOLEANS[value.lower()]
            except KeyError:
                raise _CoercionError(f"Expected type boolean but found type string ({value!r})") from None
        case _:
            return value


def _split(raw: str, param: Mapping[str, Any]) -> list[str]:
    if raw == "":
        return []
    separator = _COLLECTION_SEPARATORS.get(param.get("collectionFormat", "csv"), ",")
    return raw.split(separator)


def validate_schema(
    value: Any,
    schema: Mapping[str, Any],
    document: SchemaDocument,
    *,
    location: str,
    name: str,
    path: str = "",
) -> list[Violation]:
    """Recursively validate a decoded value against a JSON schema node."""
    if "$ref" in schema:
        ref = schema["$ref"]
        try:
            schema = document.resolve_ref(ref)
        except (ValueError, KeyError):
            return [Violation(location, name, f"Unresolvable reference: {ref}", path)]

    violations: list[Violation] = []
    for sub in schema.get("allOf") or ():
        violations.extend(
            validate_schema(value, sub, document, location=location, name=name, path=path)
        )

    if "type" in schema:
        error = of_type(schema["type"])(value)
        if error is not None:
            # A type mismatch makes the remaining checks meaningless
            violations.append(Violation(location, name, error, path))
            return violations

    for validator in rules_for(schema, include_type=False):
        error = validator(value)
        if error is not None:
            violations.append(Violation(location, name, error, path))

    if isinstance(value, dict):
        properties = schema.get("properties") or {}
        required_names = schema.get("required")
        if not isinstance(required_names, list):
            required_names = []
        for required_name in required_names:
            if required_name not in value:
                violations.append(
                    Violation(
                        location,
                        name,
                        f"Missing required property: {required_name}",
                        _join(path, required_name),
                    )
                )
        for prop_name, prop_schema in properties.items():
            if prop_name in value:
                violations.extend(
                    validate_schema(
                        value[prop_name],
                        prop_schema,
                        document,
                        location=location,
                        name=name,
                        path=_join(path, prop_name),
                    )
                )

    if isinstance(value, list) and isinstance(schema.get("items"), Mapping):
        for index, item in enumerate(value):
            violations.extend(
                validate_schema(
                    item,
                    schema["items"],
                    document,
                    location=location,
                    name=name,
                    path=_join(path, str(index)),
                )
            )

    return violations


def _join(path: str, part: str) -> str:
    return f"{path}.{part}" if path else part


async def validate_request(request: Request, document: SchemaDocument) -> ValidationResult:
    """Validate every declared parameter of the request's matched operation.

    Requests without operation metadata validate trivially.
    """
    match = request.operation
    if match is None:
        return ValidationResult(data={})

    data: dict[str, object] = {}
    violations: list[Violation] = []

    for param in match.parameters:
        name = param.get("name", "")
        location = param.get("in", "")
        required = bool(param.get("required")) or location == "path"

        if location == "body":
            violations.extend(await _validate_body(request, param, document, data))
            continue

        raw = await _raw_value(request, name, location, param)
        if raw is None:
            if "default" in param:
                data[name] = param["default"]
            elif required:
                violations.append(
                    Violation(location, name, f"Missing required {location} parameter: {name}")
                )
            continue

        try:
            value = coerce(raw, param)
        except ValueError as exc:
            violations.append(Violation(location, name, str(exc)))
            continue

        param_violations = validate_schema(
            value, param, document, location=location, name=name
        )
        if param_violations:
            violations.extend(param_violations)
        else:
            data[name] = value

    return ValidationResult(data=data, violations=tuple(violations))


async def _raw_value(
    request: Request,
    name: str,
    location: str,
    param: Mapping[str, Any],
) -> str | list[str] | None:
    multi = param.get("collectionFormat") == "multi"
    match location:
        case "path":
            return request.path_params.get(name)
        case "query":
            if name not in request.query:
                return None
            return request.query.get_list(name) if multi else request.query.get(name)
        case "header":
            return request.headers.get(name)
        case "formData":
            try:
                form = await request.form()
            except UnicodeDecodeError:
                return None
            values = form.get(name)
            if not values:
                return None
            return values if multi else values[0]
        case _:
            return None


async def _validate_body(
    request: Request,
    param: Mapping[str, Any],
    document: SchemaDocument,
    data: dict[str, object],
) -> list[Violation]:
    name = param.get("name", "body")
    try:
        payload = await request.json()
    except (ValueError, UnicodeDecodeError):
        return [Violation("body", name, "Request body is not valid JSON")]

    if payload is None:
        if param.get("required"):
            return [Violation("body", name, f"Missing required body parameter: {name}")]
        return []

    violations = validate_schema(
        payload, param.get("schema") or {}, document, location="body", name=name
    )
    if not violations:
        data[name] = payload
    return violations
