"""Validation result: immutable container for validated data or violations."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Violation:
    """One failed rule.

    ``location`` is the Swagger parameter location (``path``, ``query``,
    ``header``, ``formData``, ``body``); ``path`` is the dotted position
    inside a body payload (``""`` for the parameter itself).
    """

    location: str
    name: str
    message: str
    path: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "in": self.location,
            "name": self.name,
            "path": self.path,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating a request against its schema operation.

    The result is falsy when invalid, so the router can write::

        result = await validate_request(request, document)
        if not result:
            return format_validation_error(result)

    ``data`` maps parameter names to their coerced values (path, query,
    and header strings converted to the declared type, defaults applied).
    """

    data: dict[str, object]
    violations: tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no violations."""
        return not self.violations

    @property
    def errors(self) -> dict[str, list[str]]:
        """Violations grouped by parameter name."""
        grouped: dict[str, list[str]] = {}
        for violation in self.violations:
            grouped.setdefault(violation.name, []).append(violation.message)
        return grouped

    def __bool__(self) -> bool:
        """Falsy when invalid."""
        return self.is_valid
