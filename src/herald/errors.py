"""Herald exception hierarchy.

Shared across the bootstrap sequence, the request router, and the ASGI
handler so every module raises and catches the same types.
"""

from dataclasses import dataclass


class HeraldError(Exception):
    """Base for all herald-specific errors."""


class ConfigurationError(HeraldError):
    """Raised when configuration is missing a key or holds an invalid value."""


class LoadError(HeraldError):
    """Raised when the API schema document cannot be read or parsed.

    Always fatal: the bootstrap sequence aborts on it.
    """


class BootstrapStageError(HeraldError):
    """A bootstrap stage raised; the remaining stages were not run.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, stage: str, detail: str = "") -> None:
        self.stage = stage
        self.detail = detail
        message = f"Bootstrap stage {stage!r} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnhandledRouteError(HeraldError):
    """A controller raised while handling a dispatched operation.

    Recovered by the fallback stage of the request router.
    """

    def __init__(self, operation_id: str, original: BaseException) -> None:
        self.operation_id = operation_id
        self.original = original
        super().__init__(str(original))


@dataclass(frozen=True, slots=True)
class HTTPError(HeraldError):
    """An error that maps directly to an HTTP status code.

    Raised by the router stages or by controllers. The ASGI handler
    converts these into plain responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing in the pipeline answered the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path is declared but not for this HTTP method.

    Includes an ``Allow`` header listing the declared methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class NotImplementedOperation(HTTPError):  # noqa: N818
    """501: the operation is declared in the schema but has no controller."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(
            status=501,
            detail=f"No controller registered for operation {operation_id!r}",
        )
