"""Request router: the schema-driven validate/dispatch/fallback pipeline.

Every inbound request runs through a fixed stage order::

    CORSMiddleware     OPTIONS short-circuit, CORS headers on everything
    OperationMetadata  match a declared operation, annotate the request
    RequestValidator   validate against the operation; failure -> {error: true}
    ErrorFallback      turn an unhandled dispatch fault into a 500
    Dispatcher         call the registered controller action
    APIDocs            {basePath}/api-docs and {basePath}/docs
    StaticFiles        files from the static directory

The order is load-bearing. CORS wraps every other stage so error
responses carry the same headers. Validation precedes dispatch, so an
invalid request never reaches a controller. The fallback stage sits
around dispatch and everything after it, catching only faults nothing
else handled. Docs and static files come last so they never shadow a
declared operation. Anything still unanswered is a 404.
"""

import logging
from dataclasses import replace

from herald._internal.invoke import invoke
from herald.config import AppConfig
from herald.controllers import ControllerRegistry
from herald.errors import (
    HTTPError,
    MethodNotAllowed,
    NotFound,
    NotImplementedOperation,
    UnhandledRouteError,
)
from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.cors import CORSMiddleware
from herald.middleware.docs import APIDocs
from herald.middleware.protocol import Middleware, Next, chain
from herald.middleware.static import StaticFiles
from herald.routing.router import Router
from herald.schema.document import Operation, OperationMatch, SchemaDocument
from herald.server.errors import internal_error_response
from herald.server.negotiation import negotiate
from herald.validation import ValidationResult, validate_request

logger = logging.getLogger("herald.router")


def build_operation_index(document: SchemaDocument) -> Router:
    """Compile every declared operation under the document's base path."""
    router = Router()
    base = document.base_path
    for operation in document.operations():
        router.add(f"{base}{operation.path}", operation)
    router.compile()
    return router


def format_validation_error(result: ValidationResult, *, structured: bool = False) -> Response:
    """Response for a request that failed validation.

    The default envelope is an opaque ``{"error": true}`` at status 200.
    With *structured*, a 400 carries the individual violations.
    """
    if not structured:
        return Response.json({"error": True})
    return Response.json(
        {
            "error": True,
            "code": "validation_error",
            "message": "Request validation failed",
            "details": [v.to_dict() for v in result.violations],
        },
        status=400,
    )


class OperationMetadata:
    """Annotate requests that match a declared operation.

    Unmatched paths pass through unannotated so the documentation and
    static stages can answer them. A declared path hit with an undeclared
    method is passed on the same way; ``MethodNotAllowed`` is raised only
    if nothing downstream answers it either.
    """

    __slots__ = ("_index",)

    def __init__(self, index: Router) -> None:
        self._index = index

    async def __call__(self, request: Request, next: Next) -> Response:
        try:
            operation, path_params = self._index.match(request.method, request.path)
        except NotFound:
            return await next(request)
        except MethodNotAllowed as refusal:
            try:
                return await next(request)
            except NotFound:
                raise refusal from None
        return await next(request.with_operation(OperationMatch(operation, path_params)))


class RequestValidator:
    """Validate annotated requests; dispatch never sees an invalid one."""

    __slots__ = ("_document", "_structured")

    def __init__(self, document: SchemaDocument, *, structured: bool = False) -> None:
        self._document = document
        self._structured = structured

    async def __call__(self, request: Request, next: Next) -> Response:
        match = request.operation
        if match is None:
            return await next(request)

        result = await validate_request(request, self._document)
        if not result:
            logger.info(
                "Validation failed for %s %s (%s): %s",
                request.method,
                request.path,
                match.operation.operation_id,
                result.errors,
            )
            return format_validation_error(result, structured=self._structured)

        return await next(request.with_operation(replace(match, params=result.data)))


class ErrorFallback:
    """Convert faults that escaped dispatch into a 500 response.

    ``HTTPError`` is not a fault: it passes through to become its own
    status. The 500 body is the raw error text unless *expose* is off.
    """

    __slots__ = ("_expose",)

    def __init__(self, *, expose: bool = True) -> None:
        self._expose = expose

    async def __call__(self, request: Request, next: Next) -> Response:
        try:
            return await next(request)
        except HTTPError:
            raise
        except UnhandledRouteError as exc:
            return internal_error_response(exc.original, request, expose=self._expose)
        except Exception as exc:
            return internal_error_response(exc, request, expose=self._expose)


class Dispatcher:
    """Invoke the controller action registered for the matched operation.

    The controller alone writes the response; a returned ``Response`` is
    passed back unmodified.
    """

    __slots__ = ("_controllers",)

    def __init__(self, controllers: ControllerRegistry) -> None:
        self._controllers = controllers

    async def __call__(self, request: Request, next: Next) -> Response:
        match = request.operation
        if match is None:
            return await next(request)

        operation = match.operation
        handler = self._controllers.resolve(operation)
        if handler is None:
            raise NotImplementedOperation(operation.operation_id)

        try:
            result = await invoke(handler, request)
        except HTTPError:
            raise
        except Exception as exc:
            raise UnhandledRouteError(operation.operation_id, exc) from exc
        return negotiate(result)


async def _not_found(request: Request) -> Response:
    raise NotFound(f"Nothing answers {request.method} {request.path!r}")


class RequestRouter:
    """The assembled stage pipeline for one schema document.

    Usage::

        router = RequestRouter(document, controllers, app_config)
        response = await router(request)
    """

    __slots__ = ("_document", "_handler", "_index", "_stages")

    def __init__(
        self,
        document: SchemaDocument,
        controllers: ControllerRegistry,
        config: AppConfig | None = None,
    ) -> None:
        config = config or AppConfig()
        self._document = document
        self._index = build_operation_index(document)

        stages: list[Middleware] = [
            CORSMiddleware(),
            OperationMetadata(self._index),
            RequestValidator(document, structured=config.structured_validation_errors),
            ErrorFallback(expose=config.expose_errors),
            Dispatcher(controllers),
            APIDocs(document),
        ]
        if config.static_dir is not None:
            stages.append(StaticFiles(config.static_dir))

        self._stages: tuple[Middleware, ...] = tuple(stages)
        self._handler = chain(self._stages, _not_found)

    @property
    def stages(self) -> tuple[Middleware, ...]:
        return self._stages

    @property
    def operations(self) -> list[Operation]:
        return self._index.operations

    @property
    def document(self) -> SchemaDocument:
        return self._document

    async def __call__(self, request: Request) -> Response:
        return await self._handler(request)
