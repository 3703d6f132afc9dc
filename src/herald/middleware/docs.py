"""API documentation middleware.

Serves the raw schema document and an interactive Swagger UI browser at
two fixed sub-paths under the base path, whether or not a declared
operation shares that path::

    {basePath}/api-docs   -> schema as JSON
    {basePath}/docs       -> Swagger UI page loading /api-docs
"""

import html

from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.protocol import Next
from herald.schema.document import SchemaDocument

SWAGGER_UI_VERSION = "5.17.14"

_UI_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<link rel="stylesheet" href="https://unpkg.com/swagger-ui-dist@{version}/swagger-ui.css">
</head>
<body>
<div id="swagger-ui"></div>
<script src="https://unpkg.com/swagger-ui-dist@{version}/swagger-ui-bundle.js"></script>
<script>
window.ui = SwaggerUIBundle({{url: "{spec_url}", dom_id: "#swagger-ui"}});
</script>
</body>
</html>
"""


class APIDocs:
    """Documentation stage of the request router."""

    __slots__ = ("_api_docs_path", "_document", "_page", "_ui_path")

    def __init__(self, document: SchemaDocument) -> None:
        base = document.base_path
        self._document = document
        self._api_docs_path = f"{base}/api-docs"
        self._ui_path = f"{base}/docs"
        title = (document.get("info") or {}).get("title") or "API documentation"
        self._page = _UI_PAGE.format(
            title=html.escape(str(title)),
            version=SWAGGER_UI_VERSION,
            spec_url=html.escape(self._api_docs_path, quote=True),
        )

    @property
    def api_docs_path(self) -> str:
        return self._api_docs_path

    @property
    def ui_path(self) -> str:
        return self._ui_path

    async def __call__(self, request: Request, next: Next) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path.rstrip("/") or "/"
        if path == self._api_docs_path:
            return Response.json(self._document.to_dict())
        if path == self._ui_path:
            return Response(body=self._page, content_type="text/html; charset=utf-8")
        return await next(request)
