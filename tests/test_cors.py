"""Tests for the cross-origin stage."""

from herald.errors import NotFound
from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.cors import CORSConfig, CORSMiddleware


def _request(method: str = "GET", path: str = "/api/items") -> Request:
    return Request.from_asgi({"type": "http", "method": method, "path": path}, None)


class Downstream:
    def __init__(self, response: Response | None = None, error: Exception | None = None) -> None:
        self.response = response or Response(body="ok")
        self.error = error
        self.calls = 0

    async def __call__(self, request: Request) -> Response:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response


class TestCORSConfig:
    def test_default_headers(self) -> None:
        headers = CORSConfig().headers()
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS, PUT, PATCH, DELETE"
        assert headers["Access-Control-Allow-Headers"] == (
            "Content-Type, Authorization, Content-Length, X-Requested-With"
        )
        assert headers["Access-Control-Allow-Credentials"] == "true"

    def test_credentials_can_be_disabled(self) -> None:
        headers = CORSConfig(allow_credentials=False).headers()
        assert "Access-Control-Allow-Credentials" not in headers


class TestPreflight:
    async def test_options_short_circuits(self) -> None:
        downstream = Downstream()
        response = await CORSMiddleware()(_request("OPTIONS"), downstream)
        assert response.status == 200
        assert response.body_bytes == b""
        assert response.header("access-control-allow-origin") == "*"
        assert downstream.calls == 0

    async def test_options_on_unknown_path(self) -> None:
        downstream = Downstream(error=NotFound())
        response = await CORSMiddleware()(_request("OPTIONS", "/nowhere"), downstream)
        assert response.status == 200
        assert downstream.calls == 0


class TestHeadersOnEveryResponse:
    async def test_success_response(self) -> None:
        downstream = Downstream(Response(body="hello").with_header("X-Custom", "1"))
        response = await CORSMiddleware()(_request(), downstream)
        assert response.text == "hello"
        assert response.header("x-custom") == "1"
        assert response.header("access-control-allow-methods") is not None

    async def test_http_error_response(self) -> None:
        downstream = Downstream(error=NotFound())
        response = await CORSMiddleware()(_request(), downstream)
        assert response.status == 404
        assert response.header("access-control-allow-origin") == "*"

    async def test_custom_origin(self) -> None:
        middleware = CORSMiddleware(CORSConfig(allow_origin="https://example.com"))
        response = await middleware(_request(), Downstream())
        assert response.header("access-control-allow-origin") == "https://example.com"
