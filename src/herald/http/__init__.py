"""HTTP primitives: immutable Request, chainable Response."""

from herald.http.headers import Headers
from herald.http.request import Request
from herald.http.response import Response

__all__ = ["Headers", "Request", "Response"]
