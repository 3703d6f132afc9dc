"""Turning controller return values into responses.

Controllers may return a ready ``Response`` or a plain value; the
dispatcher passes whatever comes back through ``negotiate``.
"""

from typing import Any

from herald.http.response import Response


def negotiate(value: Any) -> Response:
    """Convert a controller's return value to a Response.

    ============================  ======================================
    ``Response``                  returned as is
    ``None``                      204, empty body
    ``str``                       200, text/plain
    ``bytes``                     200, application/octet-stream
    ``dict`` / ``list``           200, application/json
    ``(value, status)``           *value* negotiated, status replaced
    ``(value, status, headers)``  as above, *headers* appended
    ============================  ======================================
    """
    match value:
        case Response():
            return value
        case None:
            return Response(status=204)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json(value)
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
    raise TypeError(
        f"Controller returned {type(value).__name__}; expected Response, str, bytes, "
        "dict, list, None or a (value, status[, headers]) tuple"
    )
