"""Cookies in both directions.

``parse_cookies`` reads the ``Cookie`` request header for ``Request``;
``SetCookie`` is what the session middleware hands to ``Response``.
"""

from dataclasses import dataclass
from urllib.parse import quote, unquote


def parse_cookies(header: str) -> dict[str, str]:
    """Split a ``Cookie`` header into ``{name: value}``.

    Values are percent-decoded and unquoted. Browsers send the most
    specific cookie first, so a repeated name keeps its first value.
    """
    jar: dict[str, str] = {}
    for chunk in header.split(";"):
        if "=" not in chunk:
            continue
        name, value = (part.strip() for part in chunk.split("=", 1))
        if name:
            jar.setdefault(name, unquote(value.strip('"')))
    return jar


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One ``Set-Cookie`` header; defaults suit a session identifier."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        attributes = {
            "Max-Age": None if self.max_age is None else str(self.max_age),
            "Path": self.path or None,
            "Domain": self.domain,
            "SameSite": self.samesite.capitalize() if self.samesite else None,
        }
        rendered = [f"{self.name}={quote(self.value, safe='')}"]
        rendered += [f"{key}={value}" for key, value in attributes.items() if value]
        rendered += [flag for flag, on in (("Secure", self.secure), ("HttpOnly", self.httponly)) if on]
        return "; ".join(rendered)
