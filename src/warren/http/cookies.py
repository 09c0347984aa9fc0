"""Cookie parsing, SetCookie serialization, and the per-request jar.

The read side (``parse_cookies``) feeds ``Request.cookies``. The write
side is a :class:`CookieJar` owned by one request's context: page code
queues cookies on it, and the dispatcher appends them to whatever
response the request ends with.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote, unquote


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Values are percent-decoded. Returns an empty dict for empty headers.
    """
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if sep and name:
            cookies[name.strip()] = unquote(value.strip().strip('"'))
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={quote(self.value, safe='')}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite.capitalize()}")
        return "; ".join(parts)


class CookieJar:
    """Request-scoped cookie access.

    Reads see the incoming cookies overlaid with anything set during
    this request. Writes are queued as :class:`SetCookie` directives.
    One jar belongs to exactly one request.
    """

    __slots__ = ("_incoming", "_pending")

    def __init__(self, incoming: Mapping[str, str] | None = None) -> None:
        self._incoming = dict(incoming or {})
        self._pending: dict[str, SetCookie] = {}

    def get(self, name: str, default: str | None = None) -> str | None:
        pending = self._pending.get(name)
        if pending is not None:
            return None if pending.max_age == 0 else pending.value
        return self._incoming.get(name, default)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def set(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> None:
        """Queue a cookie to be sent with the response."""
        self._pending[name] = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )

    def delete(self, name: str, path: str = "/") -> None:
        """Queue an expiring cookie (``Max-Age=0``)."""
        self._pending[name] = SetCookie(name=name, value="", max_age=0, path=path)

    @property
    def pending(self) -> tuple[SetCookie, ...]:
        """Cookies queued during this request, in first-set order."""
        return tuple(self._pending.values())

    def __repr__(self) -> str:
        return f"CookieJar(incoming={sorted(self._incoming)!r}, pending={sorted(self._pending)!r})"
