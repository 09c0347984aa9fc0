"""ASGI response sending: translates a Response into ASGI messages."""

import logging

from warren._internal.asgi import Send
from warren.http.response import Response

logger = logging.getLogger("warren.server")


def _body_allowed(status: int, method: str) -> bool:
    """Whether a response with this status (to this method) may carry a body."""
    # RFC 9110: 1xx, 204 and 304 never carry a body; HEAD responses omit it.
    if method == "HEAD":
        return False
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    """Translate a warren Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = []
    if response.content_type:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    raw_headers.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
    )
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1"))
        for cookie in response.cookies
    )

    body = response.body_bytes if _body_allowed(response.status, method) else b""
    if response.status not in {204, 304} and not 100 <= response.status < 200:
        raw_headers.append((b"content-length", str(len(response.body_bytes)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})
