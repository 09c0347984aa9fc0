"""Tests for warren.server.sender response emission rules."""

from warren.http.response import Redirect, Response
from warren.server.sender import send_response


async def _send(response: Response, method: str = "GET") -> list[dict]:
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    await send_response(response, send, method=method)
    return messages


class TestSendResponse:
    async def test_200_preserves_body(self) -> None:
        messages = await _send(Response("ok"))

        assert messages[0]["type"] == "http.response.start"
        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"2"
        assert headers[b"content-type"] == b"text/html; charset=utf-8"
        assert messages[1]["type"] == "http.response.body"
        assert messages[1]["body"] == b"ok"

    async def test_204_drops_body(self) -> None:
        messages = await _send(Response("unexpected-body").with_status(204))

        headers = dict(messages[0]["headers"])
        assert b"content-length" not in headers
        assert messages[1]["body"] == b""

    async def test_head_keeps_length_drops_body(self) -> None:
        messages = await _send(Response("hello"), method="HEAD")

        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"5"
        assert messages[1]["body"] == b""

    async def test_redirect_has_location_and_no_content_type(self) -> None:
        messages = await _send(Redirect("/login").to_response())

        assert messages[0]["status"] == 307
        headers = dict(messages[0]["headers"])
        assert headers[b"location"] == b"/login"
        assert b"content-type" not in headers
        assert messages[1]["body"] == b""

    async def test_set_cookie_headers(self) -> None:
        response = Response("x").with_cookie("a", "1").with_cookie("b", "2")
        messages = await _send(response)

        cookies = [v for k, v in messages[0]["headers"] if k == b"set-cookie"]
        assert len(cookies) == 2
        assert cookies[0].startswith(b"a=1;")

    async def test_utf8_length(self) -> None:
        messages = await _send(Response("é"))
        assert dict(messages[0]["headers"])[b"content-length"] == b"2"
