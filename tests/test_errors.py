"""Tests for warren.server.errors — status classification, error-page order, and error hooks."""

import pytest

from warren.errors import HTTPError, MethodNotAllowed, NotFound
from warren.http.headers import Headers
from warren.http.request import Request
from warren.http.response import Redirect, Response
from warren.server.errors import (
    call_error_handler,
    classify_status,
    error_message,
    error_page_candidates,
    find_error_handler,
    generic_error_response,
    handle_internal_error,
)


def _request(path: str = "/") -> Request:
    return Request(method="GET", path=path, query_string="", headers=Headers(), cookies={})


class StatusError(Exception):
    def __init__(self, **attrs) -> None:
        super().__init__("status error")
        for name, value in attrs.items():
            setattr(self, name, value)


class TestClassifyStatus:
    def test_http_error(self) -> None:
        assert classify_status(NotFound()) == 404
        assert classify_status(HTTPError(status=403)) == 403

    @pytest.mark.parametrize("attr", ["status_code", "statusCode", "status", "code"])
    def test_attributes(self, attr: str) -> None:
        assert classify_status(StatusError(**{attr: 418})) == 418

    def test_out_of_range_ignored(self) -> None:
        assert classify_status(StatusError(code=2)) == 500
        assert classify_status(StatusError(status=302)) == 500

    def test_bool_is_not_a_status(self) -> None:
        assert classify_status(StatusError(status=True)) == 500

    def test_cause(self) -> None:
        exc = RuntimeError("wrapped")
        exc.__cause__ = StatusError(status_code=409)
        assert classify_status(exc) == 409

    def test_plain_exception(self) -> None:
        assert classify_status(ValueError("x")) == 500


class TestErrorPageCandidates:
    def test_404(self) -> None:
        assert error_page_candidates(404) == ("/404", "/not-found", "/error")

    def test_500(self) -> None:
        assert error_page_candidates(500) == ("/500", "/error")

    def test_other(self) -> None:
        assert error_page_candidates(403) == ("/403", "/error")


class TestErrorMessage:
    def test_detail(self) -> None:
        assert error_message(NotFound("no post"), 404) == "no post"

    def test_empty(self) -> None:
        assert error_message(RuntimeError(), 500) == "Server error"
        assert error_message(RuntimeError(), 404) == "Page not found"


class TestErrorHooks:
    def test_type_before_status(self) -> None:
        by_type = object()
        by_status = object()
        handlers = {LookupError: by_type, 500: by_status}
        assert find_error_handler(handlers, KeyError("k"), 500) is by_type
        assert find_error_handler(handlers, ValueError("v"), 500) is by_status
        assert find_error_handler({}, ValueError("v"), 500) is None

    async def test_str_result_is_html(self) -> None:
        response = await call_error_handler(lambda status: f"<h1>{status}</h1>", _request(), ValueError(), 503)
        assert response.status == 503
        assert response.body == "<h1>503</h1>"

    async def test_mapping_result_is_json(self) -> None:
        response = await call_error_handler(lambda exc: {"error": str(exc)}, _request(), ValueError("bad"), 500)
        assert response.content_type == "application/json"
        assert response.body == '{"error": "bad"}'

    async def test_response_keeps_explicit_status(self) -> None:
        response = await call_error_handler(lambda: Response("x", status=418), _request(), ValueError(), 500)
        assert response.status == 418

    async def test_response_default_status_replaced(self) -> None:
        response = await call_error_handler(lambda: Response("x"), _request(), ValueError(), 502)
        assert response.status == 502

    async def test_redirect(self) -> None:
        response = await call_error_handler(lambda: Redirect("/oops"), _request(), ValueError(), 500)
        assert response.status == 307
        assert response.header("location") == "/oops"

    async def test_none_is_generic(self) -> None:
        response = await call_error_handler(lambda: None, _request(), ValueError(), 500)
        assert response.body == "500 Internal Server Error"


class TestHandleInternalError:
    async def test_production_generic(self) -> None:
        response = await handle_internal_error(
            ValueError("secret"), _request(), error_handlers={}, debug=False, log=False
        )
        assert response.status == 500
        assert "secret" not in response.body_text

    async def test_production_hook(self) -> None:
        handlers = {500: lambda request: f"<p>sorry {request.path}</p>"}
        response = await handle_internal_error(
            ValueError("x"), _request("/a"), error_handlers=handlers, debug=False, log=False
        )
        assert response.body == "<p>sorry /a</p>"

    async def test_failing_hook_falls_back_to_generic(self, caplog) -> None:
        def broken() -> str:
            raise RuntimeError("hook bug")

        with caplog.at_level("ERROR", logger="warren.server"):
            response = await handle_internal_error(
                ValueError("x"), _request("/a"), error_handlers={500: broken}, debug=False, log=False
            )

        assert response.status == 500
        assert response.body == "500 Internal Server Error"
        assert "Error handler" in caplog.text
        assert "hook bug" in caplog.text

    async def test_debug_overlay_is_500(self) -> None:
        response = await handle_internal_error(
            NotFound("x"), _request(), error_handlers={}, debug=True, status=404, log=False
        )
        assert response.status == 500
        assert "Runtime Error" in response.body_text

    async def test_logs(self, caplog) -> None:
        with caplog.at_level("ERROR", logger="warren.server"):
            await handle_internal_error(ValueError("x"), _request("/p"), error_handlers={}, debug=False)
        assert "500 GET /p" in caplog.text

    def test_generic_unknown_status(self) -> None:
        assert generic_error_response(599).body == "599 Error"


class TestMethodNotAllowed:
    def test_allow_header(self) -> None:
        exc = MethodNotAllowed(frozenset({"POST", "GET"}))
        assert exc.status == 405
        assert exc.allowed == ("GET", "POST")
