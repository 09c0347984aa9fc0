"""Tests for warren.server.static — public file lookup and serving."""

import pytest

from warren.http.headers import Headers
from warren.http.request import Request
from warren.server.static import PublicFiles, public_relative


def _request(path: str, method: str = "GET") -> Request:
    return Request(method=method, path=path, query_string="", headers=Headers(), cookies={})


class TestPublicRelative:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/public/css/site.css", "css/site.css"),
            ("/assets/app.js", "app.js"),
            ("/favicon.ico", "favicon.ico"),
            ("/docs/guide.pdf", "docs/guide.pdf"),
            ("/about", None),
            ("/", None),
        ],
    )
    def test_mapping(self, path: str, expected: str | None) -> None:
        assert public_relative(path) == expected


class TestPublicFiles:
    @pytest.fixture
    def public(self, tmp_path):
        directory = tmp_path / "public"
        (directory / "css").mkdir(parents=True)
        (directory / "css" / "site.css").write_text("body{}")
        (directory / "blob").write_bytes(b"\x00\x01")
        (tmp_path / "private.txt").write_text("nope")
        return PublicFiles(directory)

    def test_serves_file_with_type(self, public) -> None:
        response = public.serve(_request("/public/css/site.css"))
        assert response is not None
        assert response.status == 200
        assert response.content_type == "text/css"
        assert response.body == b"body{}"

    def test_unknown_type_is_octet_stream(self, public) -> None:
        response = public.serve(_request("/assets/blob"))
        assert response is not None
        assert response.content_type == "application/octet-stream"

    def test_head_served(self, public) -> None:
        assert public.serve(_request("/css/site.css", method="HEAD")) is not None

    def test_other_methods_fall_through(self, public) -> None:
        assert public.serve(_request("/css/site.css", method="POST")) is None

    def test_missing_falls_through(self, public) -> None:
        assert public.serve(_request("/missing.css")) is None

    def test_directory_falls_through(self, public) -> None:
        assert public.serve(_request("/public/css")) is None

    def test_traversal_forbidden(self, public) -> None:
        response = public.serve(_request("/assets/../private.txt"))
        assert response is not None
        assert response.status == 403

    def test_missing_directory(self, tmp_path) -> None:
        assert PublicFiles(tmp_path / "none").serve(_request("/x.txt")) is None
