"""Tests for warren.routing.manifest — routes.json output."""

import json
from datetime import UTC, datetime

from warren.routing.discovery import discover_routes
from warren.routing.manifest import MANIFEST_NAME, build_manifest, write_manifest


class TestBuildManifest:
    def test_shape(self, project) -> None:
        project.page("", "def page(): return ''")
        project.page("blog/[slug]", "def page(slug): return slug")
        project.write("src/app/api/users/route.py", "def GET(): return []")
        table = discover_routes(project.root)
        moment = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

        manifest = build_manifest(table, root=project.root.resolve(), build_time=moment)

        assert manifest["routes"] == [
            {"path": "/blog/:slug", "component": "src/app/blog/[slug]/page.py"},
            {"path": "/", "component": "src/app/page.py"},
        ]
        assert manifest["apiRoutes"] == [
            {"path": "/api/users", "component": "src/app/api/users/route.py"},
        ]
        assert manifest["buildTime"] == "2026-01-02T03:04:05+00:00"

    def test_absolute_without_root(self, project) -> None:
        project.page("", "def page(): return ''")
        manifest = build_manifest(discover_routes(project.root))
        assert manifest["routes"][0]["component"].endswith("src/app/page.py")
        assert manifest["routes"][0]["component"].startswith("/")


class TestWriteManifest:
    def test_writes_and_overwrites(self, project) -> None:
        project.page("", "def page(): return ''")
        out = project.root / "dist"
        target = write_manifest(discover_routes(project.root), out)
        assert target == out / MANIFEST_NAME

        project.page("about", "def page(): return ''")
        write_manifest(discover_routes(project.root), out)

        data = json.loads(target.read_text())
        assert [r["path"] for r in data["routes"]] == ["/about", "/"]
        assert not (out / "routes.json.tmp").exists()
