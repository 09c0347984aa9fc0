"""Route manifest (``routes.json``) for downstream tooling.

Each build overwrites the whole file::

    {
      "routes": [{"path": "/", "component": "src/app/page.py"}],
      "apiRoutes": [{"path": "/api/users", "component": "src/app/api/users/route.py"}],
      "buildTime": "2026-01-01T00:00:00+00:00"
    }
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from warren.routing.route import Route, RouteTable

logger = logging.getLogger("warren.routing")

MANIFEST_NAME = "routes.json"


def _entry(route: Route, root: Path | None) -> dict[str, Any]:
    component = route.handler
    if root is not None and component.is_relative_to(root):
        component = component.relative_to(root)
    return {"path": route.path, "component": component.as_posix()}


def build_manifest(
    table: RouteTable,
    *,
    root: Path | None = None,
    build_time: datetime | None = None,
) -> dict[str, Any]:
    """The manifest document for *table*. Components are relative to *root*."""
    moment = build_time or datetime.now(UTC)
    return {
        "routes": [_entry(route, root) for route in table.pages],
        "apiRoutes": [_entry(route, root) for route in table.api],
        "buildTime": moment.isoformat(),
    }


def write_manifest(
    table: RouteTable,
    out_dir: str | Path,
    *,
    root: Path | None = None,
) -> Path:
    """Write ``routes.json`` into *out_dir*, replacing any previous build's file."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    target = out / MANIFEST_NAME
    tmp = target.with_suffix(".json.tmp")
    tmp.write_text(json.dumps(build_manifest(table, root=root), indent=2), encoding="utf-8")
    tmp.replace(target)
    logger.info("Wrote %s (%d routes, %d API routes)", target, len(table.pages), len(table.api))
    return target
