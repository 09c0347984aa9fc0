"""Filesystem route discovery.

Turns a project's ``src/`` tree into a :class:`RouteTable`. Roots are
scanned in a fixed order, each in one style for its whole subtree:

- ``src/app``: convention style. Only ``page.py`` files become routes.
- ``src/pages``: pages style. Every non-underscore module becomes a
  route; ``index.py`` maps to its directory.
- ``src``: pages style again, but only when the first two found no
  page routes (flat projects).

Directory names carry routing meaning::

    (marketing)/        transparent group, no URL segment
    [slug]/             dynamic segment   :slug
    [...path]/          catch-all         *path
    [[...path]]/        optional catch-all *path (also matches nothing)
    api/                switches the subtree to API scanning under /api
    lib/ styles/ assets/ types/   never routes

The traversal is an explicit worklist of directory frames. Entries are
visited sorted by name with files and directories interleaved, and the
resulting order is the match order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from warren.errors import ConfigurationError
from warren.routing.route import Route, RouteTable, split_path

logger = logging.getLogger("warren.routing")

UTILITY_DIRS = frozenset({"lib", "styles", "assets", "types"})
NOT_FOUND_STEMS = frozenset({"not-found", "404"})
RESERVED_STEMS = frozenset({"layout", "middleware"})


class SegmentKind(Enum):
    """What a directory (or file stem) contributes to the URL pattern."""

    STATIC = "static"
    GROUP = "group"
    DYNAMIC = "dynamic"
    CATCH_ALL = "catch_all"
    OPTIONAL_CATCH_ALL = "optional_catch_all"
    API = "api"
    SKIP = "skip"


class ScanStyle(Enum):
    APP = "app"
    PAGES = "pages"
    API = "api"


@dataclass(frozen=True, slots=True)
class DirectorySegment:
    """The classification of one path component.

    ``name`` is the literal segment for ``STATIC``/``API`` and the
    parameter name for the dynamic kinds.
    """

    kind: SegmentKind
    name: str = ""

    @property
    def is_optional(self) -> bool:
        return self.kind is SegmentKind.OPTIONAL_CATCH_ALL

    def extend(self, prefix: str) -> str:
        """Append this segment to a URL pattern prefix."""
        match self.kind:
            case SegmentKind.STATIC | SegmentKind.API:
                return f"{prefix}/{self.name}"
            case SegmentKind.DYNAMIC:
                return f"{prefix}/:{self.name}"
            case SegmentKind.CATCH_ALL | SegmentKind.OPTIONAL_CATCH_ALL:
                return f"{prefix}/*{self.name}"
            case _:
                return prefix


def _bracket_segment(name: str) -> DirectorySegment | None:
    """Classify ``[x]``, ``[...x]`` and ``[[...x]]``; ``None`` for anything else."""
    if name.startswith("[[...") and name.endswith("]]") and len(name) > 7:
        return DirectorySegment(SegmentKind.OPTIONAL_CATCH_ALL, name[5:-2])
    if name.startswith("[...") and name.endswith("]") and len(name) > 5:
        return DirectorySegment(SegmentKind.CATCH_ALL, name[4:-1])
    if name.startswith("[") and name.endswith("]") and len(name) > 2 and not name.startswith("[."):
        return DirectorySegment(SegmentKind.DYNAMIC, name[1:-1])
    return None


def classify_directory(name: str) -> DirectorySegment:
    """Classify a directory name. Pure; touches no filesystem.

    >>> classify_directory("[slug]")
    DirectorySegment(kind=<SegmentKind.DYNAMIC: 'dynamic'>, name='slug')
    """
    if name.startswith(("_", ".")) or name in UTILITY_DIRS:
        return DirectorySegment(SegmentKind.SKIP)
    if name == "api":
        return DirectorySegment(SegmentKind.API, "api")
    if name.startswith("(") and name.endswith(")"):
        return DirectorySegment(SegmentKind.GROUP)
    return _bracket_segment(name) or DirectorySegment(SegmentKind.STATIC, name)


def classify_stem(stem: str) -> DirectorySegment:
    """Classify a route file's stem (``[id]``, ``[...rest]``, ``about``)."""
    return _bracket_segment(stem) or DirectorySegment(SegmentKind.STATIC, stem)


# ---------------------------------------------------------------------------
# Worklist traversal
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _Frame:
    """One directory on the worklist, with its remaining entries."""

    prefix: str
    style: ScanStyle
    entries: Iterator[Path]
    optional: bool = False


def _sorted_entries(directory: Path, exclude: frozenset[str] = frozenset()) -> Iterator[Path]:
    return iter(sorted(
        (entry for entry in directory.iterdir() if entry.name not in exclude),
        key=lambda entry: entry.name,
    ))


def discover_routes(
    project_root: str | Path,
    *,
    extensions: tuple[str, ...] = (".py",),
) -> RouteTable:
    """Walk a project's source tree and build its route table.

    Args:
        project_root: Directory containing ``src/``.
        extensions: File suffixes treated as route modules.

    Returns:
        A new :class:`RouteTable`; page and API routes in discovery order.

    Raises:
        ConfigurationError: If *project_root* is not a directory.
    """
    root = Path(project_root).resolve()
    if not root.is_dir():
        msg = f"Project root not found: {root}"
        raise ConfigurationError(msg)

    src = root / "src"
    pages: list[Route] = []
    api: list[Route] = []

    for directory, style in ((src / "app", ScanStyle.APP), (src / "pages", ScanStyle.PAGES)):
        if directory.is_dir():
            logger.debug("Scanning %s (%s style)", directory, style.value)
            _scan(directory, style, extensions, pages, api)

    if src.is_dir() and not pages:
        logger.debug("No page routes found; scanning %s (pages style)", src)
        # app/ and pages/ were already scanned above; only their api/ could add routes.
        _scan(src, ScanStyle.PAGES, extensions, pages, api, exclude=frozenset({"app", "pages"}))

    logger.debug(
        "Discovered %d page routes %s and %d API routes %s",
        len(pages),
        [r.path for r in pages],
        len(api),
        [r.path for r in api],
    )
    return RouteTable(pages=tuple(pages), api=tuple(api))


def _scan(
    start: Path,
    style: ScanStyle,
    extensions: tuple[str, ...],
    pages: list[Route],
    api: list[Route],
    *,
    exclude: frozenset[str] = frozenset(),
) -> None:
    """Depth-first worklist scan of *start*, appending to *pages* / *api*."""
    stack = [_Frame(prefix="", style=style, entries=_sorted_entries(start, exclude))]
    while stack:
        frame = stack[-1]
        entry = next(frame.entries, None)
        if entry is None:
            stack.pop()
            continue

        if entry.is_dir():
            child = _enter_directory(entry, frame)
            if child is not None:
                stack.append(child)
            continue

        if entry.suffix not in extensions:
            continue
        route = _route_for_file(entry, frame)
        if route is None:
            continue
        if not _catch_all_is_final(route):
            logger.warning(
                "Ignoring %s: catch-all segment must be last in %r", entry, route.path
            )
            continue
        (api if frame.style is ScanStyle.API else pages).append(route)


def _enter_directory(directory: Path, frame: _Frame) -> _Frame | None:
    segment = classify_directory(directory.name)
    match segment.kind:
        case SegmentKind.SKIP:
            return None
        case SegmentKind.API if frame.style is not ScanStyle.API:
            # API routes always live under /api, whatever encloses the api/ directory.
            return _Frame("/api", ScanStyle.API, _sorted_entries(directory))
        case SegmentKind.GROUP:
            return _Frame(frame.prefix, frame.style, _sorted_entries(directory), frame.optional)
        case _:
            return _Frame(
                segment.extend(frame.prefix),
                frame.style,
                _sorted_entries(directory),
                frame.optional or segment.is_optional,
            )


def _route_for_file(file: Path, frame: _Frame) -> Route | None:
    """The route a source file declares in its frame, or ``None``."""
    stem = file.stem
    prefix = frame.prefix
    if stem.startswith("_"):
        return None

    if frame.style is ScanStyle.API:
        if stem == "route":
            return Route.from_pattern(prefix or "/", file, optional=frame.optional)
        segment = classify_stem(stem)
        return Route.from_pattern(
            segment.extend(prefix), file, optional=frame.optional or segment.is_optional
        )

    if stem == "page":
        return Route.from_pattern(prefix or "/", file, optional=frame.optional)
    if stem in NOT_FOUND_STEMS:
        return Route.from_pattern(f"{prefix}/not-found", file)
    if frame.style is ScanStyle.APP or stem in RESERVED_STEMS:
        return None
    if stem == "index":
        return Route.from_pattern(prefix or "/", file, optional=frame.optional)

    segment = classify_stem(stem)
    return Route.from_pattern(
        segment.extend(prefix), file, optional=frame.optional or segment.is_optional
    )


def _catch_all_is_final(route: Route) -> bool:
    segments = split_path(route.path)
    return all(not s.startswith("*") for s in segments[:-1])
