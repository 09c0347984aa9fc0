"""Route, RouteTable, and RouteMatch frozen dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

NOT_FOUND_PATHS = ("/404", "/not-found")


def split_path(path: str) -> tuple[str, ...]:
    """Split a URL path or pattern into its non-empty segments."""
    return tuple(segment for segment in path.split("/") if segment)


def extract_params(pattern: str) -> tuple[str, ...]:
    """Parameter names of a pattern: every ``:x`` and ``*x`` token, in order.

    >>> extract_params("/shop/:category/*rest")
    ('category', 'rest')
    """
    return tuple(
        segment[1:] for segment in split_path(pattern) if segment[0] in (":", "*")
    )


@dataclass(frozen=True, slots=True)
class Route:
    """A discovered route: a path pattern bound to a source file.

    Patterns use ``:name`` for a dynamic segment and ``*name`` for a
    catch-all, which only ever occupies the final segment.

    Attributes:
        path: The URL pattern, e.g. ``/blog/:slug``.
        handler: Absolute path of the source module.
        is_exact: True for static patterns, matched by string equality.
        is_dynamic: True when the pattern has ``:`` or ``*`` segments.
        param_names: Exactly the ``:x``/``*x`` tokens of ``path``.
        catch_all_optional: The catch-all also matches an empty tail.
    """

    path: str
    handler: Path
    is_exact: bool
    is_dynamic: bool
    param_names: tuple[str, ...] = ()
    catch_all_optional: bool = False

    @classmethod
    def from_pattern(cls, path: str, handler: Path, *, optional: bool = False) -> Route:
        """Build a Route, deriving the flags and parameter names from *path*."""
        params = extract_params(path)
        dynamic = bool(params)
        return cls(
            path=path,
            handler=handler,
            is_exact=not dynamic,
            is_dynamic=dynamic,
            param_names=params,
            catch_all_optional=optional and dynamic,
        )

    @property
    def segments(self) -> tuple[str, ...]:
        return split_path(self.path)

    @property
    def catch_all_index(self) -> int | None:
        """Position of the catch-all segment, or ``None``."""
        for i, segment in enumerate(self.segments):
            if segment.startswith("*"):
                return i
        return None


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Page and API routes, each in discovery order.

    Discovery order is the match order. A table is never mutated; a
    rebuild produces a new table that replaces the old one wholesale.
    """

    pages: tuple[Route, ...] = ()
    api: tuple[Route, ...] = ()

    def find(self, path: str) -> Route | None:
        """The first page route whose pattern is exactly *path*."""
        for route in self.pages:
            if route.path == path:
                return route
        return None

    @property
    def not_found(self) -> Route | None:
        """The registered not-found page (``/404`` first, then ``/not-found``)."""
        for path in NOT_FOUND_PATHS:
            route = self.find(path)
            if route is not None:
                return route
        return None

    def __len__(self) -> int:
        return len(self.pages) + len(self.api)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: Mapping[str, str] = field(default_factory=dict)
