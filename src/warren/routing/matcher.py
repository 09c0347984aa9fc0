"""First-match route matching.

Routes are tried in discovery order and the first structurally
compatible one wins. There is no specificity scoring: with
``/blog/:slug`` discovered before ``/blog/featured``, a request for
``/blog/featured`` binds ``slug="featured"``.
"""

from collections.abc import Iterable

from warren.routing.route import Route, RouteMatch, split_path


def match_route(pathname: str, routes: Iterable[Route]) -> RouteMatch | None:
    """Return the first route matching *pathname*, with bound params."""
    segments = split_path(pathname)
    for route in routes:
        params = match_segments(segments, route)
        if params is not None:
            return RouteMatch(route=route, params=params)
    return None


def match_segments(segments: tuple[str, ...], route: Route) -> dict[str, str] | None:
    """Match normalized path *segments* against one route.

    Returns the bound params, or ``None`` when the route does not match.
    Literal segments compare case-sensitively.
    """
    pattern = route.segments
    if not route.is_dynamic:
        return {} if segments == pattern else None

    cutoff = route.catch_all_index
    if cutoff is None:
        if len(segments) != len(pattern):
            return None
        return _bind(segments, pattern)

    if len(segments) < cutoff:
        return None
    params = _bind(segments[:cutoff], pattern[:cutoff])
    if params is None:
        return None

    tail = segments[cutoff:]
    if not tail and not route.catch_all_optional:
        # A required catch-all needs at least one segment.
        return None
    params[pattern[cutoff][1:]] = "/".join(tail)
    return params


def _bind(segments: tuple[str, ...], pattern: tuple[str, ...]) -> dict[str, str] | None:
    params: dict[str, str] = {}
    for actual, expected in zip(segments, pattern, strict=True):
        if expected.startswith(":"):
            params[expected[1:]] = actual
        elif actual != expected:
            return None
    return params
