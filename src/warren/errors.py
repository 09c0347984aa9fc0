"""Warren exception hierarchy.

Shared across discovery, the compilation cache, the dispatcher, and
user handlers so every module raises and catches the same types.

Control-flow signals (redirect, not-found) are not errors and live in
:mod:`warren.navigation`.
"""

from dataclasses import dataclass
from pathlib import Path


class WarrenError(Exception):
    """Base for all warren-specific errors."""


class ConfigurationError(WarrenError):
    """Raised when app configuration or project layout is invalid.

    Typically caught during ``App._freeze()`` at startup.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WarrenError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or by the dispatcher itself. The dispatcher
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the handler module exports nothing for this HTTP method.

    Includes an ``Allow`` header listing the exported methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "Method not allowed") -> None:
        super().__init__(
            status=405,
            detail=detail,
            headers=(("Allow", ", ".join(sorted(allowed))),),
        )

    @property
    def allowed(self) -> tuple[str, ...]:
        value = dict(self.headers).get("Allow", "")
        return tuple(m for m in value.split(", ") if m)


class CompilationError(WarrenError):
    """A source module failed to produce an executable artifact.

    ``resource_exhausted`` is set when the failure was caused by disk
    pressure and survived the cache's wipe-and-retry recovery.
    """

    def __init__(self, source: Path, message: str, *, resource_exhausted: bool = False) -> None:
        super().__init__(message)
        self.source = source
        self.message = message
        self.resource_exhausted = resource_exhausted

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


class RenderError(WarrenError):
    """The rendering engine raised while producing markup.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, component: str, message: str) -> None:
        super().__init__(message)
        self.component = component
        self.message = message
