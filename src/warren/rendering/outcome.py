"""Tagged render outcomes.

Rendering a page ends in exactly one of three ways. Signals raised by
page code are converted to these values where components are called,
so everything above that boundary handles a plain value with ``match``
instead of inspecting exception types::

    match outcome:
        case Rendered(markup=markup): ...
        case RedirectTo(url=url, status=status): ...
        case NotFoundOutcome(): ...
"""

from dataclasses import dataclass

from warren.errors import NotFound
from warren.http.response import Redirect
from warren.navigation import NotFoundSignal, RedirectSignal


@dataclass(frozen=True, slots=True)
class Rendered:
    markup: str


@dataclass(frozen=True, slots=True)
class RedirectTo:
    url: str
    status: int = 307


@dataclass(frozen=True, slots=True)
class NotFoundOutcome:
    message: str = "Page not found"


RenderOutcome = Rendered | RedirectTo | NotFoundOutcome

SIGNALS: tuple[type[BaseException], ...] = (RedirectSignal, NotFoundSignal, NotFound)
"""Exception types that are control flow, not faults."""


def from_signal(exc: BaseException) -> RedirectTo | NotFoundOutcome:
    """Convert a raised signal to its outcome."""
    match exc:
        case RedirectSignal():
            return RedirectTo(exc.url, exc.status)
        case NotFoundSignal():
            return NotFoundOutcome(exc.message)
        case NotFound():
            return NotFoundOutcome(exc.detail or "Page not found")
    msg = f"{type(exc).__name__} is not a navigation signal"
    raise TypeError(msg)


def from_value(value: object) -> RedirectTo | NotFoundOutcome | None:
    """The outcome a component *returned*, or ``None`` for ordinary results."""
    match value:
        case Redirect():
            return RedirectTo(value.url, value.status)
        case RedirectSignal() | NotFoundSignal() | NotFound():
            return from_signal(value)
    return None
