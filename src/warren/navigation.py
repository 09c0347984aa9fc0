"""Control-flow signals for page code.

Page components call :func:`redirect` or :func:`not_found` to change the
response without producing markup. Both raise a signal exception; the
render pipeline converts it to a tagged outcome at the component-call
boundary, so signals are never logged or shown as errors.

Usage::

    from warren.navigation import not_found, redirect

    def page(params, ctx):
        post = load_post(params["slug"])
        if post is None:
            not_found()
        if post.moved_to:
            redirect(post.moved_to, status=308)
        return f"<h1>{post.title}</h1>"
"""

from typing import NoReturn


class NavigationSignal(Exception):  # noqa: N818
    """Base for expected control-flow signals. Never treated as a fault."""


class NotFoundSignal(NavigationSignal):
    """The requested resource does not exist; respond 404."""

    def __init__(self, message: str = "Page not found") -> None:
        super().__init__(message)
        self.message = message


class RedirectSignal(NavigationSignal):
    """Stop rendering and redirect to ``url`` with ``status``."""

    def __init__(self, url: str, status: int = 307) -> None:
        super().__init__(f"redirect to {url} ({status})")
        self.url = url
        self.status = status


def not_found(message: str = "Page not found") -> NoReturn:
    """Abort rendering with a 404."""
    raise NotFoundSignal(message)


def redirect(url: str, status: int = 307) -> NoReturn:
    """Abort rendering and redirect to *url* (307 by default)."""
    raise RedirectSignal(url, status)


def permanent_redirect(url: str) -> NoReturn:
    """Abort rendering with a 308 redirect."""
    raise RedirectSignal(url, 308)
