"""Warren: file-system routed, server-rendered web apps.

Pages and API routes are plain Python modules laid out under
``src/app`` or ``src/pages``; the directory tree is the URL space.

Basic usage::

    # src/app/page.py
    def page(locale):
        return f"<h1>Hello ({locale})</h1>"

    # serve.py
    from warren import App, AppConfig

    app = App(AppConfig(root=".", debug=True))

Any ASGI server can run ``app``.
"""

__version__ = "0.1.0"
__all__ = [
    "NEXT",
    "App",
    "AppConfig",
    "CompilationError",
    "ConfigurationError",
    "Element",
    "HTTPError",
    "InlineTemplate",
    "MethodNotAllowed",
    "NotFound",
    "Redirect",
    "RenderError",
    "Request",
    "RequestContext",
    "Response",
    "ResponseWriter",
    "Rewrite",
    "Template",
    "WarrenError",
    "get_locale",
    "get_request_context",
    "h",
    "not_found",
    "permanent_redirect",
    "provider",
    "redirect",
    "use_translation",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from warren.app import App

        return App

    if name == "AppConfig":
        from warren.config import AppConfig

        return AppConfig

    if name == "Request":
        from warren.http.request import Request

        return Request

    if name in ("Response", "Redirect", "Rewrite", "ResponseWriter", "NEXT"):
        from warren.http import response as _resp

        return getattr(_resp, name)

    if name in ("Template", "InlineTemplate"):
        from warren.rendering import returns as _returns

        return getattr(_returns, name)

    if name in ("Element", "h", "provider"):
        from warren.rendering import engine as _engine

        return getattr(_engine, name)

    if name in ("not_found", "redirect", "permanent_redirect"):
        from warren import navigation as _nav

        return getattr(_nav, name)

    if name in ("RequestContext", "get_request_context", "get_locale"):
        from warren import context as _ctx

        return getattr(_ctx, name)

    if name == "use_translation":
        from warren.i18n.dictionaries import use_translation

        return use_translation

    if name in (
        "CompilationError",
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "RenderError",
        "WarrenError",
    ):
        from warren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
