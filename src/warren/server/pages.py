"""Page rendering: page module -> layouts -> engine -> document.

Every path out of :meth:`PageRenderer.render` is a ``Response``:

- Rendered markup wrapped in the document shell (200)
- A redirect (status + ``Location``, empty body, engine never called)
- The not-found page (404)
- An error page, or the last-resort error response
"""

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from warren._internal.invoke import invoke, resolve_kwargs
from warren.build.cache import CompilationCache
from warren.config import AppConfig
from warren.context import RequestContext
from warren.errors import CompilationError, RenderError
from warren.http.request import Request
from warren.http.response import HTML_CONTENT_TYPE, Redirect, Response
from warren.i18n.dictionaries import I18nProvider
from warren.pages.components import describe_exports, resolve_component
from warren.pages.document import render_document
from warren.pages.layouts import collect_layouts
from warren.pages.metadata import (
    Metadata,
    escape_attr,
    load_metadata,
    metadata_title,
    render_hreflang_links,
    render_meta_tags,
    request_origin,
)
from warren.rendering.engine import Element, RenderEngine
from warren.rendering.outcome import (
    SIGNALS,
    NotFoundOutcome,
    RedirectTo,
    Rendered,
    RenderOutcome,
    from_signal,
    from_value,
)
from warren.routing.route import Route, RouteTable
from warren.server.debug_page import render_debug_page
from warren.server.errors import (
    ErrorHandlers,
    classify_status,
    error_message,
    error_page_candidates,
    handle_internal_error,
)

logger = logging.getLogger("warren.server")

NOT_FOUND_FALLBACK = "<h1>404 - Page Not Found</h1>"


class ComponentExportError(RenderError):
    """A page module exports nothing that can be rendered."""


class PageRenderer:
    """Renders page routes for one app.

    Args:
        config: The app's configuration (root, extensions, debug, locales).
        cache: Compilation cache every page, layout, and error page loads through.
        engine: The rendering engine.
        error_handlers: ``@app.error`` handlers, consulted in production.
    """

    def __init__(
        self,
        config: AppConfig,
        cache: CompilationCache,
        engine: RenderEngine,
        error_handlers: ErrorHandlers,
    ) -> None:
        self.config = config
        self.cache = cache
        self.engine = engine
        self.error_handlers = error_handlers

    # -- Public --

    async def render(
        self,
        route: Route,
        request: Request,
        ctx: RequestContext,
        table: RouteTable,
    ) -> Response:
        """Render *route* for *request*. Never raises for page faults."""
        try:
            module = await self.cache.load(route.handler)
        except CompilationError as exc:
            return await self._compile_failed(exc, request)
        except Exception as exc:
            return await self.render_error(exc, route, request, ctx, table)

        component = resolve_component(module)
        if component is None:
            return await self._export_failed(route, module, request)

        try:
            outcome = await self._render_outcome(component, route, request, ctx)
        except Exception as exc:
            return await self.render_error(exc, route, request, ctx, table, module=module)

        match outcome:
            case Rendered(markup=markup):
                document = await self._document(markup, module, request, ctx)
                return Response(body=document, content_type=HTML_CONTENT_TYPE)
            case RedirectTo(url=url, status=status):
                logger.debug("Redirect %s -> %s (%d)", request.path, url, status)
                return Redirect(url, status).to_response()
            case NotFoundOutcome(message=message):
                return await self.render_not_found(request, ctx, table, message=message)
        msg = f"Unknown render outcome {outcome!r}"
        raise TypeError(msg)

    async def render_not_found(
        self,
        request: Request,
        ctx: RequestContext,
        table: RouteTable,
        *,
        message: str = "Page not found",
    ) -> Response:
        """The registered not-found page with status 404, or a literal fallback."""
        route = table.not_found
        markup = NOT_FOUND_FALLBACK
        if route is not None:
            props = {"params": dict(ctx.params), "error": {"code": 404, "message": message}}
            try:
                markup = await self._render_standalone(route.handler, props, ctx)
            except Exception:
                logger.warning("Not-found page %s failed to render", route.handler, exc_info=True)
                markup = NOT_FOUND_FALLBACK
        document = render_document(markup, lang=ctx.locale)
        return Response(body=document, status=404, content_type=HTML_CONTENT_TYPE)

    async def render_error(
        self,
        exc: Exception,
        route: Route,
        request: Request,
        ctx: RequestContext,
        table: RouteTable,
        *,
        module: ModuleType | None = None,
    ) -> Response:
        """Render an error page for *exc*, or fall back to the error hook."""
        status = classify_status(exc)
        logger.exception("%d %s %s", status, request.method, request.path, exc_info=exc)
        props = {"error": {"code": status, "message": error_message(exc, status)}}

        for path in error_page_candidates(status):
            error_route = table.find(path)
            if error_route is None or error_route.handler == route.handler:
                continue
            try:
                markup = await self._render_standalone(error_route.handler, props, ctx)
            except Exception:
                logger.warning("Error page %s failed to render", error_route.handler, exc_info=True)
                continue
            document = render_document(markup, lang=ctx.locale)
            return Response(body=document, status=status, content_type=HTML_CONTENT_TYPE)

        title = await self._title(module, ctx) if module is not None else None
        file = exc.source if isinstance(exc, CompilationError) else route.handler
        return await handle_internal_error(
            exc,
            request,
            error_handlers=self.error_handlers,
            debug=self.config.debug,
            file=file,
            title=title,
            status=status,
            log=False,
        )

    # -- Rendering --

    async def _render_outcome(
        self,
        component: Callable[..., Any],
        route: Route,
        request: Request,
        ctx: RequestContext,
    ) -> RenderOutcome:
        params = dict(ctx.params)
        search_params = dict(request.query)
        available = {
            **params,
            "params": params,
            "search_params": search_params,
            "locale": ctx.locale,
            "ctx": ctx,
            "request": request,
            "props": {"params": params, "search_params": search_params},
        }
        try:
            result = await invoke(component, **resolve_kwargs(component, available))
        except SIGNALS as signal:
            return from_signal(signal)
        if (early := from_value(result)) is not None:
            return early

        layouts = await self._layouts(route.handler)
        tree: Any = result
        for layout in reversed(layouts):
            tree = Element(layout, {"params": params, "locale": ctx.locale, "ctx": ctx, "children": tree})

        try:
            markup = await self._engine_render(tree, ctx)
        except SIGNALS as signal:
            return from_signal(signal)
        return Rendered(markup)

    async def _engine_render(self, tree: Any, ctx: RequestContext) -> str:
        props = {
            "initial_locale": ctx.locale,
            "dictionaries": ctx.dictionaries,
            "default_locale": ctx.default_locale,
            "children": tree,
        }
        try:
            return await invoke(self.engine.render, I18nProvider, props)
        except SIGNALS:
            raise
        except Exception as exc:
            name = tree.name if isinstance(tree, Element) else type(tree).__name__
            raise RenderError(name, str(exc) or type(exc).__name__) from exc

    async def _render_standalone(
        self,
        source: Path,
        props: Mapping[str, Any],
        ctx: RequestContext,
    ) -> str:
        """Render the component in *source* with *props*, without layouts."""
        module = await self.cache.load(source)
        component = resolve_component(module)
        if component is None:
            raise ComponentExportError(str(source), f"{source} exports no component")
        return await self._engine_render(Element(component, dict(props)), ctx)

    async def _layouts(self, page: Path) -> list[Callable[..., Any]]:
        components: list[Callable[..., Any]] = []
        for file in collect_layouts(page, self.config.root_path, extensions=self.config.extensions):
            module = await self.cache.load(file)
            component = resolve_component(module)
            if component is None:
                logger.warning("Layout %s exports no component; skipping", file)
                continue
            components.append(component)
        return components

    # -- Document --

    async def _metadata(self, module: ModuleType, ctx: RequestContext) -> Metadata | None:
        return await load_metadata(
            module,
            params=ctx.params,
            locale=ctx.locale,
            translator=ctx.translator,
        )

    async def _title(self, module: ModuleType, ctx: RequestContext) -> str | None:
        return metadata_title(await self._metadata(module, ctx))

    async def _document(
        self,
        markup: str,
        module: ModuleType,
        request: Request,
        ctx: RequestContext,
    ) -> str:
        meta = await self._metadata(module, ctx)
        head = [render_meta_tags(meta)]
        if ctx.dictionaries:
            head.append(
                render_hreflang_links(
                    origin=request_origin(request.headers),
                    pathname=ctx.pathname,
                    locales=tuple(ctx.dictionaries),
                    default_locale=ctx.default_locale,
                )
            )
        lang = ctx.locale
        if meta and isinstance(meta.get("lang"), str) and meta["lang"].strip():
            lang = meta["lang"].strip()
        return render_document(markup, head="\n".join(h for h in head if h), lang=lang)

    # -- Diagnostics --

    async def _compile_failed(self, exc: CompilationError, request: Request) -> Response:
        message = "Page compilation failed"
        if exc.resource_exhausted:
            message = (
                "Page compilation failed: not enough disk space. "
                f"Free disk space or delete {self.config.cache_path}"
            )
        logger.error("%s for %s", message, exc.source, exc_info=exc)
        if self.config.debug:
            body = render_debug_page(exc, request, file=exc.source, message=message)
            return Response(body=body, status=500)
        return await handle_internal_error(
            exc,
            request,
            error_handlers=self.error_handlers,
            debug=False,
            log=False,
        )

    async def _export_failed(self, route: Route, module: ModuleType, request: Request) -> Response:
        exports = describe_exports(module)
        exc = ComponentExportError(str(route.handler), f"{route.handler} exports no component")
        logger.error("Component export error in %s (exports: %s)", route.handler, exports)
        if self.config.debug:
            body = (
                "<!DOCTYPE html><html><body>"
                "<h1>500 - Component export error</h1>"
                f"<pre>{escape_attr(route.handler)}\nModule exports: {escape_attr(exports)}</pre>"
                "</body></html>"
            )
            return Response(body=body, status=500)
        return await handle_internal_error(
            exc,
            request,
            error_handlers=self.error_handlers,
            debug=False,
            log=False,
        )
