"""Request dispatch.

The only component that turns a raw ASGI request into a warren
``Response``. Every request walks one state machine::

    PUBLIC_FILE | MIDDLEWARE -> ACTION | ROUTE_MATCH -> API_HANDLE | PAGE_RENDER -> RESPONSE_SENT

with ``ERROR`` reachable from any state. A file under ``public/`` is
answered before middleware runs; a ``POST`` to the actions endpoint is
answered after it. Locale resolution happens first, so middleware and
routing both see the locale-stripped path.
Transitions are logged at DEBUG on ``warren.server``.
"""

import logging
from enum import Enum
from pathlib import Path

from warren._internal.asgi import Receive, Scope, Send
from warren.build.cache import CompilationCache
from warren.config import AppConfig
from warren.context import RequestContext, bind_context
from warren.errors import CompilationError, HTTPError, MethodNotAllowed
from warren.http.cookies import CookieJar
from warren.http.request import Request
from warren.http.response import Response
from warren.i18n.dictionaries import Dictionaries
from warren.i18n.locale import resolve_locale, strip_locale_from_path
from warren.rendering.engine import RenderEngine
from warren.routing.matcher import match_route
from warren.routing.route import RouteMatch, RouteTable
from warren.server import actions, api
from warren.server.debug_page import render_debug_page
from warren.server.errors import ErrorHandlers, handle_internal_error
from warren.server.middleware import Continue, RewriteTo, Terminal, find_middleware, run_middleware
from warren.server.pages import PageRenderer
from warren.server.sender import send_response
from warren.server.static import PublicFiles

logger = logging.getLogger("warren.server")

API_PREFIX = "/api"


class DispatchState(Enum):
    PUBLIC_FILE = "public_file"
    MIDDLEWARE = "middleware"
    ACTION = "action"
    ROUTE_MATCH = "route_match"
    API_HANDLE = "api_handle"
    PAGE_RENDER = "page_render"
    RESPONSE_SENT = "response_sent"
    ERROR = "error"


def is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(f"{API_PREFIX}/")


class Dispatcher:
    """Routes requests against the current route table.

    ``table`` and ``dictionaries`` are plain attributes. The app replaces
    them wholesale on reload; a request reads each once, so it sees
    either the old or the new value, never a mix.
    """

    def __init__(
        self,
        config: AppConfig,
        cache: CompilationCache,
        engine: RenderEngine,
        *,
        table: RouteTable,
        dictionaries: Dictionaries,
        error_handlers: ErrorHandlers,
    ) -> None:
        self.config = config
        self.cache = cache
        self.table = table
        self.dictionaries = dictionaries
        self.error_handlers = error_handlers
        self.pages = PageRenderer(config, cache, engine, error_handlers)
        self.public = PublicFiles(config.public_path)

    # -- ASGI --

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process a single HTTP request through the full pipeline."""
        request = Request.from_asgi(scope, receive)
        response = await self.dispatch(request)
        await send_response(response, send, method=request.method)
        self._enter(DispatchState.RESPONSE_SENT, request, status=response.status)

    # -- Dispatch --

    async def dispatch(self, request: Request) -> Response:
        """Produce the response for *request*. Never raises for request faults."""
        table = self.table
        config = self.config

        resolved = resolve_locale(
            request.path,
            request.cookies.get(config.locale_cookie),
            request.headers.get("accept-language"),
            default=config.default_locale,
            locales=config.locales,
        )
        request = request.with_locale(resolved.locale, resolved.pathname)
        logger.debug("Locale %s (%s) for %s", resolved.locale, resolved.source.value, request.path)

        ctx = RequestContext(
            locale=resolved.locale,
            pathname=resolved.pathname,
            dictionaries=self.dictionaries,
            cookies=CookieJar(request.cookies),
            default_locale=config.default_locale,
        )
        with bind_context(ctx):
            response = await self._run(request, ctx, table)
        return response.with_cookies(ctx.cookies.pending)

    async def _run(self, request: Request, ctx: RequestContext, table: RouteTable) -> Response:
        served = self.public.serve(request)
        if served is not None:
            self._enter(DispatchState.PUBLIC_FILE, request, status=served.status)
            return served

        middleware = find_middleware(self.config.root_path, self.config.extensions)
        if middleware is not None:
            self._enter(DispatchState.MIDDLEWARE, request)
            try:
                outcome = await run_middleware(middleware, self.cache, request, ctx)
            except Exception as exc:
                self._enter(DispatchState.ERROR, request)
                return await handle_internal_error(
                    exc,
                    request,
                    error_handlers=self.error_handlers,
                    debug=self.config.debug,
                    file=exc.source if isinstance(exc, CompilationError) else middleware,
                )
            match outcome:
                case Terminal(response=response):
                    return response
                case RewriteTo(path=path):
                    target = strip_locale_from_path(path, self.config.locales)
                    logger.debug("Rewrite %s -> %s", request.effective_path, target)
                    request = request.with_effective_path(target)
                    ctx = ctx.with_pathname(target)
                case Continue():
                    pass

        if actions.is_action_request(request):
            return await self._handle_action(request, ctx)

        self._enter(DispatchState.ROUTE_MATCH, request)
        path = request.effective_path

        matched = match_route(path, table.api)
        if matched is not None:
            return await self._handle_api(matched, request, ctx)
        if is_api_path(path):
            return api.api_not_found(path)

        matched = match_route(path, table.pages)
        self._enter(DispatchState.PAGE_RENDER, request)
        if matched is None:
            return await self.pages.render_not_found(request, ctx, table)

        ctx = ctx.with_params(matched.params)
        with bind_context(ctx):
            return await self.pages.render(matched.route, request.with_params(matched.params), ctx, table)

    async def _handle_api(self, matched: RouteMatch, request: Request, ctx: RequestContext) -> Response:
        self._enter(DispatchState.API_HANDLE, request)
        route = matched.route
        request = request.with_params(matched.params)
        ctx = ctx.with_params(matched.params)

        with bind_context(ctx):
            try:
                module = await self.cache.load(route.handler)
                handler = api.select_handler(module, request.method)
            except CompilationError as exc:
                self._enter(DispatchState.ERROR, request)
                logger.error("API compilation failed for %s", route.handler, exc_info=exc)
                return api.compile_failed(exc, route.handler)
            except MethodNotAllowed as exc:
                return api.method_not_allowed(exc)
            except Exception as exc:
                self._enter(DispatchState.ERROR, request)
                logger.exception("500 %s %s", request.method, request.path)
                return api.handler_failed(exc, route.handler, debug=self.config.debug)

            try:
                return await api.call_handler(handler, request, ctx)
            except HTTPError as exc:
                logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
                return api.http_error(exc)
            except Exception as exc:
                self._enter(DispatchState.ERROR, request)
                logger.exception("500 %s %s", request.method, request.path)
                return api.handler_failed(exc, route.handler, debug=self.config.debug)

    async def _handle_action(self, request: Request, ctx: RequestContext) -> Response:
        self._enter(DispatchState.ACTION, request)
        file: Path | None = None
        try:
            name, data = await actions.read_payload(request)
            file = actions.find_actions(self.config.root_path / "src" / "app", self.config.extensions)
            if file is None:
                return Response.json({"error": "No actions file found"}, status=404)
            module = await self.cache.load(file)
            action = actions.find_action(module, name)
            if action is None:
                return Response.json({"error": f"Action not found: {name}"}, status=404)
            return await actions.call_action(action, data, request, ctx)
        except actions.ActionRequestError as exc:
            return exc.to_response()
        except HTTPError as exc:
            return api.http_error(exc)
        except CompilationError as exc:
            self._enter(DispatchState.ERROR, request)
            logger.error("Action compilation failed for %s", exc.source, exc_info=exc)
            if self.config.debug:
                body = render_debug_page(exc, request, file=exc.source, message="Action compilation failed")
                return Response(body=body, status=500)
            return await handle_internal_error(
                exc, request, error_handlers=self.error_handlers, debug=False, log=False
            )
        except Exception as exc:
            self._enter(DispatchState.ERROR, request)
            return await handle_internal_error(
                exc, request, error_handlers=self.error_handlers, debug=self.config.debug, file=file
            )

    # -- Logging --

    def _enter(self, state: DispatchState, request: Request, **extra: object) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        details = " ".join(f"{k}={v}" for k, v in extra.items())
        logger.debug("%s %s -> %s %s", request.method, request.effective_path, state.name, details)
