"""Warren application class.

Mutable during setup (error handlers). Frozen at runtime when
``__call__()`` is first invoked: freezing discovers routes, loads the
translation dictionaries, and builds the compile cache and dispatcher.
"""

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from kida import Environment

from warren._internal.asgi import Receive, Scope, Send
from warren.build.cache import CompilationCache
from warren.build.compiler import CompileOptions, Compiler, PythonCompiler
from warren.config import AppConfig
from warren.i18n.dictionaries import Dictionaries, load_dictionaries
from warren.rendering.engine import MarkupRenderer, RenderEngine
from warren.rendering.templating import create_environment
from warren.routing.discovery import discover_routes
from warren.routing.manifest import write_manifest
from warren.routing.route import RouteTable
from warren.server.dispatcher import Dispatcher

logger = logging.getLogger("warren.server")

ErrorHandler = Callable[..., Any]


class App:
    """The warren application.

    Usage::

        app = App(AppConfig(root="mysite", debug=True))

        @app.error(404)
        def missing(request):
            return "<h1>Nothing here</h1>"

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        caller builds the app, even when several workers receive their
        first request at once. Route reloads replace the table with a
        single attribute assignment.
    """

    __slots__ = (
        "_cache",
        "_compiler",
        "_custom_engine",
        "_dispatcher",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        engine: RenderEngine | None = None,
        compiler: Compiler | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._custom_engine = engine
        self._compiler = compiler
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state (set during _freeze)
        self._kida_env: Environment | None = None
        self._cache: CompilationCache | None = None
        self._dispatcher: Dispatcher | None = None

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        Handlers decide the response when no error page renders and the
        app is not in debug mode.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Runtime state --

    @property
    def routes(self) -> RouteTable:
        """The current route table."""
        return self._ensure_frozen().table

    @property
    def cache(self) -> CompilationCache:
        self._ensure_frozen()
        assert self._cache is not None
        return self._cache

    @property
    def dictionaries(self) -> Dictionaries:
        return self._ensure_frozen().dictionaries

    def reload_routes(self) -> RouteTable:
        """Rediscover routes and swap the table in one assignment.

        In-flight requests keep the table they started with.
        """
        dispatcher = self._ensure_frozen()
        table = discover_routes(self.config.root_path, extensions=self.config.extensions)
        dispatcher.table = table
        logger.info("Reloaded %d routes", len(table))
        return table

    def reload_dictionaries(self) -> Dictionaries:
        dispatcher = self._ensure_frozen()
        dictionaries = load_dictionaries(self.config.lang_path)
        dispatcher.dictionaries = dictionaries
        return dictionaries

    def notify_change(self, path: str | Path) -> None:
        """React to a changed source file.

        Drops the file's compiled artifact, reloads dictionaries when a
        translation file changed, and rebuilds the route table (files
        may have been added or removed).
        """
        self._ensure_frozen()
        changed = self.config.resolve_path(path)
        logger.debug("Change detected: %s", changed)
        self.cache.invalidate(changed)
        if changed.suffix == ".json" and changed.parent == self.config.lang_path:
            self.reload_dictionaries()
        self.reload_routes()

    def build_manifest(self, out_dir: str | Path | None = None) -> Path:
        """Write ``routes.json`` for the current table to *out_dir* (default ``dist_dir``)."""
        target = self.config.resolve_path(out_dir) if out_dir is not None else self.config.dist_path
        return write_manifest(self.routes, target, root=self.config.root_path)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan directly, then delegates HTTP scopes to the
        dispatcher.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        dispatcher = self._ensure_frozen()
        await dispatcher.handle(scope, receive, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Freeze at startup so the first request doesn't pay for discovery."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> Dispatcher:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            assert self._dispatcher is not None
            return self._dispatcher
        with self._freeze_lock:
            if not self._frozen:
                self._freeze()
        assert self._dispatcher is not None
        return self._dispatcher

    def _freeze(self) -> None:
        """Build the runtime state.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config
        root = config.root_path

        # 1. Routes
        table = discover_routes(root, extensions=config.extensions)

        # 2. Dictionaries
        dictionaries = load_dictionaries(config.lang_path)

        # 3. Rendering (kida for Template returns)
        self._kida_env = create_environment(config)
        engine = self._custom_engine or MarkupRenderer(self._kida_env)

        # 4. Compilation
        self._cache = CompilationCache(
            config.cache_path,
            self._compiler or PythonCompiler(root),
            root=root,
            options=CompileOptions(debug_info=config.debug_info),
            import_paths=config.import_paths,
        )

        self._dispatcher = Dispatcher(
            config,
            self._cache,
            engine,
            table=table,
            dictionaries=dictionaries,
            error_handlers=self._error_handlers,
        )
        self._frozen = True
        logger.info(
            "Warren app ready: %d page routes, %d API routes, %d locales",
            len(table.pages),
            len(table.api),
            len(dictionaries),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register error handlers before the first request."
            )
            raise RuntimeError(msg)
