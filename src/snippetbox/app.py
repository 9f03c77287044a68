"""Snippetbox application class.

Mutable during setup (routes, chains, middleware, filters, hooks).
Frozen on the first ASGI call or ``app.run()``: the route table is
compiled and every route's chain is wrapped around its handler exactly
once. Nothing about routing changes after that.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from kida import Environment

from snippetbox._internal.asgi import Receive, Scope, Send
from snippetbox._internal.types import Handler
from snippetbox.config import AppConfig
from snippetbox.errors import ConfigurationError
from snippetbox.middleware.protocol import Middleware
from snippetbox.routing.chain import Chain, Endpoint
from snippetbox.routing.route import Route
from snippetbox.routing.router import Router
from snippetbox.server.handler import build_dispatcher, handle_request, terminal
from snippetbox.templating.integration import create_environment

logger = logging.getLogger("snippetbox.server")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Handler
    methods: tuple[str, ...]
    chain: Chain
    name: str | None


class App:
    """The snippetbox ASGI application.

    Routes are registered with a chain (``Chain()`` for none, the dynamic
    chain, or the protected chain). Middleware added with
    ``add_middleware`` forms the standard chain that wraps routing
    itself, so it runs for every request, including 404s and 405s.

    Thread safety:
        Setup is single-threaded. The freeze uses a lock with a double
        check so exactly one thread compiles the app, even when several
        workers receive their first request at once.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_middleware_list",
        "_pending_routes",
        "_pipeline",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._middleware_list: list[Middleware] = []
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: Router | None = None
        self._pipeline: Endpoint | None = None
        self._kida_env: Environment | None = None

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        chain: Chain | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. ``{id}`` captures one segment,
                ``{filepath:path}`` captures the rest of the path.
            methods: HTTP methods. Defaults to ``["GET"]``.
            chain: Middleware wrapped around this handler only.
            name: Optional route name.
        """

        def decorator(func: Handler) -> Handler:
            self.add_route(path, func, methods=methods, chain=chain, name=name)
            return func

        return decorator

    def add_route(
        self,
        path: str,
        handler: Handler,
        *,
        methods: list[str] | None = None,
        chain: Chain | None = None,
        name: str | None = None,
    ) -> None:
        self._check_not_frozen()
        self._pending_routes.append(
            _PendingRoute(
                path=path,
                handler=handler,
                methods=tuple(m.upper() for m in (methods or ["GET"])),
                chain=chain if chain is not None else Chain(),
                name=name,
            )
        )

    def add_middleware(self, middleware: Middleware) -> None:
        """Append to the standard chain, which wraps every request."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async startup hook.

        Hooks run in registration order during ASGI lifespan startup,
        before the server accepts HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async shutdown hook."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        """The compiled route table (freezes the app)."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the app with pounce until interrupted.

        Requires the ``serve`` extra (``pip install snippetbox[serve]``).
        """
        self._ensure_frozen()
        from pounce.config import ServerConfig
        from pounce.server import Server

        config = ServerConfig(
            host=host or self.config.host,
            port=port or self.config.port,
            workers=1,
            reload=self.config.debug,
            log_level=self.config.log_level,
            ssl_certfile=self.config.tls_certfile,
            ssl_keyfile=self.config.tls_keyfile,
        )
        logger.info(
            "starting server on %s://%s:%d",
            "https" if self.config.tls else "http",
            config.host,
            config.port,
        )
        Server(config, self).run()

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type: {scope['type']!r}"
            raise ConfigurationError(msg)

        self._ensure_frozen()
        assert self._pipeline is not None
        await handle_request(scope, receive, send, pipeline=self._pipeline)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await _run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await _run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Templates first: route endpoints close over the environment
        self._kida_env = create_environment(
            self.config,
            self._template_filters,
        )

        # 2. Route table, each handler wrapped in its chain once
        router = Router()
        for pending in self._pending_routes:
            endpoint = pending.chain.then(terminal(pending.handler, self._kida_env))
            router.add(
                Route(
                    path=pending.path,
                    methods=frozenset(pending.methods),
                    handler=pending.handler,
                    endpoint=endpoint,
                    chain=pending.chain,
                    name=pending.name,
                )
            )
        router.compile()
        self._router = router

        # 3. Standard chain around routing
        standard = Chain(*self._middleware_list)
        self._pipeline = standard.then(build_dispatcher(router))

        self._frozen = True
        logger.debug(
            "compiled %d routes, %d standard middleware",
            len(self._pending_routes),
            len(standard),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and filters before the first request."
            )
            raise RuntimeError(msg)


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result
