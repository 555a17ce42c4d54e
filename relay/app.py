import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from .config import Settings
from .exceptions import ProxyError, RouteNotFound
from .middleware import BearerAuthMiddleware
from .proxy import Forwarder, raw_target
from .responses import error_response
from .routing import Router

logger = logging.getLogger(__name__)

HEALTH_PATH = '/health'
PROXY_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS', 'HEAD']


def create_app(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
    Build the proxy application for `settings`.

    `transport` replaces the network transport of the outbound client; tests
    use it to point every route at an in-process upstream.
    """
    router = Router(settings.routes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown logic."""
        #---- Startup ----
        client = httpx.AsyncClient(
            timeout=settings.timeout(),
            follow_redirects=False,
            transport=transport,
        )
        app.state.forwarder = Forwarder(client)

        try:
            yield
        finally:
            #---- Shutdown ----
            await client.aclose()

    app = FastAPI(
        title='relay',
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.router = router
    app.add_middleware(
        BearerAuthMiddleware,
        secret=settings.proxy_secret,
        exempt_paths=frozenset({HEALTH_PATH}),
    )

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        return error_response(exc)

    @app.api_route('/{path:path}', methods=PROXY_METHODS)
    async def proxy(path: str, request: Request):
        target = raw_target(request)
        # Exact target only: '/health?x=1' is routed like any other path
        if target == HEALTH_PATH:
            return {'status': 'ok', 'region': request.app.state.settings.region}

        rule = router.resolve(target)
        if rule is None:
            logger.warning('No route for %s %s', request.method, target)
            raise RouteNotFound(target)

        return await request.app.state.forwarder.forward(rule, request)

    return app
