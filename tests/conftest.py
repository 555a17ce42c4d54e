# Centralized pytest configuration file (fixtures, hooks, plugins, etc.)
import pytest
from asgi_lifespan import LifespanManager
from fastapi import FastAPI, Request, Response
from fastapi.responses import StreamingResponse
from httpx import AsyncClient, ASGITransport

from relay.app import create_app
from relay.config import RouteRule, Settings

SECRET = 's3cret-token'

DOWNLOAD_CHUNKS = 8
DOWNLOAD_CHUNK_SIZE = 64 * 1024


#----Routes overrides for tests----
TEST_ROUTES = (
    RouteRule(prefix='/hello', upstream='http://upstream'),
    RouteRule(prefix='/echo', upstream='http://upstream'),
    RouteRule(prefix='/api', upstream='http://upstream'),
)


@pytest.fixture
def settings() -> Settings:
    return Settings(routes=TEST_ROUTES, proxy_secret=None, region='fra')


@pytest.fixture
def upstream_app() -> FastAPI:
    app = FastAPI()     # mock upstream app for tests

    @app.get('/cookies')
    async def cookies():  # tests repeated response headers and status passthrough
        response = Response(content=b'ok', status_code=201)
        response.raw_headers.append((b'set-cookie', b'a=1'))
        response.raw_headers.append((b'set-cookie', b'b=2'))
        response.raw_headers.append((b'x-upstream', b'yes'))
        return response

    @app.get('/download')
    async def download():  # tests streamed response bodies
        async def produce():
            for i in range(DOWNLOAD_CHUNKS):
                yield bytes([65 + i]) * DOWNLOAD_CHUNK_SIZE

        return StreamingResponse(produce(), media_type='application/octet-stream')

    @app.api_route('/{path:path}', methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH'])
    async def echo(path: str, request: Request):  # reports what arrived upstream
        chunks = 0
        body = b''
        async for chunk in request.stream():
            if chunk:
                chunks += 1
                body += chunk
        return {
            'message': 'hello from upstream',
            'method': request.method,
            'path': request.url.path,
            'query': request.url.query,
            'received_headers': dict(request.headers),
            'body': body.decode('utf-8', errors='replace'),
            'body_size': len(body),
            'chunks': chunks,
        }

    return app


async def _client_for(settings: Settings, upstream_app: FastAPI):
    # Transport to fake upstream
    app = create_app(settings, transport=ASGITransport(app=upstream_app))
    async with LifespanManager(app) as manager:
        # client with transport to gateway app
        async with AsyncClient(
                transport=ASGITransport(app=manager.app),
                base_url='http://gateway') as client:
            yield client


@pytest.fixture
async def gateway_client(settings: Settings, upstream_app: FastAPI):
    """Gateway test client with upstream mocked via ASGITransport"""
    async for client in _client_for(settings, upstream_app):
        yield client


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
async def secured_client(settings: Settings, upstream_app: FastAPI, secret: str):
    """Gateway test client with bearer auth enabled"""
    secured = settings.model_copy(update={'proxy_secret': secret})
    async for client in _client_for(secured, upstream_app):
        yield client
