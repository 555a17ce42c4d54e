import logging
from collections.abc import AsyncIterator

import httpx
from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from .config import RouteRule
from .exceptions import UpstreamUnavailable
from .headers import build_upstream_headers
from .routing import Router

logger = logging.getLogger(__name__)

# Status recorded when the caller hangs up before the exchange finishes
CLIENT_CLOSED_REQUEST = 499


def raw_target(request: Request) -> str:
    """Request target as sent by the client: raw path plus query string."""
    path = request.scope.get('raw_path') or request.scope['path'].encode('utf-8')
    query = request.scope.get('query_string', b'')
    target = path + b'?' + query if query else path
    return target.decode('latin-1')


def build_upstream_url(rule: RouteRule, target: str) -> httpx.URL:
    """Place the prefix-stripped target on the rule's upstream origin."""
    remainder = Router.strip(rule, target)
    if not remainder.startswith('/'):
        remainder = '/' + remainder
    return httpx.URL(rule.upstream).copy_with(raw_path=remainder.encode('latin-1'))


def has_body(request: Request) -> bool:
    return 'content-length' in request.headers or 'transfer-encoding' in request.headers


def _failure_message(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class Forwarder:
    """Relay one matched request to its upstream and stream the answer back."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def forward(self, rule: RouteRule, request: Request) -> Response:
        url = build_upstream_url(rule, raw_target(request))
        headers = build_upstream_headers(request.headers.raw, rule.hostname)
        content = request.stream() if has_body(request) else None

        # Built directly: client.build_request would merge the client's default
        # user-agent, accept and accept-encoding headers into the forwarded set
        upstream_request = httpx.Request(
            request.method,
            url,
            headers=headers,
            content=content,
        )

        # ---- Proxy Request ----
        try:
            upstream_response = await self.client.send(upstream_request, stream=True)
        except ClientDisconnect:
            logger.info('Client disconnected while uploading to %s', url.host)
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except httpx.RequestError as exc:
            message = _failure_message(exc)
            logger.error('Upstream request %s %s failed: %s', request.method, url.host, message)
            raise UpstreamUnavailable(message) from exc

        logger.info('%s %s -> %s %d', request.method, rule.prefix, url.host, upstream_response.status_code)

        # ---- Stream Response ----
        response = StreamingResponse(
            self._relay(upstream_response),
            status_code=upstream_response.status_code,
            background=BackgroundTask(upstream_response.aclose),
        )
        # Upstream head is copied verbatim, repeated headers included
        response.raw_headers = list(upstream_response.headers.raw)
        return response

    async def _relay(self, upstream_response: httpx.Response) -> AsyncIterator[bytes]:
        """
        Yield upstream body bytes undecoded, in arrival order.

        A failure here happens after the response head was sent, so it can
        only be logged; re-raising makes the server drop the connection
        rather than end the body as if it were complete.
        """
        try:
            async for chunk in upstream_response.aiter_raw():
                yield chunk
        except httpx.RequestError as exc:
            logger.error(
                'Upstream %s failed mid-response: %s',
                upstream_response.request.url.host,
                _failure_message(exc),
            )
            raise
        finally:
            await upstream_response.aclose()
