import hmac
import logging

from fastapi import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from .exceptions import Unauthorized
from .proxy import raw_target
from .responses import error_response

logger = logging.getLogger(__name__)


class BearerAuthMiddleware:
    """
    Require `Authorization: Bearer <secret>` on every HTTP request.

    Request targets in `exempt_paths` skip the check; they must match exactly,
    query string included. With no secret configured the middleware passes
    everything through untouched.
    """
    def __init__(self, app: ASGIApp, secret: str | None, exempt_paths: frozenset[str] = frozenset()):
        self.app = app
        self.expected = f'Bearer {secret}'.encode('utf-8') if secret else None
        self.exempt_paths = exempt_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http' or self.expected is None:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        if raw_target(request) in self.exempt_paths:
            await self.app(scope, receive, send)
            return

        presented = request.headers.get('authorization', '').encode('latin-1')
        if not hmac.compare_digest(presented, self.expected):
            client = request.client.host if request.client else 'unknown'
            logger.warning('Rejected unauthorized %s request from %s', request.method, client)
            response = error_response(Unauthorized())
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
