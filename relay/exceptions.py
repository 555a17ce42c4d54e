"""Errors that end a request before anything is forwarded or streamed back."""


class ProxyError(Exception):
    """Base exception rendered as a JSON error response."""

    status_code = 500
    error = 'Proxy error'

    def body(self) -> dict[str, str]:
        return {'error': self.error}


class Unauthorized(ProxyError):
    """Bearer token missing or wrong while auth is enabled."""

    status_code = 401
    error = 'Unauthorized'


class RouteNotFound(ProxyError):
    """No configured prefix matches the request path."""

    status_code = 404
    error = 'Unknown route'

    def __init__(self, url: str) -> None:
        super().__init__(url)
        self.url = url

    def body(self) -> dict[str, str]:
        return {'error': self.error, 'url': self.url}


class UpstreamUnavailable(ProxyError):
    """Transport failure talking to the upstream before its response head arrived.

    Attributes:
        message: Underlying failure message
    """

    status_code = 502
    error = 'Proxy error'

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def body(self) -> dict[str, str]:
        return {'error': self.error, 'message': self.message}
