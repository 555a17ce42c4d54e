from fastapi.responses import JSONResponse

from .exceptions import ProxyError


def error_response(exc: ProxyError) -> JSONResponse:
    """Compact JSON body, e.g. {"error":"Unauthorized"}."""
    return JSONResponse(content=exc.body(), status_code=exc.status_code)
