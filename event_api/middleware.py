import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug log of every request: target, status and elapsed time."""

    def __init__(self, app, logger_name: str = "event_api.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        target = f"{request.method} {request.url.path}"
        if request.url.query:
            target = f"{target}?{request.url.query}"
        self._logger.debug("-> %s", target)
        try:
            response = await call_next(request)
        except Exception as e:
            self._logger.warning("!! %s failed after %.1fms: %r",
                                 target, (time.perf_counter() - started) * 1000, e)
            raise
        self._logger.debug("<- %s %d %.1fms",
                           target, response.status_code, (time.perf_counter() - started) * 1000)
        return response
