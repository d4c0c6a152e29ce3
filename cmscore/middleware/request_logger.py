"""ASGI middleware logging every API request through the standard logger."""
import logging
import time
import uuid

from starlette.types import ASGIApp, Receive, Scope, Send

from cmscore.core.config import settings

logger = logging.getLogger(__name__)


class RequestLoggerMiddleware:
    """ASGI middleware to log method, path, status and timing of API requests."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        start_time = time.time()

        method = scope["method"]
        path = scope["path"]
        headers_dict = dict(scope.get("headers", []))
        user_id = headers_dict.get(settings.user_id_header.lower().encode("latin1"), b"").decode("latin1")

        client = scope.get("client")
        ip_address = client[0] if client else None

        # Variables to capture from response
        status_code = 500
        response_size = 0

        async def send_with_capturing(message):
            nonlocal status_code, response_size
            if message["type"] == "http.response.start":
                status_code = message["status"]
            elif message["type"] == "http.response.body":
                response_size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_with_capturing)
        finally:
            response_time_ms = int((time.time() - start_time) * 1000)

            # Skip health checks to reduce noise
            if path != "/health":
                level = logging.WARNING if status_code >= 500 else logging.INFO
                logger.log(
                    level,
                    "%s %s -> %s in %dms (%d bytes) request_id=%s user=%s ip=%s",
                    method,
                    path,
                    status_code,
                    response_time_ms,
                    response_size,
                    request_id,
                    user_id or "-",
                    ip_address or "-",
                )
