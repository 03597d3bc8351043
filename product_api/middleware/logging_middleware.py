import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import structlog
from uuid import uuid4

logger = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Binds a request id into the log context and logs each request's outcome."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        start_time = time.time()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method
        )

        logger.debug(
            "API Request Started",
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent", "")[:100],
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "API Request Failed",
                error=str(e),
                process_time=round(time.time() - start_time, 4)
            )
            raise
        finally:
            process_time = time.time() - start_time

        if response.status_code >= 400:
            logger.warning("API Request Completed with Error",
                           status_code=response.status_code,
                           process_time=round(process_time, 4))
        else:
            logger.info("API Request Completed Successfully",
                        status_code=response.status_code,
                        process_time=round(process_time, 4))

        response.headers["X-Request-ID"] = request_id
        structlog.contextvars.clear_contextvars()
        return response
