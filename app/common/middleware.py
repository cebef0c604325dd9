"""
HTTP middleware: request logging and security headers
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging
import re
import time
import uuid

logger = logging.getLogger("app.request")

# Client-supplied ids are echoed and logged only when they look like an id
REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")


def resolve_request_id(header_value) -> str:
    if header_value and REQUEST_ID_PATTERN.fullmatch(header_value):
        return header_value
    return uuid.uuid4().hex[:12]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per request with method, path, status and duration.
    Level follows the status code: 5xx error, 4xx warning, otherwise info.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get("X-Request-ID"))
        started = time.perf_counter()
        client_ip = request.client.host if request.client else ""

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            logger.exception(
                f"Request failed id={request_id} method={request.method} "
                f"path={request.url.path} ms={elapsed_ms} ip={client_ip}"
            )
            raise

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        response.headers["X-Request-ID"] = request_id

        message = (
            f"id={request_id} method={request.method} path={request.url.path} "
            f"status={response.status_code} ms={elapsed_ms} ip={client_ip}"
        )
        if response.status_code >= 500:
            logger.error(f"Server Error {message}")
        elif response.status_code >= 400:
            logger.warning(f"Client Error {message}")
        else:
            logger.info(f"HTTP Request {message}")

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers for production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
