import time
from urllib.parse import urlencode

from fastapi import Request

from storage_bucket.logging_config import setup_logging
from storage_bucket.middleware.rate_limit import client_ip

logger = setup_logging()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    # Preview links are embedded by the dashboard on another origin
    "Cross-Origin-Resource-Policy": "cross-origin",
}

# Download/preview links carry the session token in the query string
REDACTED_QUERY_PARAMS = {"token"}
REDACTED = "redacted"


def loggable_path(request: Request) -> str:
    """Request path and query string with credentials masked."""
    params = [
        (key, REDACTED if key in REDACTED_QUERY_PARAMS else value)
        for key, value in request.query_params.multi_items()
    ]
    if not params:
        return request.url.path
    return f"{request.url.path}?{urlencode(params)}"


async def request_logging_middleware(request: Request, call_next):
    """
    Log every request with its outcome and add security headers.

    Logging never changes the response; exceptions are re-raised to the
    application exception handlers.
    """
    start_time = time.perf_counter()
    ip_address = client_ip(request)
    path = loggable_path(request)

    response = await call_next(request)

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    message = f"{request.method} {path} -> {response.status_code} ({duration_ms}ms) from {ip_address}"
    if response.status_code >= 500:
        logger.error(message)
    elif response.status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)

    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)

    return response
