from fastapi import Request
from fastapi.responses import JSONResponse

from storage_bucket.logging_config import setup_logging
from storage_bucket.rate_limiter import RateLimiter

logger = setup_logging()


def client_ip(request: Request) -> str:
    """Client address, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_middleware(request: Request, call_next):
    """
    IP-based rate limiting middleware.

    Checks request count per IP before processing the request.
    Returns 429 Too Many Requests if limit exceeded.
    """
    settings = request.app.state.settings
    if not settings.RATE_LIMIT_ENABLED:
        return await call_next(request)

    rate_limiter: RateLimiter = request.app.state.rate_limiter
    ip_address = client_ip(request)

    is_allowed, retry_after = await rate_limiter.check_rate_limit(ip_address)

    if not is_allowed:
        logger.warning(f"Rate limit exceeded for IP: {ip_address}")
        return JSONResponse(
            status_code=429,
            headers={"Retry-After": str(retry_after)},
            content={
                "success": False,
                "error": "Too Many Requests",
                "code": "rate_limited",
                "message": "Too many requests, please try again later.",
                "data": {
                    "retryAfter": retry_after
                }
            }
        )

    return await call_next(request)
