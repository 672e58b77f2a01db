import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storage_bucket.api.router import router
from storage_bucket.config import Settings, settings as default_settings
from storage_bucket.database import Database
from storage_bucket.exceptions import BucketError
from storage_bucket.logging_config import setup_logging
from storage_bucket.middleware.rate_limit import rate_limit_middleware
from storage_bucket.middleware.request_logging import request_logging_middleware
from storage_bucket.rate_limiter import RateLimiter

# Setup application logging
logger = setup_logging()


def _error_body(status_code: int, code: str, message: str, **extra) -> dict:
    return {
        "success": False,
        "error": HTTPStatus(status_code).phrase,
        "code": code,
        "message": message,
        **extra,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

    database = Database(settings.DATABASE_URL)
    # 已由Alembic建立的資料表不會重複建立
    database.create_all()
    app.state.database = database
    app.state.started_at = time.monotonic()

    logger.info(
        f"{settings.APP_NAME} v{settings.APP_VERSION} started "
        f"({settings.ENVIRONMENT}), uploads in {settings.UPLOAD_DIR}"
    )
    try:
        yield
    finally:
        database.dispose()
        logger.info(f"{settings.APP_NAME} stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build an application instance around the given settings.

    Defaults to the settings read from the environment.
    """
    settings = settings or default_settings
    if settings.AUTH_ENABLED and not settings.JWT_SECRET_KEY:
        raise ValueError("JWT_SECRET_KEY must be set when AUTH_ENABLED is true")

    # title參數: 設定 API的標題名稱，會顯示在 Swagger UI /docs 與 OpenAPI schema 中
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    app.state.started_at = time.monotonic()

    # 後加入的middleware在外層，所以CORS最先處理請求，429回應也會帶CORS header
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(rate_limit_middleware)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(BucketError)
    async def bucket_exception_handler(request: Request, exc: BucketError):
        message = exc.message
        if exc.status_code >= 500:
            logger.error(
                f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
                exc_info=exc,
            )
            message = "Internal server error"

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.code, message, **exc.extra()),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else first.get("msg", message)

        return JSONResponse(
            status_code=400,
            content=_error_body(400, "validation_error", message),
        )

    # 這是一個自定義的HTTP例外處理器，用來統一處理Starlette/FastAPI拋出的HTTPException
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unwrap the 'detail' field from HTTPException responses."""
        content = exc.detail

        if isinstance(content, dict):
            return JSONResponse(
                status_code=exc.status_code,
                content=content,
                headers=exc.headers,
            )

        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=_error_body(
                    404, "not_found", f"Route {request.method} {request.url.path} not found"
                ),
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, "error", str(content)),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        # Log detailed error for debugging (includes stack trace)
        logger.error(
            f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
            exc_info=True,  # 告訴logger「把完整的錯誤堆疊都記錄下來」
            extra={
                "path": request.url.path,
                "method": request.method,
            },
        )

        # Return safe, static message to client (no internal details exposed)
        return JSONResponse(
            status_code=500,
            content=_error_body(500, "internal_error", "An unexpected error occurred"),
        )

    return app


app = create_app()
