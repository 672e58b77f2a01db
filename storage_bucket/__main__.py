import uvicorn

from storage_bucket.config import settings


def main() -> None:
    uvicorn.run(
        "storage_bucket.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
