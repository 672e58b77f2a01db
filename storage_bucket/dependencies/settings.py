from fastapi import Request

from storage_bucket.config import Settings


def get_settings(request: Request) -> Settings:
    """Settings of the application handling this request."""
    return request.app.state.settings
