from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storage_bucket.config import Settings
from storage_bucket.dependencies.settings import get_settings
from storage_bucket.exceptions import AuthenticationError
from storage_bucket.services.jwt import decode_access_token

# auto_error=False：沒有Authorization標頭時不自動回傳錯誤，
# 讓下方的依賴函式決定（驗證可能未啟用，或改用token查詢參數）
security = HTTPBearer(auto_error=False)


def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token: str | None = Query(
        None,
        description="Session token for links that cannot send headers "
        "(download/preview in the browser).",
        include_in_schema=False,
    ),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """
    Require a valid dashboard session when AUTH_ENABLED is set.

    Returns:
        The authenticated subject, or None when auth is disabled

    Raises:
        AuthenticationError: Missing, invalid or expired token
    """
    if not settings.AUTH_ENABLED:
        return None

    raw_token = credentials.credentials if credentials else token
    if not raw_token:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(settings, raw_token)
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Invalid token")

    return payload["sub"]
