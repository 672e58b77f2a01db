from fastapi import APIRouter, Depends, status

from storage_bucket.config import Settings
from storage_bucket.dependencies.settings import get_settings
from storage_bucket.exceptions import AuthenticationError
from storage_bucket.logging_config import setup_logging
from storage_bucket.schemas.auth import LoginRequest, TokenResponse
from storage_bucket.schemas.common import ErrorResponse
from storage_bucket.services.auth import verify_admin_credentials
from storage_bucket.services.jwt import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])

logger = setup_logging()


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    responses={401: {"model": ErrorResponse}},
)
def login(payload: LoginRequest, settings: Settings = Depends(get_settings)):
    """
    Exchange the dashboard admin credentials for a session token.

    Send the token as `Authorization: Bearer <token>` when AUTH_ENABLED is set.
    """
    if not verify_admin_credentials(settings, payload.username, payload.password):
        logger.warning(f"Failed dashboard login for user {payload.username!r}")
        raise AuthenticationError("Invalid username or password")

    logger.info(f"Dashboard login: {payload.username}")
    return TokenResponse(
        access_token=create_access_token(settings, payload.username),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
