from pydantic import BaseModel, Field

from storage_bucket.schemas.files import CamelModel


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    """Token lifetime in seconds."""
