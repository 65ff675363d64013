from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from ..utils.validation import validate_password, validate_username


class LoginRequest(BaseModel):
    """Username (email or phone) + password, as typed on the login screen."""

    username: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)

    @model_validator(mode="after")
    def _check_fields(self) -> "LoginRequest":
        self.username = self.username.strip()
        error = validate_username(self.username) or validate_password(self.password)
        if error:
            raise ValueError(error)
        return self


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None


class OAuthRedirectResponse(BaseModel):
    provider: str
    url: str


class UserResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    initialized: bool
    state: str
    authenticated: bool
    user_id: Optional[str] = None
    connection_ok: bool
    has_url: bool
    has_key: bool
    source: Optional[str] = None
    timestamp: str
