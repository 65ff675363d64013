"""FastAPI route definitions for the khilonjiya API."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.enums import OAuthProvider
from ..core.exceptions import AppAuthException, SupabaseServiceError
from ..core.logging import log_error
from ..db.client import SupabaseService
from ..models.auth import (
    HealthResponse,
    LoginRequest,
    OAuthRedirectResponse,
    SessionResponse,
    UserResponse,
)
from ..services.auth import AuthService
from ..utils.validation import (
    AUTH_FAILED_MESSAGE,
    FACEBOOK_FAILED_MESSAGE,
    GOOGLE_FAILED_MESSAGE,
    LOGIN_FAILED_MESSAGE,
    login_error_message,
)
from .deps import auth_rate_limit, get_auth_service, get_supabase_service, limiter

router = APIRouter()
auth_router = APIRouter(prefix="/auth", tags=["auth"])

security = HTTPBearer()

_OAUTH_FALLBACK_MESSAGES = {
    OAuthProvider.GOOGLE: GOOGLE_FAILED_MESSAGE,
    OAuthProvider.FACEBOOK: FACEBOOK_FAILED_MESSAGE,
}


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(
    supabase: Annotated[SupabaseService, Depends(get_supabase_service)],
) -> HealthResponse:
    status = await supabase.get_health_status()
    healthy = status["initialized"] and status["connection_ok"]
    return HealthResponse(status="healthy" if healthy else "unhealthy", **status)


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------


@auth_router.post("/login", response_model=SessionResponse)
@limiter.limit(auth_rate_limit)
async def login(
    request: Request,
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> SessionResponse:
    """Email/phone + password sign-in."""
    try:
        response = await auth.sign_in(body.username, body.password)
    except SupabaseServiceError:
        raise
    except Exception as e:
        if not isinstance(e, AppAuthException):
            log_error("Login failed", e)
        raise HTTPException(status_code=401, detail=login_error_message(e, LOGIN_FAILED_MESSAGE))

    session = response.session
    if session is None:
        raise HTTPException(status_code=401, detail=AUTH_FAILED_MESSAGE)

    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user_id=response.user.id,
        email=response.user.email,
        phone=response.user.phone,
    )


@auth_router.post("/oauth/{provider}", response_model=OAuthRedirectResponse)
@limiter.limit(auth_rate_limit)
async def oauth_sign_in(
    request: Request,
    provider: str,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> OAuthRedirectResponse:
    """Start a Google or Facebook sign-in and hand back the provider URL."""
    oauth_provider = OAuthProvider.from_string(provider)
    if oauth_provider is None:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider}")

    try:
        if oauth_provider is OAuthProvider.GOOGLE:
            response = await auth.sign_in_with_google()
        else:
            response = await auth.sign_in_with_facebook()
    except SupabaseServiceError:
        raise
    except Exception as e:
        if not isinstance(e, AppAuthException):
            log_error(f"{oauth_provider.value} sign-in failed", e)
        raise HTTPException(
            status_code=401,
            detail=login_error_message(e, _OAUTH_FALLBACK_MESSAGES[oauth_provider]),
        )

    return OAuthRedirectResponse(provider=oauth_provider.value, url=response.url)


@auth_router.post("/logout")
async def logout(auth: Annotated[AuthService, Depends(get_auth_service)]) -> dict[str, str]:
    await auth.sign_out()
    return {"message": "Logged out successfully"}


@auth_router.get("/me", response_model=UserResponse)
async def me(
    credentials: Annotated[HTTPAuthorizationCredentials, Security(security)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    try:
        user = await auth.get_user(credentials.credentials)
    except AppAuthException as e:
        raise HTTPException(status_code=401, detail=e.message)

    return UserResponse(
        user_id=user.id,
        email=user.email,
        phone=user.phone,
        user_metadata=user.user_metadata or {},
    )
