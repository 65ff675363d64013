"""FastAPI dependency injection."""

from typing import Annotated

from fastapi import Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..core.config import Settings, get_settings
from ..db.client import SupabaseService
from ..services.auth import AuthService

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


def auth_rate_limit() -> str:
    """Rate limit applied to auth routes, read at request time."""
    return get_settings().auth_rate_limit


def get_app_settings(request: Request) -> Settings:
    """Settings the app was built with."""
    return request.app.state.settings


def get_supabase_service(request: Request) -> SupabaseService:
    """Dependency for the service built by the app lifespan."""
    return request.app.state.supabase


def get_auth_service(
    supabase: Annotated[SupabaseService, Depends(get_supabase_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    return AuthService(supabase, settings)
