"""Authentication on top of the Supabase service.

Every vendor auth failure is turned into AppAuthException so callers only
have to tell "auth said no" apart from "something broke".
"""

import asyncio
from typing import Any

from supabase import AuthError

from ..core.config import Settings, get_settings
from ..core.enums import OAuthProvider
from ..core.exceptions import AppAuthException
from ..core.logging import logger
from ..db.client import SupabaseService
from ..utils.validation import (
    AUTH_FAILED_MESSAGE,
    INVALID_USERNAME_MESSAGE,
    is_email,
    is_phone_number,
    normalize_phone,
)

DEFAULT_COUNTRY_CODE = "91"


def to_e164(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Format a phone number as +<digits>, prefixing local 10-digit numbers."""
    digits = normalize_phone(phone)
    if len(digits) == 10:
        digits = country_code + digits
    return f"+{digits}"


class AuthService:
    """Sign-in, OAuth hand-off and sign-out for the marketplace."""

    def __init__(self, supabase: SupabaseService, settings: Settings | None = None) -> None:
        self.supabase = supabase
        self.settings = settings or get_settings()

    async def sign_in(self, username: str, password: str) -> Any:
        """Password sign-in with an email address or a phone number.

        Returns:
            The vendor AuthResponse; ``user`` and ``session`` are populated.

        Raises:
            AppAuthException: Bad username shape, rejected credentials, or no
                user in the response.
        """
        username = username.strip()
        if is_email(username):
            credentials = {"email": username, "password": password}
        elif is_phone_number(username):
            credentials = {"phone": to_e164(username), "password": password}
        else:
            raise AppAuthException(INVALID_USERNAME_MESSAGE, code="invalid_username")

        client = await self.supabase.client_async()
        try:
            response = await asyncio.to_thread(client.auth.sign_in_with_password, credentials)
        except AuthError as e:
            logger.warning(f"Sign-in rejected: {e.message}")
            raise AppAuthException(e.message, code=getattr(e, "code", None)) from e

        if response.user is None:
            raise AppAuthException(AUTH_FAILED_MESSAGE)

        logger.info(f"User signed in user_id={response.user.id}")
        return response

    async def sign_in_with_oauth(self, provider: OAuthProvider) -> Any:
        """Start an OAuth sign-in; the response carries the provider URL to open."""
        client = await self.supabase.client_async()
        params = {
            "provider": provider.value,
            "options": {"redirect_to": self.settings.oauth_redirect_url},
        }
        try:
            response = await asyncio.to_thread(client.auth.sign_in_with_oauth, params)
        except AuthError as e:
            logger.warning(f"{provider.value} sign-in rejected: {e.message}")
            raise AppAuthException(e.message, code=getattr(e, "code", None)) from e

        logger.info(f"OAuth sign-in started provider={provider.value}")
        return response

    async def sign_in_with_google(self) -> Any:
        return await self.sign_in_with_oauth(OAuthProvider.GOOGLE)

    async def sign_in_with_facebook(self) -> Any:
        return await self.sign_in_with_oauth(OAuthProvider.FACEBOOK)

    async def get_user(self, access_token: str) -> Any:
        """Look up the user an access token belongs to."""
        client = await self.supabase.client_async()
        try:
            response = await asyncio.to_thread(client.auth.get_user, access_token)
        except AuthError as e:
            raise AppAuthException(e.message, code=getattr(e, "code", None)) from e

        if response is None or response.user is None:
            raise AppAuthException("Invalid or expired token", code="invalid_token")
        return response.user

    async def sign_out(self) -> None:
        await self.supabase.sign_out()
