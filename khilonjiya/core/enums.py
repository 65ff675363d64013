"""Enums for backend bootstrap and auth constants."""

from enum import Enum


class InitializationState(str, Enum):
    """Lifecycle of the backend client."""

    UNINITIALIZED = "uninitialized"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    FAILED = "failed"


class CredentialSource(str, Enum):
    """Where a resolved credential pair came from."""

    BUILD = "build"
    DOTENV = "dotenv"
    ENVIRONMENT = "environment"


class OAuthProvider(str, Enum):
    """Third-party identity providers offered on the login screen."""

    GOOGLE = "google"
    FACEBOOK = "facebook"

    @classmethod
    def from_string(cls, value: str | None) -> "OAuthProvider | None":
        """Convert string to enum, returning None if invalid."""
        if not value:
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None


# Names of the two recognised credential entries
SUPABASE_URL_KEY = "SUPABASE_URL"
SUPABASE_ANON_KEY_KEY = "SUPABASE_ANON_KEY"
