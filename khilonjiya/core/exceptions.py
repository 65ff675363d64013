"""Exception types shared by the backend bootstrap and the auth flow."""


class SupabaseServiceError(Exception):
    """Base error for everything the Supabase service layer raises."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SupabaseServiceError):
    """Credentials are missing or malformed."""


class InitializationError(SupabaseServiceError):
    """The backend client could not be created within the retry budget."""

    def __init__(
        self, message: str, attempts: int, last_error: BaseException | None = None
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class NotInitializedError(SupabaseServiceError):
    """An accessor was used before the backend client was ready."""

    def __init__(self, message: str = "Supabase not initialized. Call initialize() first.") -> None:
        super().__init__(message)


class AppAuthException(Exception):
    """Authentication failure whose message is safe to show to the user."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
