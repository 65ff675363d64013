"""Login form validation and user-facing error messages.

The username field accepts either an email address or a phone number.
Validators return an error message, or None when the value is acceptable
(or still empty, so the form does not shout at a user who has not typed yet).
"""

import re

from ..core.exceptions import AppAuthException

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
# Stricter check applied once a value already looks like an email
_EMAIL_STRICT_RE = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}")
_INDIAN_MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
_INTL_PHONE_RE = re.compile(r"^\d{10,15}$")
_NON_DIGIT_RE = re.compile(r"[^\d]")

MIN_PASSWORD_LENGTH = 6

INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
INVALID_PHONE_MESSAGE = "Please enter a valid phone number"
INVALID_USERNAME_MESSAGE = "Please enter a valid email address or phone number"
SHORT_PASSWORD_MESSAGE = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

LOGIN_FAILED_MESSAGE = "Login failed. Please check your credentials."
AUTH_FAILED_MESSAGE = "Authentication failed. Please try again."
GOOGLE_FAILED_MESSAGE = "Google sign-in failed. Please try again."
FACEBOOK_FAILED_MESSAGE = "Facebook sign-in failed. Please try again."


def normalize_phone(value: str) -> str:
    """Strip everything but digits."""
    return _NON_DIGIT_RE.sub("", value)


def is_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def is_phone_number(value: str) -> bool:
    """True for a 10-digit Indian mobile number or any 10-15 digit number."""
    cleaned = normalize_phone(value)
    return bool(_INDIAN_MOBILE_RE.match(cleaned) or _INTL_PHONE_RE.match(cleaned))


def validate_username(value: str) -> str | None:
    if not value:
        return None

    if is_phone_number(value):
        if len(value) < 10:
            return INVALID_PHONE_MESSAGE
        return None

    if is_email(value):
        if not _EMAIL_STRICT_RE.match(value):
            return INVALID_EMAIL_MESSAGE
        return None

    return INVALID_USERNAME_MESSAGE


def validate_password(value: str) -> str | None:
    if not value:
        return None
    if len(value) < MIN_PASSWORD_LENGTH:
        return SHORT_PASSWORD_MESSAGE
    return None


def is_login_form_valid(username: str, password: str) -> bool:
    """Both fields filled in and neither has a validation error."""
    username = username.strip()
    return (
        bool(username)
        and bool(password)
        and validate_username(username) is None
        and validate_password(password) is None
    )


def login_error_message(exc: BaseException, fallback: str = LOGIN_FAILED_MESSAGE) -> str:
    """Reduce any auth failure to a message fit for the user.

    AppAuthException messages are shown verbatim; everything else gets the
    generic fallback.
    """
    if isinstance(exc, AppAuthException):
        return exc.message
    return fallback
