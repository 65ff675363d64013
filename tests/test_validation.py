"""Tests for login form validation rules."""

import pytest

from khilonjiya.core.exceptions import AppAuthException
from khilonjiya.utils.validation import (
    GOOGLE_FAILED_MESSAGE,
    INVALID_USERNAME_MESSAGE,
    LOGIN_FAILED_MESSAGE,
    SHORT_PASSWORD_MESSAGE,
    is_email,
    is_login_form_valid,
    is_phone_number,
    login_error_message,
    normalize_phone,
    validate_password,
    validate_username,
)


class TestUsername:
    @pytest.mark.parametrize(
        "value",
        ["buyer@khilonjiya.com", "first.last@mail.example.in"],
    )
    def test_emails_are_accepted(self, value):
        assert is_email(value)
        assert validate_username(value) is None

    @pytest.mark.parametrize(
        "value",
        ["9876543210", "98765 43210", "+91 98765-43210", "447911123456"],
    )
    def test_phone_numbers_are_accepted(self, value):
        assert is_phone_number(value)
        assert validate_username(value) is None

    def test_non_indian_ten_digit_numbers_fall_back_to_generic_rule(self):
        assert is_phone_number("1234567890")
        assert not is_phone_number("12345")

    @pytest.mark.parametrize("value", ["seller", "buyer@", "@khilonjiya.com", "12345"])
    def test_garbage_is_rejected(self, value):
        assert validate_username(value) == INVALID_USERNAME_MESSAGE

    def test_empty_username_has_no_error_yet(self):
        assert validate_username("") is None

    def test_normalize_phone(self):
        assert normalize_phone("+91 (987) 654-3210") == "919876543210"


class TestPassword:
    def test_short_password(self):
        assert validate_password("12345") == SHORT_PASSWORD_MESSAGE

    def test_six_characters_is_enough(self):
        assert validate_password("123456") is None

    def test_empty_password_has_no_error_yet(self):
        assert validate_password("") is None


class TestLoginForm:
    def test_valid_form(self):
        assert is_login_form_valid("buyer@khilonjiya.com", "hunter22")

    def test_username_is_trimmed(self):
        assert is_login_form_valid("  9876543210  ", "hunter22")

    @pytest.mark.parametrize(
        "username,password",
        [("", "hunter22"), ("buyer@khilonjiya.com", ""), ("seller", "hunter22"), ("9876543210", "123")],
    )
    def test_invalid_forms(self, username, password):
        assert not is_login_form_valid(username, password)


class TestErrorMessages:
    def test_auth_exception_message_is_shown_verbatim(self):
        exc = AppAuthException("Email not confirmed")
        assert login_error_message(exc) == "Email not confirmed"

    def test_other_errors_get_generic_message(self):
        exc = RuntimeError("connection reset by peer")
        assert login_error_message(exc) == LOGIN_FAILED_MESSAGE

    def test_custom_fallback(self):
        assert login_error_message(ValueError("x"), GOOGLE_FAILED_MESSAGE) == GOOGLE_FAILED_MESSAGE
