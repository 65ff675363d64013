"""Supabase credential resolution.

Credentials are looked up in a prioritized list of providers:

1. Build-time constants baked into ``khilonjiya._build``
2. The local ``.env`` file
3. Process environment variables

The first provider that yields both the URL and the anon key wins; the rest
are never consulted.
"""

import importlib
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from urllib.parse import urlsplit

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, HttpUrl, TypeAdapter, ValidationError, field_validator

from ..core.config import Settings, get_settings
from ..core.enums import SUPABASE_ANON_KEY_KEY, SUPABASE_URL_KEY, CredentialSource
from ..core.exceptions import ConfigurationError
from ..core.logging import logger, mask_key, mask_url

_HTTP_URL = TypeAdapter(HttpUrl)

RawCredentials = tuple[str | None, str | None]


def is_valid_url(url: str) -> bool:
    """True for absolute http/https URLs with a non-empty host.

    The raw string must split into an http(s) scheme and a host as-is;
    HttpUrl on its own accepts "https:host" and padded input.
    """
    if url != url.strip():
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    try:
        _HTTP_URL.validate_python(url)
    except ValidationError:
        return False
    return True


class Credentials(BaseModel):
    """URL + anon key pair needed to reach the backend."""

    model_config = ConfigDict(frozen=True)

    url: str
    key: str
    source: CredentialSource | None = None

    @field_validator("key")
    @classmethod
    def _key_present(cls, value: str) -> str:
        if not value:
            raise ValueError(f"{SUPABASE_ANON_KEY_KEY} is required")
        return value

    @field_validator("url")
    @classmethod
    def _url_valid(cls, value: str) -> str:
        if not value:
            raise ValueError(f"{SUPABASE_URL_KEY} is required")
        if not is_valid_url(value):
            raise ValueError(f"Invalid {SUPABASE_URL_KEY} format: {mask_url(value)}")
        return value

    def __repr__(self) -> str:
        return (
            f"Credentials(url={mask_url(self.url)!r}, key={mask_key(self.key)}, "
            f"source={self.source})"
        )

    __str__ = __repr__


def validate_credentials(
    url: str | None, key: str | None, source: CredentialSource | None = None
) -> Credentials:
    """Build a Credentials value, raising ConfigurationError on bad input.

    The error message never contains the key itself.
    """
    try:
        return Credentials(url=url or "", key=key or "", source=source)
    except ValidationError as e:
        # Only msg is kept; input and ctx may carry the key
        reasons = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        raise ConfigurationError(f"Invalid Supabase credentials: {reasons}") from None


# -----------------------------------------------------------------------------
# Providers
# -----------------------------------------------------------------------------


class CredentialProvider:
    """One place credentials may come from."""

    source: CredentialSource

    def load(self) -> RawCredentials:
        raise NotImplementedError


class BuildConstantsProvider(CredentialProvider):
    """Constants written into a module at build time."""

    source = CredentialSource.BUILD

    def __init__(self, module: str = "khilonjiya._build") -> None:
        self.module = module

    def load(self) -> RawCredentials:
        constants = importlib.import_module(self.module)
        return (
            getattr(constants, SUPABASE_URL_KEY, None) or None,
            getattr(constants, SUPABASE_ANON_KEY_KEY, None) or None,
        )


class DotenvFileProvider(CredentialProvider):
    """A key=value file, read without touching os.environ."""

    source = CredentialSource.DOTENV

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> RawCredentials:
        if not self.path.is_file():
            logger.debug(f"No credential file at {self.path}")
            return None, None
        values = dotenv_values(self.path)
        return values.get(SUPABASE_URL_KEY) or None, values.get(SUPABASE_ANON_KEY_KEY) or None


class EnvironmentProvider(CredentialProvider):
    """Process environment. A half-set pair counts as nothing set."""

    source = CredentialSource.ENVIRONMENT

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.environ = environ

    def load(self) -> RawCredentials:
        environ = os.environ if self.environ is None else self.environ
        url = environ.get(SUPABASE_URL_KEY, "")
        key = environ.get(SUPABASE_ANON_KEY_KEY, "")
        if not url or not key:
            return None, None
        return url, key


def default_providers(settings: Settings | None = None) -> list[CredentialProvider]:
    """Providers in priority order."""
    settings = settings or get_settings()
    return [
        BuildConstantsProvider(),
        DotenvFileProvider(settings.env_file),
        EnvironmentProvider(),
    ]


def resolve_credentials(providers: Sequence[CredentialProvider] | None = None) -> Credentials:
    """Return credentials from the first provider that has both values.

    Raises:
        ConfigurationError: No provider is fully populated, or the winning
            pair fails validation.
    """
    if providers is None:
        providers = default_providers()

    for provider in providers:
        try:
            url, key = provider.load()
        except (ImportError, OSError, ValueError) as e:
            logger.warning(f"Could not load {provider.source.value} credentials: {e}")
            continue

        if url and key:
            logger.info(
                f"Using {provider.source.value} credentials "
                f"url={mask_url(url)} key={mask_key(key)}"
            )
            return validate_credentials(url, key, provider.source)

        logger.debug(f"No complete credentials from {provider.source.value}")

    raise ConfigurationError(
        "Supabase credentials not found. Please check your .env file or environment variables."
    )


def render_build_constants(credentials: Credentials) -> str:
    """Source text for khilonjiya/_build.py with the given credentials baked in."""
    return (
        '"""Build-time constants. Generated by scripts/write_build_config.py."""\n'
        "\n"
        f"{SUPABASE_URL_KEY} = {credentials.url!r}\n"
        f"{SUPABASE_ANON_KEY_KEY} = {credentials.key!r}\n"
    )
