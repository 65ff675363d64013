"""Supabase service: guarded, retried client bootstrap plus gated accessors.

One ``SupabaseService`` is built by the application's composition root and
handed to whatever needs the backend. ``initialize()`` is single-flight:
callers that arrive while an attempt is running await that same attempt and
see its outcome.
"""

import asyncio
import threading
import time
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable

from supabase import Client, create_client
from supabase.client import ClientOptions

from ..core.config import Settings, get_settings
from ..core.enums import CredentialSource, InitializationState
from ..core.exceptions import InitializationError, NotInitializedError, SupabaseServiceError
from ..core.logging import log_error, log_external_call, logger, mask_key, mask_url
from .credentials import CredentialProvider, Credentials, default_providers, resolve_credentials

ClientFactory = Callable[..., Client]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class AuthStateEvent:
    """One auth state change: the event name and the session after it."""

    event: str
    session: Any | None


class SupabaseService:
    """Owns the Supabase client and its initialization lifecycle."""

    def __init__(
        self,
        settings: Settings | None = None,
        providers: Sequence[CredentialProvider] | None = None,
        client_factory: ClientFactory = create_client,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self._providers = providers
        self._client_factory = client_factory
        self._sleep = sleep

        self._client: Client | None = None
        self._credentials: Credentials | None = None
        self._state = InitializationState.UNINITIALIZED
        self._inflight: asyncio.Future[None] | None = None
        self._state_lock = threading.Lock()
        self._subscriptions: list[Any] = []

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """Bring the client up. Safe to call any number of times.

        Raises:
            ConfigurationError: Credentials are missing or invalid.
            InitializationError: Client creation failed on every attempt.
        """
        with self._state_lock:
            if self._state is InitializationState.READY:
                return
            inflight = self._inflight
            if inflight is None:
                self._state = InitializationState.IN_PROGRESS
                inflight = asyncio.ensure_future(self._run_initialization())
                self._inflight = inflight
            else:
                logger.debug("Supabase initialization already in progress, waiting")

        # Cancelling one waiter leaves the shared attempt running
        await asyncio.shield(inflight)

    async def _run_initialization(self) -> None:
        try:
            self._credentials = None
            providers = self._providers
            if providers is None:
                providers = default_providers(self.settings)
            credentials = resolve_credentials(providers)
            # Kept even if the client never comes up, for health and debug output
            self._credentials = credentials

            logger.info(
                f"Initializing Supabase url={mask_url(credentials.url)} "
                f"key={mask_key(credentials.key)}"
            )
            client = await self._create_with_retry(credentials)
        except Exception as e:
            self._state = InitializationState.FAILED
            log_error("Supabase initialization failed", reason=str(e))
            raise
        else:
            self._client = client
            self._state = InitializationState.READY
            logger.info(f"Supabase initialized, connected to {mask_url(credentials.url)}")
        finally:
            self._inflight = None

    async def _create_with_retry(self, credentials: Credentials) -> Client:
        """Create the client, retrying with linear backoff between failures."""
        max_attempts = self.settings.init_max_attempts
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            start = time.time()
            try:
                client = await asyncio.to_thread(
                    self._client_factory,
                    credentials.url,
                    credentials.key,
                    self._client_options(),
                )
            except Exception as e:
                last_error = e
                log_external_call("supabase", "initialize", False, (time.time() - start) * 1000)
                logger.warning(f"Supabase initialization attempt {attempt} failed: {e}")
                if attempt < max_attempts:
                    await self._sleep(attempt * self.settings.init_backoff_ms / 1000)
                continue

            log_external_call("supabase", "initialize", True, (time.time() - start) * 1000)
            return client

        raise InitializationError(
            f"Failed to initialize Supabase after {max_attempts} attempts. "
            f"Last error: {last_error}",
            attempts=max_attempts,
            last_error=last_error,
        ) from last_error

    def _client_options(self) -> ClientOptions:
        return ClientOptions(flow_type="pkce", auto_refresh_token=True)

    async def dispose(self) -> None:
        """Drop the client and forget the credentials; initialize() may run again."""
        # An attempt finishing after this point would bring the client back
        inflight = self._inflight
        if inflight is not None:
            inflight.cancel()
            await asyncio.wait({inflight})
            self._inflight = None

        for subscription in list(self._subscriptions):
            try:
                subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to unsubscribe auth listener: {e}")
        self._subscriptions.clear()

        was_ready = self._state is InitializationState.READY
        self._client = None
        self._credentials = None
        self._state = InitializationState.UNINITIALIZED
        if was_ready:
            logger.info("Supabase service disposed")

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> InitializationState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state is InitializationState.READY and self._client is not None

    @property
    def credentials_source(self) -> CredentialSource | None:
        return self._credentials.source if self._credentials else None

    @property
    def client(self) -> Client:
        """The live client. Raises NotInitializedError before initialize() succeeds."""
        if not self.is_initialized:
            raise NotInitializedError()
        assert self._client is not None
        return self._client

    @property
    def safe_client(self) -> Client | None:
        """The live client, or None when not ready."""
        return self._client if self.is_initialized else None

    async def client_async(self) -> Client:
        """Initialize on demand, then return the client."""
        if not self.is_initialized:
            await self.initialize()
        return self.client

    @property
    def current_user(self) -> Any | None:
        if not self.is_initialized:
            return None
        try:
            session = self.client.auth.get_session()
        except Exception as e:
            logger.error(f"Get current user failed: {e}")
            return None
        return session.user if session else None

    @property
    def current_user_id(self) -> str | None:
        user = self.current_user
        return user.id if user else None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def auth_state_changes(self) -> AsyncIterator[AuthStateEvent]:
        """Stream of auth state changes for as long as the iterator is consumed.

        Raises:
            NotInitializedError: Called before the client is ready.
        """
        if not self.is_initialized:
            raise NotInitializedError("Cannot access auth state: Supabase not initialized")
        return self._auth_event_stream(self.client)

    async def _auth_event_stream(self, client: Client) -> AsyncIterator[AuthStateEvent]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[AuthStateEvent] = asyncio.Queue()

        # The SDK may fire callbacks from its refresh thread
        def _on_change(event: Any, session: Any) -> None:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, AuthStateEvent(str(event), session))
            except RuntimeError as e:
                logger.error(f"Auth state change error: {e}")

        subscription = client.auth.on_auth_state_change(_on_change)
        self._subscriptions.append(subscription)
        try:
            while True:
                yield await queue.get()
        finally:
            subscription.unsubscribe()
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        if not self.is_initialized:
            logger.warning("Cannot sign out: Supabase not initialized")
            return

        try:
            await asyncio.to_thread(self.client.auth.sign_out)
        except Exception as e:
            log_error("Sign out failed", e)
            raise SupabaseServiceError(f"Sign out failed: {e}") from e
        logger.info("User signed out successfully")

    async def check_connection(self) -> bool:
        """Run a one-row query against the connection check table."""
        if not self.is_initialized:
            return False

        table = self.settings.connection_check_table
        client = self.client

        def _probe():
            return client.table(table).select("id").limit(1).execute()

        start = time.time()
        try:
            await asyncio.to_thread(_probe)
        except Exception as e:
            log_external_call("supabase", "connection_check", False, (time.time() - start) * 1000)
            logger.error(f"Connection check failed: {e}")
            return False

        log_external_call("supabase", "connection_check", True, (time.time() - start) * 1000)
        return True

    async def get_health_status(self) -> dict[str, Any]:
        status: dict[str, Any] = {
            "initialized": self.is_initialized,
            "state": self._state.value,
            "authenticated": self.is_authenticated,
            "user_id": self.current_user_id,
            "connection_ok": False,
            "has_url": bool(self._credentials and self._credentials.url),
            "has_key": bool(self._credentials and self._credentials.key),
            "source": self.credentials_source.value if self.credentials_source else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if self.is_initialized:
            status["connection_ok"] = await self.check_connection()

        return status

    def debug_credentials(self) -> None:
        """Log what credentials are held, masked."""
        url = self._credentials.url if self._credentials else None
        key = self._credentials.key if self._credentials else None
        logger.info("Supabase credentials check:")
        logger.info(f"  URL present: {bool(url)}")
        logger.info(f"  Key present: {bool(key)}")
        if url:
            logger.info(f"  URL: {mask_url(url)}")
        if key:
            logger.info(f"  Key: {mask_key(key)}")
