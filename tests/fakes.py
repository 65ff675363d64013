"""In-memory stand-ins for the Supabase client used across the tests."""

import threading
import time
from types import SimpleNamespace

from khilonjiya.db.credentials import EnvironmentProvider

TEST_URL = "https://abcdefgh.supabase.co"
TEST_KEY = "anon-test-key"


class FakeSubscription:
    def __init__(self, auth, callback):
        self.auth = auth
        self.callback = callback
        self.unsubscribed = False

    def unsubscribe(self):
        self.unsubscribed = True
        if self in self.auth.subscriptions:
            self.auth.subscriptions.remove(self)


class FakeAuth:
    """Records calls and replays canned responses."""

    def __init__(self):
        self.session = None
        self.sign_in_response = None
        self.sign_in_error = None
        self.oauth_error = None
        self.sign_out_error = None
        self.user_by_token = {}
        self.last_credentials = None
        self.last_oauth_params = None
        self.signed_out = False
        self.subscriptions = []

    def get_session(self):
        return self.session

    def sign_in_with_password(self, credentials):
        self.last_credentials = credentials
        if self.sign_in_error:
            raise self.sign_in_error
        return self.sign_in_response

    def sign_in_with_oauth(self, params):
        self.last_oauth_params = params
        if self.oauth_error:
            raise self.oauth_error
        return SimpleNamespace(
            provider=params["provider"],
            url=f"https://abcdefgh.supabase.co/auth/v1/authorize?provider={params['provider']}",
        )

    def get_user(self, jwt):
        user = self.user_by_token.get(jwt)
        return SimpleNamespace(user=user) if user else None

    def sign_out(self):
        if self.sign_out_error:
            raise self.sign_out_error
        self.signed_out = True

    def on_auth_state_change(self, callback):
        subscription = FakeSubscription(self, callback)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, event, session=None):
        for subscription in list(self.subscriptions):
            subscription.callback(event, session)


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table

    def select(self, *columns):
        return self

    def limit(self, count):
        return self

    def execute(self):
        self.client.queried_tables.append(self.table)
        if self.client.query_error:
            raise self.client.query_error
        return SimpleNamespace(data=[])


class FakeClient:
    def __init__(self, url, key, options=None):
        self.url = url
        self.key = key
        self.options = options
        self.auth = FakeAuth()
        self.query_error = None
        self.queried_tables = []

    def table(self, name):
        return FakeQuery(self, name)


class FakeClientFactory:
    """Fails the first ``failures`` calls, then builds FakeClients."""

    def __init__(self, failures=0, delay=0.0):
        self.failures = failures
        self.delay = delay
        self.calls = []
        self.clients = []
        self._lock = threading.Lock()

    def __call__(self, url, key, options=None):
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.calls.append((url, key, options))
            attempt = len(self.calls)
        if attempt <= self.failures:
            raise ConnectionError(f"backend unreachable (attempt {attempt})")
        client = FakeClient(url, key, options)
        self.clients.append(client)
        return client


class RecordingSleep:
    """Replaces asyncio.sleep and remembers the requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def env_providers(url=TEST_URL, key=TEST_KEY):
    return [EnvironmentProvider({"SUPABASE_URL": url, "SUPABASE_ANON_KEY": key})]
