"""Fixtures for pairing tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pairctl.pairing.controller import SessionPairingController


class FakeSubscription:
    """Subscription handle that records cancellation."""

    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeBackend:
    """In-memory SessionBackend double.

    Keeps every registered listener so tests can deliver events to live
    subscriptions, or force delivery to released ones to simulate
    notifications that were already in flight.
    """

    def __init__(self, has_session=False, session_code=None, status=None):
        self.has_session = has_session
        self.session_code = session_code
        self.get_session_status = AsyncMock(return_value=status)
        self.create_session = AsyncMock(return_value="XY99")
        self.disconnect_session = AsyncMock()
        self.listeners = []

    @property
    def subscribe_calls(self):
        return len(self.listeners)

    @property
    def live_listeners(self):
        return [entry for entry in self.listeners if not entry[2].cancelled]

    def listen_session_status(self, on_paired, on_disconnected):
        subscription = FakeSubscription()
        self.listeners.append((on_paired, on_disconnected, subscription))
        return subscription

    def emit_paired(self, force=False):
        targets = self.listeners if force else self.live_listeners
        for on_paired, _, _ in list(targets):
            on_paired()

    def emit_disconnected(self, force=False):
        targets = self.listeners if force else self.live_listeners
        for _, on_disconnected, _ in list(targets):
            on_disconnected()


@pytest.fixture
def make_backend():
    """Factory for backends with a persisted session."""
    return FakeBackend


@pytest.fixture
def backend():
    """Backend with no persisted session."""
    return FakeBackend()


@pytest.fixture
def on_created():
    return MagicMock()


@pytest.fixture
def on_disconnected():
    return MagicMock()


@pytest.fixture
def on_create_failed():
    return MagicMock()


@pytest.fixture
def make_controller(on_created, on_disconnected, on_create_failed):
    """Factory building a controller wired to the callback mocks."""

    def _make(backend):
        return SessionPairingController(
            backend,
            on_session_created=on_created,
            on_disconnected=on_disconnected,
            on_create_failed=on_create_failed,
        )

    return _make


@pytest.fixture
def controller(make_controller, backend):
    return make_controller(backend)
