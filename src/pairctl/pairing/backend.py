"""Protocols for the session backend collaborator."""

from typing import Callable, Optional, Protocol

# Backend notification callback, invoked on the event loop thread
StatusCallback = Callable[[], None]


class Subscription(Protocol):
    """Handle for a live status subscription."""

    def cancel(self) -> None:
        """Release the listener. No callbacks are delivered afterwards."""
        ...


class SessionBackend(Protocol):
    """Protocol for the service that issues codes and reports pairing status.

    Requests are coroutines. Status notifications are delivered as plain
    callbacks on the caller's event loop until the returned subscription
    is cancelled.
    """

    @property
    def has_session(self) -> bool:
        """Whether a session was previously persisted."""
        ...

    @property
    def session_code(self) -> Optional[str]:
        """Persisted session code, if any."""
        ...

    async def get_session_status(self) -> Optional[str]:
        """Query the session status ("paired", "waiting", "disconnected", ...)."""
        ...

    async def create_session(self) -> str:
        """Create a new session and return its code. Raises BackendError."""
        ...

    async def disconnect_session(self) -> None:
        """Tear down the active session (best effort)."""
        ...

    def listen_session_status(
        self,
        on_paired: StatusCallback,
        on_disconnected: StatusCallback,
    ) -> Subscription:
        """Subscribe to pairing status changes."""
        ...
