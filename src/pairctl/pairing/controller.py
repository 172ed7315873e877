"""Pairing session controller.

Owns the pairing status, the active session code and the subscription to
backend status notifications. Backend results and notifications can
arrive after the controller has been disposed or after the session they
belong to was replaced; those are discarded rather than applied.

Usage:
    controller = SessionPairingController(
        backend,
        on_session_created=lambda: print("usable"),
        on_disconnected=lambda: print("gone"),
    )
    await controller.restore()
    code = await controller.create()
    ...
    await controller.disconnect()
    controller.dispose()

No request timeouts are applied. A create() or restore() whose backend
call never completes leaves the controller in the creating or
pre-restore state; wrap calls in asyncio.wait_for() if that matters.
"""

import logging
from typing import Callable, Optional

from pairctl.errors import BackendError
from pairctl.pairing.backend import SessionBackend, Subscription
from pairctl.pairing.session import PairingStatus, Session, can_transition

logger = logging.getLogger(__name__)

Callback = Callable[[], None]
CreateFailedCallback = Callable[[Exception], None]


class SessionPairingController:
    """Drives the lifecycle of one pairing session against a backend.

    All methods must be called from the event loop that delivers the
    backend's notifications.
    """

    def __init__(
        self,
        backend: SessionBackend,
        on_session_created: Optional[Callback] = None,
        on_disconnected: Optional[Callback] = None,
        on_create_failed: Optional[CreateFailedCallback] = None,
    ):
        """Initialize controller.

        Args:
            backend: Service that issues codes and reports pairing status.
            on_session_created: Called whenever the session becomes usable
                (created, restored as waiting/paired, or paired by the peer).
            on_disconnected: Called when disconnect() completes.
            on_create_failed: Called with the error when create() fails.
        """
        self.backend = backend
        self._on_session_created = on_session_created
        self._on_disconnected = on_disconnected
        self._on_create_failed = on_create_failed

        self._session = Session()
        self._creating = False
        self._collapsed = False
        self._disposed = False
        self._restored = False

        self._subscription: Optional[Subscription] = None
        # Bumped on every subscribe/release; callbacks carry the value they
        # were registered with.
        self._generation = 0
        # Bumped whenever create()/disconnect() replaces the session.
        self._epoch = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> PairingStatus:
        return self._session.status

    @property
    def code(self) -> Optional[str]:
        return self._session.code

    @property
    def creating(self) -> bool:
        return self._creating

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def subscription_active(self) -> bool:
        return self._subscription is not None

    @property
    def can_collapse(self) -> bool:
        """Details may only be collapsed while paired."""
        return self._session.status == PairingStatus.PAIRED

    @property
    def collapsed(self) -> bool:
        return self._collapsed and self.can_collapse

    def toggle_collapse(self) -> bool:
        """Toggle the collapsed flag.

        Returns:
            New collapsed value. Always False when collapsing is not allowed.
        """
        if not self.can_collapse:
            return False
        self._collapsed = not self._collapsed
        return self._collapsed

    async def restore(self) -> None:
        """Recover a previously persisted session. Runs once."""
        if self._disposed or self._restored:
            return
        self._restored = True

        if not self.backend.has_session:
            logger.debug("No persisted pairing session")
            return

        code = self.backend.session_code
        if not code:
            logger.warning("Backend reports a session but no code, ignoring it")
            return

        epoch = self._epoch
        try:
            raw_status = await self.backend.get_session_status()
        except Exception as e:
            if not self._disposed:
                logger.warning(f"Could not query pairing session status: {e}")
            return

        if self._disposed:
            logger.debug("Discarding restore result, controller disposed")
            return
        if epoch != self._epoch:
            logger.debug("Discarding restore result, session replaced meanwhile")
            return

        status = PairingStatus.from_backend(raw_status)
        if status == PairingStatus.NONE:
            logger.info(f"Persisted session has status {raw_status!r}, starting fresh")
            self._set_session(PairingStatus.NONE, None)
            return

        self._set_session(status, code)
        logger.info(f"Restored pairing session: {status.value}")

        if status == PairingStatus.WAITING:
            self._listen()
        if status in (PairingStatus.WAITING, PairingStatus.PAIRED):
            self._fire(self._on_session_created)

    async def create(self) -> Optional[str]:
        """Request a new session code and wait for a peer.

        Returns:
            The new code, or None if the request was rejected, failed, or
            the controller was disposed meanwhile.
        """
        if self._disposed:
            return None
        if self._creating:
            logger.debug("Session creation already in progress")
            return None

        self._creating = True
        error: Optional[Exception] = None
        try:
            code = await self.backend.create_session()
            if not code:
                raise BackendError("Backend returned an empty session code")
        except Exception as e:
            error = e
        finally:
            self._creating = False

        if self._disposed:
            logger.debug("Discarding create result, controller disposed")
            return None

        # The guard is already cleared, so the callback may retry
        if error is not None:
            logger.warning(f"Failed to create pairing session: {error}")
            if self._on_create_failed:
                self._on_create_failed(error)
            return None

        # A new code abandons the old one together with its listener
        self._release_subscription()
        self._epoch += 1
        self._collapsed = False
        self._set_session(PairingStatus.WAITING, code)
        logger.info(f"Pairing session created: {code}")

        self._listen()
        self._fire(self._on_session_created)
        return code

    async def disconnect(self) -> None:
        """Tear down the session.

        The local state is cleared even if the backend request fails.
        """
        if self._disposed:
            return

        self._release_subscription()
        self._epoch += 1
        try:
            await self.backend.disconnect_session()
        except Exception as e:
            logger.warning(f"Backend disconnect failed, clearing session locally: {e}")

        if self._disposed:
            return

        # create() may have subscribed while the request was pending
        self._release_subscription()
        self._collapsed = False
        self._set_session(PairingStatus.NONE, None)
        logger.info("Pairing session disconnected")
        self._fire(self._on_disconnected)

    def dispose(self) -> None:
        """Stop applying results and release the backend subscription."""
        if self._disposed:
            return
        self._disposed = True
        self._release_subscription()
        logger.debug("Pairing controller disposed")

    def _listen(self) -> None:
        """Subscribe to backend status notifications, at most once."""
        if self._subscription is not None:
            return

        self._generation += 1
        generation = self._generation

        def on_paired() -> None:
            self._on_backend_status(generation, PairingStatus.PAIRED)

        def on_disconnected() -> None:
            self._on_backend_status(generation, PairingStatus.DISCONNECTED)

        try:
            self._subscription = self.backend.listen_session_status(
                on_paired, on_disconnected
            )
        except Exception as e:
            logger.warning(f"Could not subscribe to pairing status: {e}")

    def _release_subscription(self) -> None:
        self._generation += 1
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

    def _on_backend_status(self, generation: int, status: PairingStatus) -> None:
        if self._disposed or generation != self._generation:
            logger.debug(f"Ignoring stale {status.value} notification")
            return

        if not can_transition(self._session.status, status):
            logger.debug(
                f"Ignoring {status.value} notification while "
                f"{self._session.status.value}"
            )
            return

        # The code stays visible after the peer disconnects
        self._set_session(status, self._session.code)
        logger.info(f"Pairing status changed: {status.value}")

        if status == PairingStatus.PAIRED:
            self._fire(self._on_session_created)

    def _set_session(self, status: PairingStatus, code: Optional[str]) -> None:
        self._session = Session(code=code, status=status)

    @staticmethod
    def _fire(callback: Optional[Callback]) -> None:
        if callback:
            callback()
