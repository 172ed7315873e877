"""File-backed session backend.

Keeps the current session in a SessionStore and reports status changes
by polling the file. The remote device side is simulated with join() and
leave(), which lets a second process (or the CLI) act as the peer:

    backend = LocalSessionBackend(SessionStore(path))
    code = await backend.create_session()

    # In the peer process
    await backend.join(code)
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from pairctl.config import DEFAULT_CODE_ALPHABET, Config
from pairctl.errors import BackendError, PairingError, StorageError
from pairctl.pairing.backend import StatusCallback
from pairctl.pairing.codes import generate_code, normalize_code
from pairctl.storage import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

STATUS_NONE = "none"
STATUS_WAITING = "waiting"
STATUS_PAIRED = "paired"
STATUS_DISCONNECTED = "disconnected"


class PollingSubscription:
    """Subscription backed by a polling task."""

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach(self, task: asyncio.Task) -> None:
        self._task = task

    def cancel(self) -> None:
        """Stop polling. Safe to call more than once."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


class LocalSessionBackend:
    """Session backend persisting to a local JSON file."""

    def __init__(
        self,
        store: SessionStore,
        code_length: int = 6,
        code_alphabet: str = DEFAULT_CODE_ALPHABET,
        poll_interval: float = 1.0,
    ):
        """Initialize backend.

        Args:
            store: Storage for the session record.
            code_length: Length of generated codes.
            code_alphabet: Characters used in generated codes.
            poll_interval: Seconds between status checks while listening.
        """
        self.store = store
        self.code_length = code_length
        self.code_alphabet = code_alphabet
        self.poll_interval = poll_interval
        self._subscriptions: list[PollingSubscription] = []

    @classmethod
    def from_config(cls, config: Config) -> "LocalSessionBackend":
        """Build a backend from loaded configuration."""
        return cls(
            SessionStore(config.resolved_store_path()),
            code_length=config.pairing.code_length,
            code_alphabet=config.pairing.code_alphabet,
            poll_interval=config.pairing.poll_interval,
        )

    @property
    def has_session(self) -> bool:
        return self._load() is not None

    @property
    def session_code(self) -> Optional[str]:
        record = self._load()
        return record.code if record else None

    async def get_session_status(self) -> str:
        return self._current_status()

    async def create_session(self) -> str:
        """Replace any stored session with a new waiting one.

        Raises:
            BackendError: If the record cannot be written.
        """
        code = generate_code(self.code_length, self.code_alphabet)
        try:
            self.store.save(SessionRecord(code=code, status=STATUS_WAITING))
        except OSError as e:
            raise BackendError(f"Could not store session: {e}") from e
        return code

    async def disconnect_session(self) -> None:
        try:
            self.store.clear()
        except OSError as e:
            raise BackendError(f"Could not remove session: {e}") from e

    def listen_session_status(
        self,
        on_paired: StatusCallback,
        on_disconnected: StatusCallback,
    ) -> PollingSubscription:
        """Poll the store and report status changes.

        Must be called with a running event loop.
        """
        subscription = PollingSubscription()
        # Baseline is taken now so a change before the first tick is reported
        try:
            last_status: Optional[str] = self._read_status()
        except StorageError as e:
            logger.debug(f"Session store unreadable at subscribe: {e}")
            last_status = None
        task = asyncio.get_running_loop().create_task(
            self._poll(subscription, on_paired, on_disconnected, last_status)
        )
        subscription.attach(task)
        self._subscriptions = [s for s in self._subscriptions if not s.cancelled]
        self._subscriptions.append(subscription)
        return subscription

    @property
    def active_subscriptions(self) -> int:
        return sum(1 for s in self._subscriptions if not s.cancelled)

    async def close(self) -> None:
        """Cancel all polling tasks."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()

    async def join(self, code: str) -> None:
        """Pair the waiting session, acting as the remote device.

        Args:
            code: Code as typed by the user; case and separators ignored.

        Raises:
            PairingError: If no session is waiting or the code differs.
        """
        record = self._load()
        if record is None or record.status != STATUS_WAITING:
            raise PairingError("No session is waiting for a device")
        if normalize_code(code) != normalize_code(record.code):
            raise PairingError("Session code does not match")
        self._update_status(record, STATUS_PAIRED)

    async def leave(self) -> None:
        """Drop the connection from the remote device side.

        Raises:
            PairingError: If there is no waiting or paired session.
        """
        record = self._load()
        if record is None or record.status not in (STATUS_WAITING, STATUS_PAIRED):
            raise PairingError("No active session to leave")
        self._update_status(record, STATUS_DISCONNECTED)

    def _update_status(self, record: SessionRecord, status: str) -> None:
        record.status = status
        record.updated_at = datetime.now()
        try:
            self.store.save(record)
        except OSError as e:
            raise StorageError(f"Could not update session: {e}") from e
        logger.info(f"Session {record.code} is now {status}")

    def _load(self) -> Optional[SessionRecord]:
        try:
            return self.store.load()
        except StorageError as e:
            logger.warning(f"Ignoring unreadable session store: {e}")
            return None

    def _current_status(self) -> str:
        record = self._load()
        return record.status if record else STATUS_NONE

    def _read_status(self) -> str:
        """Status of the stored record, "none" only if the file is missing.

        Raises:
            StorageError: If the file exists but cannot be parsed.
        """
        record = self.store.load()
        return record.status if record else STATUS_NONE

    async def _poll(
        self,
        subscription: PollingSubscription,
        on_paired: StatusCallback,
        on_disconnected: StatusCallback,
        last_status: Optional[str],
    ) -> None:
        while not subscription.cancelled:
            await asyncio.sleep(self.poll_interval)
            if subscription.cancelled:
                return

            try:
                status = self._read_status()
            except StorageError as e:
                # Half-written or corrupt file, try again next tick
                logger.debug(f"Skipping unreadable session store: {e}")
                continue

            if last_status is None:
                last_status = status
                continue
            if status == last_status:
                continue
            last_status = status

            try:
                if status == STATUS_PAIRED:
                    on_paired()
                elif status in (STATUS_DISCONNECTED, STATUS_NONE):
                    on_disconnected()
            except Exception as e:
                logger.error(f"Status callback failed: {e}")
