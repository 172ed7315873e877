"""Pairing session state model.

Defines the pairing status enum, the session value object and the
table of allowed status transitions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PairingStatus(Enum):
    """Pairing status of the local client."""

    NONE = "none"
    WAITING = "waiting"
    PAIRED = "paired"
    DISCONNECTED = "disconnected"

    @classmethod
    def from_backend(cls, value: Optional[str]) -> "PairingStatus":
        """Convert a backend status string.

        Unknown or missing values map to NONE.
        """
        if not isinstance(value, str):
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE

    @property
    def label(self) -> str:
        """Short label for status badges."""
        return _LABELS[self]

    @property
    def description(self) -> str:
        """One-line explanation of what the user should do next."""
        return _DESCRIPTIONS[self]


_LABELS = {
    PairingStatus.NONE: "Not connected",
    PairingStatus.WAITING: "Waiting",
    PairingStatus.PAIRED: "Connected",
    PairingStatus.DISCONNECTED: "Disconnected",
}

_DESCRIPTIONS = {
    PairingStatus.NONE: "Create a new session to pair a device.",
    PairingStatus.WAITING: "Enter the code below on the remote device to connect.",
    PairingStatus.PAIRED: "The remote device is connected.",
    PairingStatus.DISCONNECTED: "The connection was closed. Create a new session.",
}


# Edges driven by backend events. create() and disconnect() may start from
# any status and are not listed here.
_EVENT_TRANSITIONS = {
    PairingStatus.NONE: set(),
    PairingStatus.WAITING: {PairingStatus.PAIRED, PairingStatus.DISCONNECTED},
    PairingStatus.PAIRED: {PairingStatus.PAIRED, PairingStatus.DISCONNECTED},
    PairingStatus.DISCONNECTED: {PairingStatus.DISCONNECTED},
}


def can_transition(current: PairingStatus, new: PairingStatus) -> bool:
    """Check whether a backend event may move ``current`` to ``new``."""
    return new in _EVENT_TRANSITIONS.get(current, set())


@dataclass(frozen=True)
class Session:
    """Snapshot of the pairing session.

    Attributes:
        code: Session code, present unless status is NONE.
        status: Current pairing status.
    """

    code: Optional[str] = None
    status: PairingStatus = PairingStatus.NONE

    def __post_init__(self) -> None:
        if not isinstance(self.status, PairingStatus):
            raise ValueError(f"Invalid pairing status: {self.status!r}")
        if (self.code is None) != (self.status == PairingStatus.NONE):
            raise ValueError(
                f"Session code must be set iff status is not NONE "
                f"(status={self.status.value}, code={self.code!r})"
            )

    @property
    def is_active(self) -> bool:
        """True when the session is usable (waiting or paired)."""
        return self.status in (PairingStatus.WAITING, PairingStatus.PAIRED)
