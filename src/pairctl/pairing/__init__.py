"""Pairing module for pairctl.

Provides the session pairing lifecycle:
- Pairing status model and transitions
- Session backend protocol
- Pairing controller
- File-backed local backend
"""

from .backend import SessionBackend, Subscription
from .codes import format_code, generate_code, normalize_code
from .controller import SessionPairingController
from .local_backend import LocalSessionBackend, PollingSubscription
from .session import PairingStatus, Session, can_transition

__all__ = [
    "LocalSessionBackend",
    "PairingStatus",
    "PollingSubscription",
    "Session",
    "SessionBackend",
    "SessionPairingController",
    "Subscription",
    "can_transition",
    "format_code",
    "generate_code",
    "normalize_code",
]
