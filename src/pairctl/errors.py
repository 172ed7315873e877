"""Base exceptions for pairctl."""


class PairctlError(Exception):
    """Base exception for all pairctl errors."""

    pass


class BackendError(PairctlError):
    """Session backend request failed (create, disconnect, status query)."""

    pass


class PairingError(PairctlError):
    """Remote peer could not join the session."""

    pass


class StorageError(PairctlError):
    """Storage operation error."""

    pass


class ConfigError(PairctlError):
    """Configuration value is invalid."""

    pass
