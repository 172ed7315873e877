"""Session record storage for the local backend.

This module provides:
- SessionRecord: Persisted pairing session (code, status, timestamps)
- SessionStore: Single-file JSON storage with owner-only permissions
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from pairctl.errors import StorageError

__all__ = [
    "SessionRecord",
    "SessionStore",
    "StorageError",
]


@dataclass
class SessionRecord:
    """Persisted pairing session.

    Attributes:
        code: Session code shared with the remote device.
        status: Backend status string ("waiting", "paired", "disconnected").
        created_at: When the session was created.
        updated_at: When the status last changed.
    """

    code: str
    status: str = "waiting"
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {
            "code": self.code,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SessionRecord":
        """Create from dict."""
        created_at = datetime.fromisoformat(d["created_at"])
        return cls(
            code=d["code"],
            status=d.get("status", "waiting"),
            created_at=created_at,
            updated_at=(
                datetime.fromisoformat(d["updated_at"])
                if d.get("updated_at")
                else created_at
            ),
        )


class SessionStore:
    """File-based storage for the current pairing session.

    Attributes:
        path: JSON file holding the session record.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def save(self, record: SessionRecord) -> None:
        """Write the record with owner-only permissions.

        The record is written to a temporary file in the same directory and
        renamed over the old one, so readers never see a partial file.

        Args:
            record: Session record to persist.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(record.to_dict(), indent=2)

        # mkstemp creates the file with mode 0600
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            try:
                os.write(fd, data.encode())
            finally:
                os.close(fd)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> SessionRecord | None:
        """Load the stored record.

        Returns:
            SessionRecord if one is stored, None otherwise.

        Raises:
            StorageError: If the file exists but cannot be parsed.
        """
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            return SessionRecord.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupt session file {self.path}: {e}") from e

    def clear(self) -> bool:
        """Delete the stored record.

        Returns:
            True if deleted, False if nothing was stored.
        """
        if self.path.exists():
            self.path.unlink()
            return True
        return False
