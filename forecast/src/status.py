"""
Instance status codes and the JSON status file writer.

The numeric codes follow the host platform's convention: 1xx for normal
operating states and 2xx for error states shown in the instance UI.

The status file is overwritten on every change, providing a simple
liveness signal that Docker HEALTHCHECK or monitoring can inspect.

CHANGELOG:
- 2026-10-18: Create missing status directory, log write failures (STORY-013)
- 2026-10-13: Initial creation, adapted from the health writer (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import enum
import json
import logging
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class InstanceStatus(enum.IntEnum):
    """Observable instance status."""

    ACTIVE = 102
    INACTIVE = 104
    FETCH_ERROR = 200
    LOCATION_MISSING = 201
    RATE_LIMITED = 202


class StatusWriter:
    """Writes instance status to a JSON file.

    Each mutating method updates the in-memory state and immediately
    rewrites the status file so it always reflects the latest status.

    Args:
        path: Filesystem path for the status JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._status: InstanceStatus | None = None
        self._last_fetch_ts: str | None = None
        self._last_success_ts: str | None = None
        self._next_poll_ts: str | None = None

    @property
    def status(self) -> InstanceStatus | None:
        """The most recently recorded status, or None before the first."""
        return self._status

    def set_status(self, status: InstanceStatus) -> None:
        """Record a status change and write the status file.

        Every status set by a fetch counts as a fetch attempt; ACTIVE also
        counts as a success.
        """
        now = datetime.now(tz=UTC).isoformat()
        self._status = status
        if status is not InstanceStatus.INACTIVE:
            self._last_fetch_ts = now
        if status is InstanceStatus.ACTIVE:
            self._last_success_ts = now
        self._write()

    def set_next_poll(self, ts: datetime | None) -> None:
        """Record the next scheduled poll (None when disabled) and write."""
        self._next_poll_ts = ts.isoformat() if ts is not None else None
        self._write()

    def _write(self) -> None:
        """Write the status JSON file with current state.

        Missing parent directories are created. A failed write is logged and
        never raised, so status updates cannot break an update cycle.
        """
        data = {
            "status": int(self._status) if self._status is not None else None,
            "status_name": self._status.name if self._status is not None else None,
            "last_fetch_ts": self._last_fetch_ts,
            "last_success_ts": self._last_success_ts,
            "next_poll_ts": self._next_poll_ts,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data))
        except OSError:
            logger.warning("Failed to write status file %s", self.path, exc_info=True)
