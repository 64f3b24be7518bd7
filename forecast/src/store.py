"""
Async SQLite store for the variables persisted by the forecast poller.

Plays the role of the host platform's variable registry for the standalone
daemon. Variables are upserted by identifier: created when absent, updated
when present, and never deleted by the update flow. The database runs in
WAL mode so the last persisted values survive process restarts.

Operations:
- upsert(...): INSERT or UPDATE a named numeric variable.
- get(parent_id, name): Return one variable or None.
- list_variables(parent_id): Return all variables of an instance ordered by position.
- close(): Close the underlying database connection.

Supports async context manager protocol for clean resource management.

CHANGELOG:
- 2026-10-14: Initial creation, adapted from the sample spool (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import re
from pathlib import Path

import aiosqlite

from forecast.src.models import ForecastVariable

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS variables (
    parent_id TEXT NOT NULL,
    ident TEXT NOT NULL,
    name TEXT NOT NULL,
    value REAL NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    profile TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (parent_id, ident)
);
"""

_UPSERT_SQL = """\
INSERT INTO variables (parent_id, ident, name, value, position, profile)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT (parent_id, ident) DO UPDATE SET
    name = excluded.name,
    value = excluded.value,
    position = excluded.position,
    profile = excluded.profile,
    updated_at = datetime('now');
"""

_GET_SQL = """\
SELECT name, value, position, profile
FROM variables
WHERE parent_id = ? AND ident = ?;
"""

_LIST_SQL = """\
SELECT name, value, position, profile
FROM variables
WHERE parent_id = ?
ORDER BY position ASC, ident ASC;
"""


def variable_ident(name: str) -> str:
    """Derive a stable identifier from a variable display name.

    ``"max. earnings per hour today"`` becomes ``"max_earnings_per_hour_today"``.
    """
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


class VariableStore:
    """Persistent variable registry backed by a SQLite database.

    Args:
        path: Filesystem path for the SQLite database file.
              Accepts ``str`` or ``pathlib.Path``.

    Usage::

        async with VariableStore(path="/data/variables.db") as store:
            await store.upsert(
                parent_id="forecast-solar",
                name="total earnings today",
                value=41.524,
                position=0,
                profile="~Power",
            )
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        """Open the SQLite connection and initialize the schema."""
        self._db = await aiosqlite.connect(str(self._path))
        await self._db.execute("PRAGMA journal_mode=WAL;")
        await self._db.execute(_CREATE_TABLE_SQL)
        await self._db.commit()

    async def close(self) -> None:
        """Close the underlying SQLite connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> VariableStore:
        """Enter async context manager: open the database."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager: close the database."""
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(
        self,
        *,
        parent_id: str,
        name: str,
        value: float,
        position: int = 0,
        profile: str = "",
    ) -> None:
        """Create the variable if absent, otherwise update it in place.

        The identifier is derived from *name* via :func:`variable_ident`, so
        the same name always maps to the same row.
        """
        assert self._db is not None, "Store not opened. Call open() or use async with."
        await self._db.execute(
            _UPSERT_SQL,
            (parent_id, variable_ident(name), name, float(value), position, profile),
        )
        await self._db.commit()

    async def get(self, parent_id: str, name: str) -> ForecastVariable | None:
        """Return the variable called *name*, or None if it was never stored."""
        assert self._db is not None, "Store not opened. Call open() or use async with."
        cursor = await self._db.execute(_GET_SQL, (parent_id, variable_ident(name)))
        row = await cursor.fetchone()
        if row is None:
            return None
        return ForecastVariable(name=row[0], value=row[1], position=row[2], profile=row[3])

    async def list_variables(self, parent_id: str) -> list[ForecastVariable]:
        """Return every variable of *parent_id* ordered by position."""
        assert self._db is not None, "Store not opened. Call open() or use async with."
        cursor = await self._db.execute(_LIST_SQL, (parent_id,))
        rows = await cursor.fetchall()
        return [
            ForecastVariable(name=row[0], value=row[1], position=row[2], profile=row[3])
            for row in rows
        ]
