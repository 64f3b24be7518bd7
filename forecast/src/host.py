"""
Host automation platform interface and its standalone implementation.

The update cycle never talks to the platform directly. It goes through a
:class:`Host`, which exposes exactly the capabilities the cycle needs:
reading a configuration property, resolving the plant location, upserting
a named numeric variable, arming the update timer, and setting the
instance status. Tests inject a mock; the daemon injects :class:`LocalHost`.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from forecast.src.config import ForecastSettings
    from forecast.src.schedule import UpdateTimer
    from forecast.src.status import InstanceStatus, StatusWriter
    from forecast.src.store import VariableStore

logger = logging.getLogger(__name__)

_PROPERTIES = ("tilt", "azimuth", "capacity_kw")


class Host(Protocol):
    """Capabilities the update cycle requires from the host platform."""

    @property
    def instance_id(self) -> str: ...

    def read_property(self, name: str) -> Any: ...

    def resolve_location(self) -> tuple[object | None, object | None]: ...

    async def upsert_variable(
        self,
        *,
        parent_id: str,
        name: str,
        value: float,
        position: int,
        profile: str,
    ) -> None: ...

    def set_timer_interval(self, seconds: float) -> None: ...

    def set_status(self, status: InstanceStatus) -> None: ...


class LocalHost:
    """Standalone host backed by settings, a SQLite store and a status file.

    Args:
        settings: Loaded :class:`~forecast.src.config.ForecastSettings`.
        store: Opened :class:`~forecast.src.store.VariableStore`.
        status: Status file writer.
        timer: The update timer armed by :meth:`set_timer_interval`.
    """

    def __init__(
        self,
        *,
        settings: ForecastSettings,
        store: VariableStore,
        status: StatusWriter,
        timer: UpdateTimer,
    ) -> None:
        self._settings = settings
        self._store = store
        self._status = status
        self._timer = timer

    @property
    def instance_id(self) -> str:
        return self._settings.instance_id

    def read_property(self, name: str) -> Any:
        """Return the configured value of property *name*.

        Raises:
            KeyError: If *name* is not a known instance property.
        """
        if name not in _PROPERTIES:
            raise KeyError(f"Unknown property: {name}")
        return getattr(self._settings, name)

    def resolve_location(self) -> tuple[object | None, object | None]:
        """Return the configured (latitude, longitude); empty values become None."""
        return (self._settings.latitude or None, self._settings.longitude or None)

    async def upsert_variable(
        self,
        *,
        parent_id: str,
        name: str,
        value: float,
        position: int,
        profile: str,
    ) -> None:
        await self._store.upsert(
            parent_id=parent_id,
            name=name,
            value=value,
            position=position,
            profile=profile,
        )

    def set_timer_interval(self, seconds: float) -> None:
        """Arm the update timer and publish the next poll time."""
        self._timer.set_interval(seconds)
        if seconds > 0:
            next_ts = datetime.now().astimezone() + timedelta(seconds=seconds)
            self._status.set_next_poll(next_ts)
            logger.info("Next estimate update at %s", next_ts.isoformat(timespec="seconds"))
        else:
            self._status.set_next_poll(None)
            logger.info("Update timer disabled")

    def set_status(self, status: InstanceStatus) -> None:
        if self._status.status is not status:
            logger.info("Instance status changed to %s (%d)", status.name, status)
        self._status.set_status(status)
