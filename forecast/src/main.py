"""
Forecast poller module lifecycle and daemon entrypoint.

:class:`ForecastModule` runs the update cycle against an injected host:

1. Read the plant configuration (tilt, azimuth, capacity).
2. Fetch the estimate payload (location lookup, HTTPS GET, status, timer).
3. Parse and aggregate the payload into the four forecast metrics.
4. Upsert the metrics as host variables in fixed order.

The daemon wires the module to a :class:`~forecast.src.host.LocalHost` and
drives it from the recurring update timer until SIGTERM/SIGINT. The
``--once`` flag runs a single manual cycle and prints ``OK`` or ``Error``.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-17: Add --once manual trigger (STORY-012)
- 2026-10-16: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from forecast.src.config import read_config
from forecast.src.parser import parse_and_aggregate
from forecast.src.schedule import INITIAL_INTERVAL_S
from forecast.src.status import InstanceStatus

if TYPE_CHECKING:
    from forecast.src.config import ForecastSettings
    from forecast.src.fetcher import EstimateFetcher
    from forecast.src.host import Host
    from forecast.src.models import ForecastAggregate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging for the forecast daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: ForecastSettings) -> None:
    """Log a config summary at startup."""
    logger.info(
        "Forecast poller starting with config: "
        "tilt=%s, azimuth=%s, capacity_kw=%s, latitude=%s, longitude=%s, "
        "api_base_url=%s, request_timeout_s=%s, verify_tls=%s, "
        "instance_id=%s, store_path=%s, status_path=%s",
        settings.tilt,
        settings.azimuth,
        settings.capacity_kw,
        settings.latitude,
        settings.longitude,
        settings.api_base_url,
        settings.request_timeout_s,
        settings.verify_tls,
        settings.instance_id,
        settings.store_path,
        settings.status_path,
    )


# ---------------------------------------------------------------------------
# Module lifecycle
# ---------------------------------------------------------------------------


class ForecastModule:
    """One forecast instance on a host.

    Args:
        host: The host platform the instance lives on.
        fetcher: Estimate fetcher bound to the same host.
        today: Returns the reference date for today/tomorrow bucketing.
    """

    def __init__(
        self,
        host: Host,
        fetcher: EstimateFetcher,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._host = host
        self._fetcher = fetcher
        self._today = today
        self._last_aggregate: ForecastAggregate | None = None

    @property
    def last_aggregate(self) -> ForecastAggregate | None:
        """Aggregate of the last successful cycle, or None before the first."""
        return self._last_aggregate

    async def on_ready(self) -> bool:
        """Arm the hourly timer and run a first update if configured.

        With an invalid configuration the timer stays disabled and the
        status is set to INACTIVE.

        Returns:
            True if the configuration was valid and the first update succeeded.
        """
        config = read_config(self._host)
        if not config.valid:
            logger.warning(
                "Plant configuration invalid (tilt=%s, azimuth=%s, capacity_kw=%s), "
                "polling not scheduled",
                config.tilt,
                config.azimuth,
                config.capacity_kw,
            )
            self._host.set_status(InstanceStatus.INACTIVE)
            self._host.set_timer_interval(0)
            return False

        self._host.set_timer_interval(INITIAL_INTERVAL_S)
        return await self.update()

    async def update(self) -> bool:
        """Run one fetch, parse, and persist cycle.

        Returns:
            True if an estimate was fetched and persisted.
        """
        config = read_config(self._host)

        payload = await self._fetcher.fetch(config)
        if payload is None:
            return False

        aggregate = parse_and_aggregate(payload, today=self._today())
        self._last_aggregate = aggregate
        logger.info("Forecast aggregate: %s", aggregate.as_legacy_dict())

        await self.save_data(aggregate)
        return True

    async def update_manually(self) -> str:
        """Run one cycle on demand and return ``"OK"`` or ``"Error"``."""
        try:
            ok = await self.update()
        except Exception:
            logger.error("Manual update failed", exc_info=True)
            ok = False
        return "OK" if ok else "Error"

    async def save_data(self, aggregate: ForecastAggregate) -> None:
        """Upsert the four aggregate variables on the host, positions 0..3."""
        for variable in aggregate.as_variables():
            await self._host.upsert_variable(
                parent_id=self._host.instance_id,
                name=variable.name,
                value=variable.value,
                position=variable.position,
                profile=variable.profile,
            )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def run_daemon(
    settings: ForecastSettings,
    shutdown_event: asyncio.Event,
    *,
    once: bool = False,
) -> str | None:
    """Build the components and run the daemon (or a single manual cycle).

    Returns:
        ``"OK"`` or ``"Error"`` when *once* is set, otherwise None after
        shutdown.
    """
    from forecast.src.fetcher import EstimateFetcher
    from forecast.src.host import LocalHost
    from forecast.src.schedule import UpdateTimer
    from forecast.src.status import StatusWriter
    from forecast.src.store import VariableStore

    timer = UpdateTimer()

    async with VariableStore(settings.store_path) as store:
        host = LocalHost(
            settings=settings,
            store=store,
            status=StatusWriter(settings.status_path),
            timer=timer,
        )
        fetcher = EstimateFetcher(
            host,
            base_url=settings.api_base_url,
            timeout_s=settings.request_timeout_s,
            verify_tls=settings.verify_tls,
            user_agent=settings.user_agent,
        )
        module = ForecastModule(host, fetcher)

        if once:
            return await module.update_manually()

        try:
            await module.on_ready()
        except Exception:
            logger.error("Initial update failed", exc_info=True)
        await timer.run(module.update, shutdown_event)

    logger.info("Shutdown complete")
    return None


async def async_main(once: bool = False) -> str | None:
    """Async entrypoint: load config, install signal handlers, run.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    configure_logging()

    from forecast.src.config import ForecastSettings

    settings = ForecastSettings()
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    return await run_daemon(settings, shutdown_event, once=once)


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event."""
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="forecast-edge",
        description="Poll Forecast.Solar hourly and persist today/tomorrow estimates.",
    )
    p.add_argument(
        "--once",
        action="store_true",
        help="Run a single update cycle, print OK or Error, and exit.",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Synchronous entrypoint for the forecast daemon."""
    args = parse_args(argv)
    outcome = asyncio.run(async_main(once=args.once))
    if outcome is not None:
        print(outcome)
        sys.exit(0 if outcome == "OK" else 1)


if __name__ == "__main__":
    main()
