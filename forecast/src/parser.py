"""
Pure parser and aggregator for the Forecast.Solar ``text/csv`` estimate.

The payload is newline-delimited, one ``series.timestamp;value`` pair per
line, for example::

    watts.2019-06-29 14:00:00;5292
    watt_hours.2019-06-29 14:00:00;28436
    watt_hours_day.2019-06-29;41524

Values are divided by 1000 at parse time. Only the ``watts`` and
``watt_hours_day`` series feed the aggregate, and a payload without a
``watts`` series is treated as unreliable and yields all-zero values.

This is a pure module: no side effects, no I/O. The reference date is
accepted as a parameter so the caller can inject it.

CHANGELOG:
- 2026-10-14: Skip malformed lines instead of failing the cycle (STORY-006)
- 2026-10-13: Initial creation (STORY-006)

TODO:
- Product owner to confirm whether the daily energy metrics should sum
  intraday values instead of keeping the largest daily total.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from forecast.src.models import ForecastAggregate

logger = logging.getLogger(__name__)

SERIES_POWER = "watts"
SERIES_ENERGY_DAY = "watt_hours_day"

MIN_LINE_LENGTH = 5
"""Lines of this length or shorter (blank trailing lines) are ignored."""

VALUE_DIVISOR = 1000.0

# series -> (today field, tomorrow field)
_TARGETS: dict[str, tuple[str, str]] = {
    SERIES_POWER: ("peak_power_today_kw", "peak_power_tomorrow_kw"),
    SERIES_ENERGY_DAY: ("energy_today_kwh", "energy_tomorrow_kwh"),
}


def parse_estimate(payload: str) -> dict[str, dict[str, float]]:
    """Parse an estimate payload into ``{series: {timestamp_or_date: value}}``.

    Each line is split on the first ``;`` into key and value, and the key on
    the first ``.`` into series and timestamp. Lines that do not have that
    shape are skipped.
    """
    series: dict[str, dict[str, float]] = {}

    for line in payload.split("\n"):
        if len(line) <= MIN_LINE_LENGTH:
            continue

        key, sep, raw_value = line.partition(";")
        if not sep:
            logger.debug("Skipping line without value separator: %r", line)
            continue

        name, sep, stamp = key.strip().partition(".")
        if not sep:
            logger.debug("Skipping line without series prefix: %r", line)
            continue

        try:
            value = float(raw_value.strip()) / VALUE_DIVISOR
        except ValueError:
            logger.debug("Skipping line with non-numeric value: %r", line)
            continue

        series.setdefault(name, {})[stamp] = value

    return series


def _date_of(stamp: str) -> date | None:
    """Return the calendar date of a ``YYYY-MM-DD[ HH:MM:SS]`` key, or None."""
    try:
        return datetime.fromisoformat(stamp.strip()).date()
    except ValueError:
        return None


def aggregate(series: dict[str, dict[str, float]], today: date) -> ForecastAggregate:
    """Reduce parsed series to the four forecast metrics.

    Every value dated *today* goes to the today metric; every other dated
    value goes to the tomorrow metric. All four metrics keep the running
    maximum, so the daily energy metrics equal the single daily total the
    provider reports.

    Args:
        series: Output of :func:`parse_estimate`.
        today: The reference calendar date.

    Returns:
        The aggregate; all zero when no ``watts`` series is present.
    """
    values = dict.fromkeys(ForecastAggregate.model_fields, 0.0)

    if SERIES_POWER not in series:
        logger.warning("Estimate has no '%s' series, keeping zero aggregates", SERIES_POWER)
        return ForecastAggregate(**values)

    for name, (today_field, tomorrow_field) in _TARGETS.items():
        for stamp, value in series.get(name, {}).items():
            day = _date_of(stamp)
            if day is None:
                logger.debug("Skipping %s value with unparseable date %r", name, stamp)
                continue
            field = today_field if day == today else tomorrow_field
            if value > values[field]:
                values[field] = value

    return ForecastAggregate(**values)


def parse_and_aggregate(payload: str, today: date | None = None) -> ForecastAggregate:
    """Parse *payload* and aggregate it relative to *today* (default: local date)."""
    if today is None:
        today = date.today()
    return aggregate(parse_estimate(payload), today)
