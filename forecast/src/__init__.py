"""
Forecast.Solar edge poller package.

Polls the Forecast.Solar estimate API once per hour, aggregates the CSV
estimate into today/tomorrow energy and peak power values, and upserts
them as named variables on the host automation platform.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""
