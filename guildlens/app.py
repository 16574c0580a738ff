"""Main application entry point.

Usage:
    python -m guildlens.app                  # run the alert/retention scheduler
    python -m guildlens.app --guild 1234     # print one guild's report as JSON
    python -m guildlens.app --debug
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable

from prometheus_client import Counter, Gauge, start_http_server

from guildlens.analytics import AnalyticsEngine
from guildlens.config import AppConfig, DatabaseConfig
from guildlens.core.cache import TTLCache
from guildlens.core.models import Alert
from guildlens.core.periods import days_ago
from guildlens.core.types import AlertLevel
from guildlens.core.utils import setup_logging, utcnow
from guildlens.storage import ActivityRepository, InMemoryRepository, PostgresRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prometheus metrics
# ---------------------------------------------------------------------------

HEALTH_GAUGE = Gauge(
    "guildlens_health_score",
    "Latest health score per guild",
    ["guild"],
)
ALERTS_TOTAL = Counter(
    "guildlens_alerts_total",
    "Alerts raised by the periodic sweep",
    ["level"],
)
SWEEPS_TOTAL = Counter(
    "guildlens_sweeps_total",
    "Completed alert sweeps",
)


def build_repository(config: DatabaseConfig) -> ActivityRepository:
    if config.backend == "memory":
        return InMemoryRepository()
    return PostgresRepository(config)


class GuildLensApp:
    """Top-level orchestrator: wires storage -> analytics engine -> scheduler."""

    def __init__(
        self,
        config: AppConfig,
        repository: ActivityRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._clock = clock
        self._repo = repository or build_repository(config.database)

        self._cache: TTLCache | None = None
        if config.cache.enabled:
            self._cache = TTLCache(config.cache.health_ttl_seconds, clock=clock)

        self._engine = AnalyticsEngine(
            repository=self._repo,
            insights_config=config.insights,
            alert_config=config.alerts,
            recommendation_config=config.recommendations,
            cache=self._cache,
            cache_config=config.cache,
            clock=clock,
        )

        self._tasks: list[asyncio.Task[Any]] = []
        self._stop_event = asyncio.Event()
        self._closed = False
        # Guilds with a live HEALTH_GAUGE series
        self._gauged_guilds: set[str] = set()

    @property
    def engine(self) -> AnalyticsEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        await self._repo.connect()

    async def start(self) -> None:
        """Connect, start background loops and block until shutdown."""
        logger.info("Starting GuildLens (backend=%s)", self._config.database.backend)
        await self.connect()

        if self._config.metrics.enabled:
            start_http_server(self._config.metrics.port)
            logger.info(
                "Prometheus metrics on :%d/metrics",
                self._config.metrics.port,
            )

        self._tasks.append(asyncio.create_task(self._alert_loop(), name="alerts"))
        self._tasks.append(asyncio.create_task(self._prune_loop(), name="prune"))

        logger.info(
            "GuildLens started: alert sweep every %.1fh, retention %d days",
            self._config.scheduler.alert_interval_hours,
            self._config.scheduler.retention_days,
        )
        await self._stop_event.wait()

    async def shutdown(self) -> None:
        """Cancel loops and close the data source. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down GuildLens...")

        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        await self._repo.close()
        self._stop_event.set()
        logger.info("Shutdown complete")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def report(self, guild_id: str) -> dict[str, Any]:
        """Everything the engine knows about one guild, as plain data."""
        health, insights, alerts, recommendations = await asyncio.gather(
            self._engine.calculate_health_score(guild_id),
            self._engine.get_insights(guild_id, self._config.insights.days),
            self._engine.generate_alerts(guild_id),
            self._engine.generate_recommendations(guild_id),
        )
        return {
            "guild_id": guild_id,
            "generated_at": self._clock().isoformat(),
            "health": asdict(health),
            "insights": asdict(insights),
            "alerts": [asdict(a) for a in alerts],
            "recommendations": [asdict(r) for r in recommendations],
        }

    async def sweep_alerts(self) -> dict[str, list[Alert]]:
        """Score and alert every known guild once.

        A guild whose alerts fail is logged and skipped; the sweep goes on.
        Health scores are only computed when metrics are exported, and a
        scoring failure never drops that guild's alerts.
        """
        results: dict[str, list[Alert]] = {}
        guild_ids = await self._repo.guild_ids()

        for guild_id in guild_ids:
            try:
                alerts = await self._engine.generate_alerts(guild_id)
            except Exception:
                logger.exception("Alert sweep failed for guild %s", guild_id)
                continue

            results[guild_id] = alerts
            for alert in alerts:
                log = logger.warning if alert.level is AlertLevel.CRITICAL else logger.info
                log("[%s] %s: %s", guild_id, alert.title, alert.description)

            if self._config.metrics.enabled:
                for alert in alerts:
                    ALERTS_TOTAL.labels(level=alert.level.value).inc()
                await self._export_health(guild_id)

        if self._config.metrics.enabled:
            self._drop_stale_gauges(set(guild_ids))
            SWEEPS_TOTAL.inc()
        if self._cache is not None:
            self._cache.cleanup()

        logger.info(
            "Alert sweep done: %d guilds, %d alerts",
            len(results),
            sum(len(a) for a in results.values()),
        )
        return results

    async def _export_health(self, guild_id: str) -> None:
        try:
            health = await self._engine.calculate_health_score(guild_id)
        except Exception:
            logger.exception("Health scoring failed for guild %s", guild_id)
            return
        HEALTH_GAUGE.labels(guild=guild_id).set(health.score)
        self._gauged_guilds.add(guild_id)
        logger.debug("Health score for %s: %d", guild_id, health.score)

    def _drop_stale_gauges(self, present: set[str]) -> None:
        """Remove gauge series for guilds with no remaining messages."""
        for guild_id in self._gauged_guilds - present:
            HEALTH_GAUGE.remove(guild_id)
            logger.debug("Dropped health gauge for %s", guild_id)
        self._gauged_guilds &= present

    async def prune(self) -> int:
        cutoff = days_ago(self._config.scheduler.retention_days, self._clock())
        return await self._repo.prune_messages(cutoff)

    # ------------------------------------------------------------------
    # Background loops
    # ------------------------------------------------------------------

    async def _alert_loop(self) -> None:
        interval = self._config.scheduler.alert_interval_hours * 3600

        while True:
            try:
                await self.sweep_alerts()
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in alert loop")
                await asyncio.sleep(60)

    async def _prune_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._config.scheduler.prune_interval_seconds)
                await self.prune()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in prune loop")
                await asyncio.sleep(60)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="GuildLens: Discord community health analytics"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--guild",
        metavar="ID",
        help="Print a JSON report for one guild and exit",
    )
    return parser.parse_args(argv)


async def _report_once(app: GuildLensApp, guild_id: str) -> None:
    await app.connect()
    try:
        report = await app.report(guild_id)
    finally:
        await app.shutdown()
    print(json.dumps(report, indent=2, default=str))


async def _main() -> None:
    args = parse_args()

    config = AppConfig()

    # Override log level if --debug
    log_level = "DEBUG" if args.debug else config.log_level
    setup_logging(level=log_level, json_format=config.log_json)

    config.validate()

    app = GuildLensApp(config=config)

    if args.guild:
        await _report_once(app, args.guild)
        return

    # Graceful shutdown on SIGINT / SIGTERM
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(app.shutdown()))

    try:
        await app.start()
    except (KeyboardInterrupt, SystemExit):
        pass
    finally:
        await app.shutdown()


def main() -> None:
    asyncio.run(_main())


if __name__ == "__main__":
    main()
