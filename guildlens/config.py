"""Environment-based configuration with validation."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root or cwd
_env_path = Path(__file__).resolve().parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()


def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int = 0) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float = 0.0) -> float:
    return float(os.getenv(key, str(default)))


def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).lower() in ("1", "true", "yes")


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Activity data source settings."""

    backend: str = field(default_factory=lambda: _env("DB_BACKEND", "postgres"))
    host: str = field(default_factory=lambda: _env("DB_HOST", "localhost"))
    port: int = field(default_factory=lambda: _env_int("DB_PORT", 5432))
    user: str = field(default_factory=lambda: _env("DB_USER", "guildlens"))
    password: str = field(default_factory=lambda: _env("DB_PASSWORD"))
    database: str = field(
        default_factory=lambda: _env("DB_NAME", "guildlens")
    )
    pool_min: int = field(default_factory=lambda: _env_int("DB_POOL_MIN", 2))
    pool_max: int = field(default_factory=lambda: _env_int("DB_POOL_MAX", 10))

    @property
    def dsn(self) -> str:
        return (
            f"postgresql://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


@dataclass(frozen=True, slots=True)
class InsightsConfig:
    """Window and ranking sizes for insights."""

    days: int = field(default_factory=lambda: _env_int("INSIGHTS_DAYS", 7))
    top_channels: int = field(
        default_factory=lambda: _env_int("INSIGHTS_TOP_CHANNELS", 3)
    )
    slot_hours: int = field(
        default_factory=lambda: _env_int("INSIGHTS_SLOT_HOURS", 3)
    )
    peak_slots: int = field(
        default_factory=lambda: _env_int("INSIGHTS_PEAK_SLOTS", 3)
    )


@dataclass(frozen=True, slots=True)
class AlertConfig:
    """Alert rule thresholds (percentages are 0-100)."""

    comparison_days: int = field(
        default_factory=lambda: _env_int("ALERT_COMPARISON_DAYS", 7)
    )
    activity_drop_threshold: float = field(
        default_factory=lambda: _env_float("ALERT_ACTIVITY_DROP", 30.0)
    )
    critical_drop_threshold: float = field(
        default_factory=lambda: _env_float("ALERT_CRITICAL_DROP", 50.0)
    )
    min_channel_messages: int = field(
        default_factory=lambda: _env_int("ALERT_MIN_CHANNEL_MESSAGES", 50)
    )
    channel_drop_threshold: float = field(
        default_factory=lambda: _env_float("ALERT_CHANNEL_DROP", 50.0)
    )
    channel_warning_threshold: float = field(
        default_factory=lambda: _env_float("ALERT_CHANNEL_WARNING_DROP", 80.0)
    )
    activation_min_messages: int = field(
        default_factory=lambda: _env_int("ALERT_ACTIVATION_MIN_MESSAGES", 50)
    )
    activation_max_new_authors: int = field(
        default_factory=lambda: _env_int("ALERT_ACTIVATION_MAX_NEW_AUTHORS", 1)
    )


@dataclass(frozen=True, slots=True)
class RecommendationConfig:
    """Recommendation list size and quiet-channel detection."""

    max_results: int = field(
        default_factory=lambda: _env_int("RECOMMEND_MAX_RESULTS", 5)
    )
    quiet_min_previous: int = field(
        default_factory=lambda: _env_int("RECOMMEND_QUIET_MIN_PREVIOUS", 10)
    )
    quiet_ratio: float = field(
        default_factory=lambda: _env_float("RECOMMEND_QUIET_RATIO", 0.3)
    )


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Optional health-score cache."""

    enabled: bool = field(
        default_factory=lambda: _env_bool("CACHE_ENABLED", False)
    )
    health_ttl_seconds: float = field(
        default_factory=lambda: _env_float("CACHE_HEALTH_TTL_SECONDS", 30.0)
    )


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    """Periodic alert sweep and retention settings."""

    alert_interval_hours: float = field(
        default_factory=lambda: _env_float("ALERT_INTERVAL_HOURS", 6.0)
    )
    retention_days: int = field(
        default_factory=lambda: _env_int("RETENTION_DAYS", 90)
    )
    prune_interval_seconds: int = field(
        default_factory=lambda: _env_int("PRUNE_INTERVAL_SECONDS", 3600)
    )


@dataclass(frozen=True, slots=True)
class MetricsConfig:
    """Prometheus metrics settings."""

    enabled: bool = field(
        default_factory=lambda: _env_bool("METRICS_ENABLED", False)
    )
    port: int = field(
        default_factory=lambda: _env_int("METRICS_PORT", 9090)
    )


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Root application configuration aggregating all sub-configs."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    insights: InsightsConfig = field(default_factory=InsightsConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    recommendations: RecommendationConfig = field(
        default_factory=RecommendationConfig
    )
    cache: CacheConfig = field(default_factory=CacheConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log_level: str = field(
        default_factory=lambda: _env("LOG_LEVEL", "INFO")
    )
    log_json: bool = field(
        default_factory=lambda: _env_bool("LOG_JSON", False)
    )

    def validate(self) -> None:
        """Validate required fields; exits on failure."""
        errors: list[str] = []
        if self.database.backend not in ("postgres", "memory"):
            errors.append("DB_BACKEND must be 'postgres' or 'memory'")
        if self.database.backend == "postgres" and not self.database.password:
            errors.append("DB_PASSWORD is required")
        if self.insights.days < 1:
            errors.append("INSIGHTS_DAYS must be >= 1")
        if self.insights.slot_hours < 1 or 24 % self.insights.slot_hours:
            errors.append("INSIGHTS_SLOT_HOURS must divide 24")
        if self.alerts.comparison_days < 1:
            errors.append("ALERT_COMPARISON_DAYS must be >= 1")
        if self.alerts.critical_drop_threshold < self.alerts.activity_drop_threshold:
            errors.append("ALERT_CRITICAL_DROP must be >= ALERT_ACTIVITY_DROP")
        if not 0 < self.recommendations.quiet_ratio <= 1:
            errors.append("RECOMMEND_QUIET_RATIO must be in (0, 1]")
        if self.recommendations.max_results < 0:
            errors.append("RECOMMEND_MAX_RESULTS must be >= 0")
        if errors:
            for e in errors:
                print(f"[CONFIG ERROR] {e}", file=sys.stderr)
            raise SystemExit(1)
