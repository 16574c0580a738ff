"""Unit tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from guildlens.config import (
    AlertConfig,
    AppConfig,
    DatabaseConfig,
    InsightsConfig,
    RecommendationConfig,
)


@pytest.fixture
def memory_db() -> DatabaseConfig:
    return DatabaseConfig(backend="memory")


class TestEnvironment:
    def test_reads_env_at_construction(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INSIGHTS_DAYS", "14")
        monkeypatch.setenv("ALERT_CRITICAL_DROP", "65.5")
        monkeypatch.setenv("CACHE_ENABLED", "yes")

        config = AppConfig()

        assert config.insights.days == 14
        assert config.alerts.critical_drop_threshold == 65.5
        assert config.cache.enabled is True

    def test_dsn(self) -> None:
        db = DatabaseConfig(
            host="db", port=5433, user="lens", password="s3cret", database="stats"
        )
        assert db.dsn == "postgresql://lens:s3cret@db:5433/stats"


class TestValidate:
    def test_memory_backend_needs_no_password(self, memory_db: DatabaseConfig) -> None:
        AppConfig(
            database=memory_db,
            insights=InsightsConfig(days=7, slot_hours=3),
            alerts=AlertConfig(
                comparison_days=7,
                activity_drop_threshold=30,
                critical_drop_threshold=50,
            ),
            recommendations=RecommendationConfig(max_results=5, quiet_ratio=0.3),
        ).validate()

    def test_postgres_requires_password(self) -> None:
        config = AppConfig(database=DatabaseConfig(backend="postgres", password=""))
        with pytest.raises(SystemExit):
            config.validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"insights": InsightsConfig(days=0)},
            {"insights": InsightsConfig(slot_hours=5)},
            {"alerts": AlertConfig(activity_drop_threshold=60, critical_drop_threshold=50)},
            {"recommendations": RecommendationConfig(quiet_ratio=0)},
            {"database": DatabaseConfig(backend="sqlite")},
        ],
    )
    def test_rejects_invalid_values(
        self,
        memory_db: DatabaseConfig,
        overrides: dict,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        config = AppConfig(**{"database": memory_db, **overrides})
        with pytest.raises(SystemExit):
            config.validate()
        assert "[CONFIG ERROR]" in capsys.readouterr().err
