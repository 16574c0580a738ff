"""Unit tests for threshold alert rules and their ordering."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import pytest

from conftest import NOW, Seeder
from guildlens.analytics.alerts import AlertGenerator, sort_by_severity
from guildlens.analytics.trends import classify_trend
from guildlens.config import AlertConfig
from guildlens.core.models import (
    ActivityComparison,
    Alert,
    ChannelActivity,
    PeriodActivity,
)
from guildlens.core.periods import comparison_periods
from guildlens.core.types import AlertLevel, AlertType
from guildlens.storage.memory_repository import InMemoryRepository


@pytest.fixture
def alert_config() -> AlertConfig:
    return AlertConfig(
        comparison_days=7,
        activity_drop_threshold=30.0,
        critical_drop_threshold=50.0,
        min_channel_messages=50,
        channel_drop_threshold=50.0,
        channel_warning_threshold=80.0,
        activation_min_messages=50,
        activation_max_new_authors=1,
    )


@pytest.fixture
def generator(
    repo: InMemoryRepository,
    alert_config: AlertConfig,
    clock: Callable[[], datetime],
) -> AlertGenerator:
    return AlertGenerator(repo, alert_config, clock=clock)


def _comparison(current: int, previous: int) -> ActivityComparison:
    periods = comparison_periods(7, NOW)
    return ActivityComparison(
        current=PeriodActivity(periods.current, current, 1),
        previous=PeriodActivity(periods.previous, previous, 1),
        result=classify_trend(current, previous),
    )


# ---------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------


class TestActivityDropRule:
    def test_critical_at_fifty_five_percent(self, generator: AlertGenerator) -> None:
        alert = generator.activity_drop_alert(_comparison(45, 100))
        assert alert is not None
        assert alert.type is AlertType.ACTIVITY
        assert alert.level is AlertLevel.CRITICAL
        assert "55.0%" in alert.description

    def test_warning_between_thresholds(self, generator: AlertGenerator) -> None:
        alert = generator.activity_drop_alert(_comparison(65, 100))
        assert alert is not None
        assert alert.level is AlertLevel.WARNING

    @pytest.mark.parametrize(("current", "previous"), [(80, 100), (100, 100), (150, 100), (5, 0)])
    def test_no_alert_for_small_drops_or_growth(
        self, generator: AlertGenerator, current: int, previous: int
    ) -> None:
        assert generator.activity_drop_alert(_comparison(current, previous)) is None


class TestChannelDropRule:
    def test_sixty_percent_drop_is_info(self, generator: AlertGenerator) -> None:
        alerts = generator.channel_drop_alerts(
            [ChannelActivity("c1", 100)],
            [ChannelActivity("c1", 40)],
        )
        assert len(alerts) == 1
        assert alerts[0].type is AlertType.CHANNEL
        assert alerts[0].level is AlertLevel.INFO
        assert alerts[0].channel_id == "c1"
        assert "<#c1>" in alerts[0].description

    def test_eighty_percent_drop_is_warning(self, generator: AlertGenerator) -> None:
        alerts = generator.channel_drop_alerts(
            [ChannelActivity("c1", 100)],
            [ChannelActivity("c1", 20)],
        )
        assert alerts[0].level is AlertLevel.WARNING

    def test_vanished_channel_counts_as_zero(self, generator: AlertGenerator) -> None:
        alerts = generator.channel_drop_alerts([ChannelActivity("gone", 60)], [])
        assert len(alerts) == 1
        assert alerts[0].level is AlertLevel.WARNING

    def test_small_channels_ignored(self, generator: AlertGenerator) -> None:
        alerts = generator.channel_drop_alerts([ChannelActivity("tiny", 49)], [])
        assert alerts == []

    def test_keeps_data_source_order(self, generator: AlertGenerator) -> None:
        alerts = generator.channel_drop_alerts(
            [ChannelActivity("b", 200), ChannelActivity("a", 100)],
            [ChannelActivity("b", 10), ChannelActivity("a", 10)],
        )
        assert [a.channel_id for a in alerts] == ["b", "a"]


class TestActivationRule:
    def test_healthy_volume_without_newcomers(self, generator: AlertGenerator) -> None:
        alert = generator.activation_alert(current_messages=51, new_authors=1)
        assert alert is not None
        assert alert.level is AlertLevel.INFO
        assert alert.type is AlertType.ACTIVATION

    @pytest.mark.parametrize(("messages", "new"), [(50, 0), (500, 2)])
    def test_no_alert(self, generator: AlertGenerator, messages: int, new: int) -> None:
        assert generator.activation_alert(messages, new) is None


def test_sort_by_severity_is_stable() -> None:
    def make(level: AlertLevel, title: str) -> Alert:
        return Alert(type=AlertType.CHANNEL, level=level, title=title, description="")

    alerts = [
        make(AlertLevel.INFO, "i1"),
        make(AlertLevel.WARNING, "w1"),
        make(AlertLevel.CRITICAL, "c1"),
        make(AlertLevel.INFO, "i2"),
        make(AlertLevel.WARNING, "w2"),
    ]
    assert [a.title for a in sort_by_severity(alerts)] == ["c1", "w1", "w2", "i1", "i2"]


# ---------------------------------------------------------------
# Generator against a data source
# ---------------------------------------------------------------


class TestAlertGenerator:
    @pytest.mark.asyncio
    async def test_channel_drop_with_guild_drop(
        self, generator: AlertGenerator, seed: Seeder
    ) -> None:
        await seed(100, days_back=9, channel="c1", authors=5)
        await seed(40, days_back=2, channel="c1", authors=5)

        alerts = await generator.generate("g1")

        channel_alerts = [a for a in alerts if a.type is AlertType.CHANNEL]
        assert len(channel_alerts) == 1
        assert channel_alerts[0].channel_id == "c1"
        # Guild-wide 60% drop is critical and sorts first
        assert [a.type for a in alerts] == [AlertType.ACTIVITY, AlertType.CHANNEL]
        assert alerts[0].level is AlertLevel.CRITICAL

    @pytest.mark.asyncio
    async def test_guild_drop_of_fifty_five_percent(
        self, generator: AlertGenerator, seed: Seeder
    ) -> None:
        # Spread over small channels so no per-channel rule fires
        for channel in ("a", "b", "c", "d"):
            await seed(25, days_back=10, channel=channel, authors=5)
        await seed(12, days_back=1, channel="a", authors=5)
        for channel in ("b", "c", "d"):
            await seed(11, days_back=1, channel=channel, authors=5)

        alerts = await generator.generate("g1")

        assert len(alerts) == 1
        assert alerts[0].type is AlertType.ACTIVITY
        assert alerts[0].level is AlertLevel.CRITICAL

    @pytest.mark.asyncio
    async def test_activation_alert_for_regulars_only(
        self, generator: AlertGenerator, seed: Seeder
    ) -> None:
        await seed(5, days_back=30, authors=1)
        await seed(60, days_back=1, authors=1)

        alerts = await generator.generate("g1")

        assert len(alerts) == 1
        assert alerts[0].type is AlertType.ACTIVATION

    @pytest.mark.asyncio
    async def test_quiet_guild_has_no_alerts(self, generator: AlertGenerator) -> None:
        assert await generator.generate("g1") == []

    @pytest.mark.asyncio
    async def test_fresh_on_every_call(
        self, generator: AlertGenerator, seed: Seeder
    ) -> None:
        await seed(100, days_back=9, channel="c1", authors=5)
        first = await generator.generate("g1")
        second = await generator.generate("g1")
        assert first == second
        assert len(first) == 2
