"""Rule-based recommendations.

Each rule is a :class:`RecommendationTemplate` subclass. The engine checks
every template, keeps the ones that match, orders them by ``priority``
(lower is more urgent) and returns the first few.

To add a rule:
    1. Subclass ``RecommendationTemplate`` in this module.
    2. Set ``id`` and ``priority``; implement ``matches()`` and ``_content()``.
    3. Append an instance to ``DEFAULT_TEMPLATES``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Sequence

from guildlens.config import RecommendationConfig
from guildlens.core.models import (
    ChannelActivity,
    MetricsBundle,
    QuietChannel,
    Recommendation,
)
from guildlens.core.types import Trend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Quiet channels
# ---------------------------------------------------------------------------


def find_quiet_channels(
    previous: list[ChannelActivity],
    current: list[ChannelActivity],
    min_previous: int = 10,
    ratio: float = 0.3,
) -> list[QuietChannel]:
    """Channels that had *min_previous* messages and now have under *ratio* of that."""
    current_counts = {c.channel_id: c.count for c in current}
    quiet: list[QuietChannel] = []

    for prev in previous:
        curr_count = current_counts.get(prev.channel_id, 0)
        if prev.count >= min_previous and curr_count < prev.count * ratio:
            quiet.append(
                QuietChannel(
                    channel_id=prev.channel_id,
                    previous_count=prev.count,
                    current_count=curr_count,
                    drop_percentage=(prev.count - curr_count) / prev.count * 100,
                )
            )

    quiet.sort(key=lambda q: (-q.drop_percentage, q.channel_id))
    return quiet


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class RecommendationTemplate(ABC):
    """A named condition -> action rule."""

    id: ClassVar[str]
    priority: ClassVar[int]

    @abstractmethod
    def matches(self, metrics: MetricsBundle) -> bool:
        ...

    @abstractmethod
    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        """Return ``title``, ``description``, ``example`` and ``target_channel``."""
        ...

    def build(self, metrics: MetricsBundle) -> Recommendation:
        return Recommendation(id=self.id, priority=self.priority, **self._content(metrics))


class GeneralActivityDrop(RecommendationTemplate):
    id = "general_activity_drop"
    priority = 1
    min_drop = 20.0

    def matches(self, metrics: MetricsBundle) -> bool:
        health = metrics.health
        return health.trend is Trend.DOWN and health.trend_percentage >= self.min_drop

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        return {
            "title": "Engagement Poll",
            "description": (
                f"Activity dropped {metrics.health.trend_percentage:.0f}%. "
                "A poll can help you find out what the community wants more of."
            ),
            "example": (
                "**What would you like to see more of on the server?**\n\n"
                "1. Events and competitions\n"
                "2. Themed discussions\n"
                "3. Exclusive content\n"
                "4. More specific channels\n\n"
                "React to vote! Your opinion matters!"
            ),
            "target_channel": "#general",
        }


class NewMembersInactive(RecommendationTemplate):
    id = "new_members_inactive"
    priority = 1
    max_new_authors = 2
    min_messages = 30

    def matches(self, metrics: MetricsBundle) -> bool:
        insights = metrics.insights
        return (
            insights.new_authors <= self.max_new_authors
            and insights.total_messages > self.min_messages
        )

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        return {
            "title": "Welcome the Newcomers",
            "description": (
                "Few new members are joining the conversation. "
                "An introductions channel can help break the ice."
            ),
            "example": (
                "**WELCOME TO THE SERVER!**\n\n"
                "If you just arrived:\n\n"
                "1. Read the rules in #rules\n"
                "2. Introduce yourself here! Tell us:\n"
                "   - How you found the server\n"
                "   - What you hope to find here\n"
                "   - A fun fact about you\n\n"
                "The community is ready to meet you!"
            ),
            "target_channel": "#introductions",
        }


class LowScoreEvent(RecommendationTemplate):
    id = "low_score_event"
    priority = 2
    max_score = 60

    def matches(self, metrics: MetricsBundle) -> bool:
        return bool(metrics.insights.peak_slots) and metrics.health.score < self.max_score

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        return {
            "title": "Weekend Event",
            "description": (
                "Scheduled weekend events can lift regular activity."
            ),
            "example": (
                "**EVENT: Saturday Game Night!**\n\n"
                "This Saturday at 8pm\n"
                "Let's play together!\n\n"
                "Who's in? React below.\n\n"
                "Bring your friends! The more the merrier!"
            ),
            "target_channel": "#events",
        }


class QuietChannelRevival(RecommendationTemplate):
    id = "quiet_channel"
    priority = 2

    def matches(self, metrics: MetricsBundle) -> bool:
        return bool(metrics.quiet_channels)

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        channel = metrics.quiet_channels[0]
        return {
            "title": "Revive a Channel",
            "description": (
                f"<#{channel.channel_id}> has gone quiet. "
                "How about starting an interesting discussion?"
            ),
            "example": (
                "**Question of the Day:**\n\n"
                "If you could master any skill instantly, which would it be?\n\n"
                "Tell us in the replies!"
            ),
            "target_channel": f"<#{channel.channel_id}>",
        }


class PeakHourEvent(RecommendationTemplate):
    id = "peak_hour_event"
    priority = 3

    def matches(self, metrics: MetricsBundle) -> bool:
        return bool(metrics.insights.peak_slots)

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        top = metrics.insights.peak_slots[0]
        return {
            "title": "Use the Peak Hours",
            "description": (
                f"The most active time is {top.label}. "
                "Schedule announcements and events for that window."
            ),
            "example": (
                "**REMINDER:**\n\n"
                f"The server is busiest between {top.label}!\n\n"
                "- Post content then for the widest reach\n"
                "- Schedule events and streams for that window\n"
                "- Drop by to join the conversation!"
            ),
            "target_channel": "#announcements",
        }


class CelebrateTopChannel(RecommendationTemplate):
    id = "celebrate_top_channel"
    priority = 4
    min_messages = 50

    def matches(self, metrics: MetricsBundle) -> bool:
        top = metrics.insights.top_channels
        return bool(top) and top[0].count >= self.min_messages

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        top = metrics.insights.top_channels[0]
        return {
            "title": "Celebrate the Busiest Channel",
            "description": (
                f"<#{top.channel_id}> is the most active channel with "
                f"{top.count} messages! Recognise the community."
            ),
            "example": (
                "**HIGHLIGHT OF THE WEEK:**\n\n"
                f"<#{top.channel_id}> was the most active channel this week!\n\n"
                f"{top.count} messages\n\n"
                "Thanks to everyone who took part. You make this server happen!"
            ),
            "target_channel": "#announcements",
        }


class EncourageSharing(RecommendationTemplate):
    id = "encourage_sharing"
    priority = 4
    max_active_users = 10

    def matches(self, metrics: MetricsBundle) -> bool:
        return metrics.health.active_users_last_7_days < self.max_active_users

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        return {
            "title": "Encourage Sharing",
            "description": (
                "With few active members, encouraging invites can bring "
                "in new participants."
            ),
            "example": (
                "**HELP THE SERVER GROW!**\n\n"
                "Know someone who would enjoy it here?\n\n"
                "Share the invite link:\n"
                "`[SERVER_LINK]`\n\n"
                "Thanks for being part of our community!"
            ),
            "target_channel": "#general",
        }


class WeeklyRecap(RecommendationTemplate):
    id = "weekly_recap"
    priority = 5
    min_messages = 20

    def matches(self, metrics: MetricsBundle) -> bool:
        return metrics.insights.total_messages > self.min_messages

    def _content(self, metrics: MetricsBundle) -> dict[str, str | None]:
        insights = metrics.insights
        trend_line = {
            Trend.UP: "Rising!",
            Trend.DOWN: "We need you!",
            Trend.STABLE: "Stable",
        }[metrics.health.trend]
        return {
            "title": "Weekly Recap",
            "description": "A weekly recap keeps everyone informed and engaged.",
            "example": (
                "**WEEK IN REVIEW:**\n\n"
                f"{insights.total_messages} messages\n"
                f"{insights.total_authors} active members\n"
                f"Trend: {trend_line}\n\n"
                "**Highlights:**\n"
                "- [Add important events]\n"
                "- [Mention community achievements]\n"
                "- [Thank special contributors]"
            ),
            "target_channel": "#announcements",
        }


DEFAULT_TEMPLATES: tuple[RecommendationTemplate, ...] = (
    GeneralActivityDrop(),
    LowScoreEvent(),
    QuietChannelRevival(),
    NewMembersInactive(),
    PeakHourEvent(),
    CelebrateTopChannel(),
    EncourageSharing(),
    WeeklyRecap(),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RecommendationEngine:
    """Evaluates templates against a :class:`MetricsBundle`."""

    def __init__(
        self,
        templates: Sequence[RecommendationTemplate] = DEFAULT_TEMPLATES,
        config: RecommendationConfig | None = None,
    ) -> None:
        self._templates = tuple(templates)
        self._cfg = config or RecommendationConfig()

    @property
    def templates(self) -> tuple[RecommendationTemplate, ...]:
        return self._templates

    def recommend(self, metrics: MetricsBundle) -> list[Recommendation]:
        matched: list[Recommendation] = []

        for template in self._templates:
            try:
                if template.matches(metrics):
                    matched.append(template.build(metrics))
            except Exception:
                logger.warning(
                    "Template %s failed evaluation, skipping",
                    template.id,
                    exc_info=True,
                )

        # Stable: equal priorities keep template order
        matched.sort(key=lambda r: r.priority)
        return matched[: self._cfg.max_results]


# ---------------------------------------------------------------------------
# Quick, context-free suggestions
# ---------------------------------------------------------------------------

_QUICK_RECOMMENDATIONS: dict[str, Recommendation] = {
    "low_activity": Recommendation(
        id="low_activity",
        priority=0,
        title="Start a Discussion",
        description="Ask an interesting question to get the conversation going.",
        example="If you could have one superpower, what would it be and why?",
    ),
    "welcome": Recommendation(
        id="welcome",
        priority=0,
        title="Say Welcome",
        description="Greet new members personally.",
        example="Welcome to the server! If you need anything, just ask!",
    ),
    "celebrate": Recommendation(
        id="celebrate",
        priority=0,
        title="Celebrate a Milestone",
        description="Recognise community milestones and achievements.",
        example="Congrats everyone! We reached [X] members! Thanks for being here!",
    ),
}


def get_quick_recommendation(situation: str) -> Recommendation | None:
    return _QUICK_RECOMMENDATIONS.get(situation)
