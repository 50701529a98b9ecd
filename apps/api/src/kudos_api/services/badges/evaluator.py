"""Config-driven badge criteria evaluation and progress reporting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable
from uuid import UUID

from loguru import logger
from sqlalchemy import distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.core.settings import get_settings
from kudos_api.domain.gamification.criteria import (
    BadgeCriteria,
    EventAttendanceCriteria,
    TrustMomentCriteria,
    StreakCriteria,
    parse_criteria,
)
from kudos_api.domain.gamification.streaks import longest_weekly_streak
from kudos_api.models.activity import (
    ConnectionStatus,
    EventAttendance,
    HostedEvent,
    Referral,
    TopicFeedback,
    TrustMoment,
    UserConnection,
)
from kudos_api.models.gamification import Badge, UserBadge

from .awarder import BadgeAwarder

Counter = Callable[[UUID, Any], Awaitable[int]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class BadgeDefinition:
    """Detached copy of a ``Badge`` row, safe to use across rollbacks."""

    id: UUID
    type: str
    name: str
    description: str | None
    category: str | None
    image_url: str | None
    criteria_config: dict[str, Any]
    required_count: int

    @classmethod
    def from_model(cls, badge: Badge) -> "BadgeDefinition":
        return cls(
            id=badge.id,
            type=badge.type,
            name=badge.name,
            description=badge.description,
            category=badge.category,
            image_url=badge.image_url,
            criteria_config=dict(badge.criteria_config or {}),
            required_count=int(badge.required_count or 0),
        )


@dataclass(frozen=True, slots=True)
class BadgeProgress:
    badge: BadgeDefinition
    is_earned: bool
    current: int
    required: int
    percentage: float
    earned_at: datetime | None = None


def progress_percentage(current: int, required: int) -> float:
    if required <= 0:
        return 100.0
    return round(min(current / required * 100, 100.0), 2)


class BadgeCriteriaEvaluator:
    """Decides which badges a user qualifies for and how close they are.

    Pass/fail and progress share one table of ``(type, condition)`` counters,
    so a badge that reports ``current >= required`` is exactly a badge that
    :meth:`evaluate` awards.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        awarder: BadgeAwarder | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._db = db_session
        self._awarder = awarder or BadgeAwarder(db_session)
        self._clock = clock or _utcnow
        self._counters: dict[tuple[str, str], Counter] = {
            ("event_attendance", "total_events_attended"): self._count_events_attended,
            ("event_attendance", "event_type_count"): self._count_events_of_type,
            ("event_attendance", "unique_locations"): self._count_unique_locations,
            ("connection", "accepted_connections"): self._count_accepted_connections,
            ("referral", "activated_referrals"): self._count_activated_referrals,
            ("event_hosting", "events_hosted"): self._count_events_hosted,
            ("streak", "consecutive_weeks"): self._count_streak_weeks,
            ("trust_moment", "positive_ratings_given"): self._count_positive_ratings_given,
            ("engagement", "feedback_submitted"): self._count_feedback_submitted,
            ("meta", "badges_earned"): self._count_badges_earned,
        }

    async def evaluate(self, user_id: UUID) -> list[str]:
        """Award every active, unearned badge the user now qualifies for.

        Returns the types of the badges awarded by this call. A failure while
        checking one badge is logged and does not stop the others.
        """

        definitions = await self._load_active_definitions()
        earned = await self._earned_badge_ids(user_id)
        awarded: list[str] = []

        for definition in definitions:
            if definition.id in earned:
                continue
            try:
                if not await self.meets_criteria(user_id, definition):
                    continue
                user_badge = await self._awarder.award_badge(user_id, definition.id, definition.name)
            except Exception:
                await self._db.rollback()
                logger.exception(
                    "Badge evaluation failed",
                    user_id=str(user_id),
                    badge_type=definition.type,
                )
                continue
            if user_badge is not None:
                awarded.append(definition.type)

        if awarded:
            logger.info("Badge evaluation awarded badges", user_id=str(user_id), badges=awarded)
        return awarded

    async def meets_criteria(self, user_id: UUID, definition: BadgeDefinition) -> bool:
        measured = await self.measure(user_id, definition)
        if measured is None:
            return False
        current, required = measured
        return current >= required

    async def measure(self, user_id: UUID, definition: BadgeDefinition) -> tuple[int, int] | None:
        """``(current, required)`` for a badge, or ``None`` when its criteria are unknown."""

        criteria = parse_criteria(definition.criteria_config, badge_type=definition.type)
        if criteria is None:
            return None
        counter = self._counters.get((criteria.type, criteria.condition))
        if counter is None:
            logger.warning(
                "No counter for badge criteria",
                badge_type=definition.type,
                criteria_type=criteria.type,
                condition=criteria.condition,
            )
            return None
        current = await counter(user_id, criteria)
        return current, criteria.threshold(definition.required_count)

    async def get_badge_progress(self, user_id: UUID) -> list[BadgeProgress]:
        definitions = await self._load_active_definitions()
        earned_at = await self._earned_badges(user_id)

        progress: list[BadgeProgress] = []
        for definition in definitions:
            measured = await self.measure(user_id, definition)
            held = definition.id in earned_at
            if measured is None:
                current, required = (definition.required_count if held else 0), definition.required_count
                is_earned = held
            else:
                current, required = measured
                if held:
                    current = max(current, required)
                is_earned = current >= required
            progress.append(
                BadgeProgress(
                    badge=definition,
                    is_earned=is_earned,
                    current=current,
                    required=required,
                    percentage=progress_percentage(current, required),
                    earned_at=earned_at.get(definition.id),
                )
            )
        return progress

    async def _load_active_definitions(self) -> list[BadgeDefinition]:
        result = await self._db.execute(select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.type))
        return [BadgeDefinition.from_model(badge) for badge in result.scalars().all()]

    async def _earned_badge_ids(self, user_id: UUID) -> set[UUID]:
        result = await self._db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
        return set(result.scalars().all())

    async def _earned_badges(self, user_id: UUID) -> dict[UUID, datetime]:
        result = await self._db.execute(
            select(UserBadge.badge_id, UserBadge.earned_at).where(UserBadge.user_id == user_id)
        )
        return {row.badge_id: row.earned_at for row in result}

    async def _scalar_count(self, stmt) -> int:
        return int((await self._db.execute(stmt)).scalar_one() or 0)

    async def _count_events_attended(self, user_id: UUID, criteria: EventAttendanceCriteria) -> int:
        return await self._scalar_count(
            select(func.count(EventAttendance.id)).where(EventAttendance.user_id == user_id)
        )

    async def _count_events_of_type(self, user_id: UUID, criteria: EventAttendanceCriteria) -> int:
        return await self._scalar_count(
            select(func.count(EventAttendance.id)).where(
                EventAttendance.user_id == user_id,
                EventAttendance.event_type == criteria.event_type,
            )
        )

    async def _count_unique_locations(self, user_id: UUID, criteria: EventAttendanceCriteria) -> int:
        return await self._scalar_count(
            select(func.count(distinct(EventAttendance.location))).where(
                EventAttendance.user_id == user_id,
                EventAttendance.location.is_not(None),
            )
        )

    async def _count_accepted_connections(self, user_id: UUID, criteria: BadgeCriteria) -> int:
        return await self._scalar_count(
            select(func.count(UserConnection.id)).where(
                UserConnection.status == ConnectionStatus.ACCEPTED.value,
                or_(UserConnection.initiator_id == user_id, UserConnection.receiver_id == user_id),
            )
        )

    async def _count_activated_referrals(self, user_id: UUID, criteria: BadgeCriteria) -> int:
        return await self._scalar_count(
            select(func.count(Referral.id)).where(
                Referral.referrer_id == user_id,
                Referral.is_activated.is_(True),
            )
        )

    async def _count_events_hosted(self, user_id: UUID, criteria: BadgeCriteria) -> int:
        return await self._scalar_count(select(func.count(HostedEvent.id)).where(HostedEvent.host_id == user_id))

    async def _count_streak_weeks(self, user_id: UUID, criteria: StreakCriteria) -> int:
        weeks = criteria.threshold(1)
        since = self._clock() - timedelta(days=weeks * 7)
        result = await self._db.execute(
            select(EventAttendance.checked_in_at).where(
                EventAttendance.user_id == user_id,
                EventAttendance.checked_in_at >= since,
            )
        )
        return longest_weekly_streak(result.scalars().all())

    async def _count_positive_ratings_given(self, user_id: UUID, criteria: TrustMomentCriteria) -> int:
        min_rating = criteria.min_rating or get_settings().trust_moment_default_min_rating
        return await self._scalar_count(
            select(func.count(TrustMoment.id)).where(
                TrustMoment.giver_id == user_id,
                TrustMoment.rating >= min_rating,
            )
        )

    async def _count_feedback_submitted(self, user_id: UUID, criteria: BadgeCriteria) -> int:
        return await self._scalar_count(select(func.count(TopicFeedback.id)).where(TopicFeedback.user_id == user_id))

    async def _count_badges_earned(self, user_id: UUID, criteria: BadgeCriteria) -> int:
        return await self._scalar_count(select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id))


__all__ = ["BadgeCriteriaEvaluator", "BadgeDefinition", "BadgeProgress", "progress_percentage"]
