"""Per-user dashboard snapshot and platform-wide gamification statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.models.gamification import Badge, PointHistory, Redemption, Reward, UserBadge
from kudos_api.models.user import User, UserStatusEnum
from kudos_api.services.badges import BadgeCriteriaEvaluator, BadgeProgress
from kudos_api.services.leaderboard import LeaderboardRanker
from kudos_api.services.points import PointLedger
from kudos_api.services.rewards import RewardCatalog

RECENT_HISTORY_SIZE = 10

POINTS_BUCKETS: tuple[tuple[str, int, int | None], ...] = (
    ("0-100", 0, 100),
    ("101-500", 101, 500),
    ("501-1000", 501, 1000),
    ("1001+", 1001, None),
)


@dataclass(slots=True)
class UserDashboard:
    user_id: UUID
    total_points: int
    recent_history: list[PointHistory]
    points_rank: int
    trust_score_rank: int
    badges_rank: int
    badges_earned: int
    badge_progress: list[BadgeProgress]
    rewards_available: int
    rewards_affordable: int


@dataclass(slots=True)
class PlatformStats:
    total_points_awarded: int
    total_badges_earned: int
    total_redemptions: int
    active_users: int
    average_points_per_user: int
    most_popular_badge: tuple[str, int] | None = None
    most_redeemed_reward: tuple[str, int] | None = None
    points_distribution: dict[str, int] = field(default_factory=dict)


def _active_user_clause():
    return and_(User.status == UserStatusEnum.ACTIVE.value, User.deleted_at.is_(None))


class GamificationStatsService:
    def __init__(
        self,
        db_session: AsyncSession,
        *,
        ledger: PointLedger | None = None,
        evaluator: BadgeCriteriaEvaluator | None = None,
        ranker: LeaderboardRanker | None = None,
        catalog: RewardCatalog | None = None,
    ) -> None:
        self._db = db_session
        self._ledger = ledger or PointLedger(db_session)
        self._evaluator = evaluator or BadgeCriteriaEvaluator(db_session)
        self._ranker = ranker or LeaderboardRanker(db_session)
        self._catalog = catalog or RewardCatalog(db_session, ledger=self._ledger)

    async def get_dashboard(self, user_id: UUID) -> UserDashboard:
        balance = await self._ledger.get_balance(user_id)
        history = await self._ledger.get_history(user_id, page=1, page_size=RECENT_HISTORY_SIZE)
        progress = await self._evaluator.get_badge_progress(user_id)
        earned = await self._db.execute(select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id))

        return UserDashboard(
            user_id=user_id,
            total_points=balance,
            recent_history=history.entries,
            points_rank=await self._ranker.get_points_rank(user_id),
            trust_score_rank=await self._ranker.get_trust_score_rank(user_id),
            badges_rank=await self._ranker.get_badges_rank(user_id),
            badges_earned=int(earned.scalar_one()),
            badge_progress=progress,
            rewards_available=await self._catalog.count_available(),
            rewards_affordable=await self._catalog.count_available(max_points=balance),
        )

    async def get_platform_stats(self) -> PlatformStats:
        awarded = await self._scalar(
            select(func.coalesce(func.sum(PointHistory.points), 0)).where(PointHistory.points > 0)
        )
        badges = await self._scalar(select(func.count(UserBadge.id)))
        redemptions = await self._scalar(select(func.count(Redemption.id)))
        active_users = await self._scalar(select(func.count(User.id)).where(_active_user_clause()))

        return PlatformStats(
            total_points_awarded=awarded,
            total_badges_earned=badges,
            total_redemptions=redemptions,
            active_users=active_users,
            average_points_per_user=round(awarded / active_users) if active_users else 0,
            most_popular_badge=await self._most_popular_badge(),
            most_redeemed_reward=await self._most_redeemed_reward(),
            points_distribution=await self._points_distribution(),
        )

    async def _scalar(self, stmt) -> int:
        return int((await self._db.execute(stmt)).scalar_one() or 0)

    async def _most_popular_badge(self) -> tuple[str, int] | None:
        count = func.count(UserBadge.id).label("earned")
        row = (
            await self._db.execute(
                select(Badge.type, count)
                .join(UserBadge, UserBadge.badge_id == Badge.id)
                .group_by(Badge.type)
                .order_by(count.desc(), Badge.type.asc())
                .limit(1)
            )
        ).first()
        return (row.type, int(row.earned)) if row else None

    async def _most_redeemed_reward(self) -> tuple[str, int] | None:
        count = func.count(Redemption.id).label("redeemed")
        row = (
            await self._db.execute(
                select(Reward.title, count)
                .join(Redemption, Redemption.reward_id == Reward.id)
                .group_by(Reward.id, Reward.title)
                .order_by(count.desc(), Reward.title.asc())
                .limit(1)
            )
        ).first()
        return (row.title, int(row.redeemed)) if row else None

    async def _points_distribution(self) -> dict[str, int]:
        distribution: dict[str, int] = {}
        for label, low, high in POINTS_BUCKETS:
            stmt = select(func.count(User.id)).where(_active_user_clause(), User.total_points >= low)
            if high is not None:
                stmt = stmt.where(User.total_points <= high)
            distribution[label] = await self._scalar(stmt)
        return distribution


__all__ = ["GamificationStatsService", "PlatformStats", "UserDashboard"]
