"""Leaderboard listings and single-user rank lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable
from uuid import UUID

from loguru import logger
from sqlalchemy import Subquery, and_, func, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.core.settings import get_settings
from kudos_api.models.activity import ConnectionStatus, EventAttendance, Referral, UserConnection
from kudos_api.models.gamification import PointHistory, UserBadge
from kudos_api.models.user import User, UserStatusEnum


class LeaderboardDimension(str, Enum):
    POINTS = "points"
    TRUST_SCORE = "trust_score"
    BADGES = "badges"
    EVENTS = "events"
    CONNECTIONS = "connections"
    REFERRALS = "referrals"


class LeaderboardTimeframe(str, Enum):
    ALL_TIME = "all_time"
    MONTHLY = "monthly"
    WEEKLY = "weekly"


_WINDOWS: dict[LeaderboardTimeframe, timedelta] = {
    LeaderboardTimeframe.MONTHLY: timedelta(days=30),
    LeaderboardTimeframe.WEEKLY: timedelta(days=7),
}


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    user_id: UUID
    user_name: str
    user_image: str | None
    value: int
    rank: int


@dataclass(slots=True)
class LeaderboardPage:
    dimension: LeaderboardDimension
    timeframe: LeaderboardTimeframe
    limit: int
    offset: int
    total: int = 0
    entries: list[LeaderboardEntry] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _active_user_clause():
    return and_(User.status == UserStatusEnum.ACTIVE.value, User.deleted_at.is_(None))


class LeaderboardRanker:
    """Ranks active users along one dimension at a time.

    Every board is reduced to a ``(user_id, value)`` subquery. Listings order
    it by value descending with the user id as tie breaker and number rows
    sequentially from ``offset + 1``. Single-user lookups use
    ``1 + count(users with a strictly greater value)``, so tied users share a
    rank there.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._db = db_session
        self._clock = clock or _utcnow

    async def get_leaderboard(
        self,
        dimension: LeaderboardDimension | str,
        *,
        limit: int | None = None,
        offset: int = 0,
        timeframe: LeaderboardTimeframe | str = LeaderboardTimeframe.ALL_TIME,
    ) -> LeaderboardPage:
        dimension = LeaderboardDimension(dimension)
        timeframe = LeaderboardTimeframe(timeframe)
        settings = get_settings()
        limit = max(1, min(limit or settings.leaderboard_default_limit, settings.leaderboard_max_limit))
        offset = max(0, offset)

        values = self._values(dimension, timeframe)
        base = select(User.id).join(values, values.c.user_id == User.id).where(_active_user_clause())
        total = int((await self._db.execute(select(func.count()).select_from(base.subquery()))).scalar_one())

        stmt = (
            select(User.id, User.full_name, User.profile_picture, values.c.value)
            .join(values, values.c.user_id == User.id)
            .where(_active_user_clause())
            .order_by(values.c.value.desc(), User.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._db.execute(stmt)
        entries = [
            LeaderboardEntry(
                user_id=row.id,
                user_name=row.full_name,
                user_image=row.profile_picture,
                value=int(row.value or 0),
                rank=offset + index + 1,
            )
            for index, row in enumerate(result)
        ]
        logger.debug(
            "Computed leaderboard page",
            dimension=dimension.value,
            timeframe=timeframe.value,
            offset=offset,
            returned=len(entries),
            total=total,
        )
        return LeaderboardPage(
            dimension=dimension,
            timeframe=timeframe,
            limit=limit,
            offset=offset,
            total=total,
            entries=entries,
        )

    async def get_user_rank(
        self,
        dimension: LeaderboardDimension | str,
        user_id: UUID,
        *,
        timeframe: LeaderboardTimeframe | str = LeaderboardTimeframe.ALL_TIME,
    ) -> int:
        """Rank of ``user_id``, or 0 when the user does not exist."""

        dimension = LeaderboardDimension(dimension)
        timeframe = LeaderboardTimeframe(timeframe)

        exists = await self._db.execute(select(User.id).where(User.id == user_id))
        if exists.scalar_one_or_none() is None:
            return 0

        values = self._values(dimension, timeframe)
        own = await self._db.execute(select(values.c.value).where(values.c.user_id == user_id))
        own_value = own.scalar_one_or_none() or 0

        stmt = (
            select(func.count())
            .select_from(values.join(User, values.c.user_id == User.id))
            .where(_active_user_clause(), values.c.value > own_value)
        )
        higher = int((await self._db.execute(stmt)).scalar_one())
        return higher + 1

    async def get_points_rank(self, user_id: UUID) -> int:
        return await self.get_user_rank(LeaderboardDimension.POINTS, user_id)

    async def get_trust_score_rank(self, user_id: UUID) -> int:
        return await self.get_user_rank(LeaderboardDimension.TRUST_SCORE, user_id)

    async def get_badges_rank(self, user_id: UUID) -> int:
        return await self.get_user_rank(LeaderboardDimension.BADGES, user_id)

    def _since(self, timeframe: LeaderboardTimeframe) -> datetime | None:
        window = _WINDOWS.get(timeframe)
        return self._clock() - window if window else None

    def _values(self, dimension: LeaderboardDimension, timeframe: LeaderboardTimeframe) -> Subquery:
        since = self._since(timeframe)

        if dimension is LeaderboardDimension.TRUST_SCORE:
            return select(User.id.label("user_id"), User.trust_score.label("value")).subquery()

        if dimension is LeaderboardDimension.POINTS:
            if since is None:
                return select(User.id.label("user_id"), User.total_points.label("value")).subquery()
            return (
                select(PointHistory.user_id.label("user_id"), func.sum(PointHistory.points).label("value"))
                .where(PointHistory.points > 0, PointHistory.created_at >= since)
                .group_by(PointHistory.user_id)
                .subquery()
            )

        if dimension is LeaderboardDimension.BADGES:
            stmt = select(UserBadge.user_id.label("user_id"), func.count(UserBadge.id).label("value"))
            if since is not None:
                stmt = stmt.where(UserBadge.earned_at >= since)
            return stmt.group_by(UserBadge.user_id).subquery()

        if dimension is LeaderboardDimension.EVENTS:
            stmt = select(EventAttendance.user_id.label("user_id"), func.count(EventAttendance.id).label("value"))
            if since is not None:
                stmt = stmt.where(EventAttendance.checked_in_at >= since)
            return stmt.group_by(EventAttendance.user_id).subquery()

        if dimension is LeaderboardDimension.CONNECTIONS:
            connected_at = func.coalesce(UserConnection.connected_at, UserConnection.created_at)
            conditions = [UserConnection.status == ConnectionStatus.ACCEPTED.value]
            if since is not None:
                conditions.append(connected_at >= since)
            sides = union_all(
                select(UserConnection.initiator_id.label("user_id")).where(*conditions),
                select(UserConnection.receiver_id.label("user_id")).where(*conditions),
            ).subquery()
            return (
                select(sides.c.user_id.label("user_id"), func.count().label("value"))
                .group_by(sides.c.user_id)
                .subquery()
            )

        activated_at = func.coalesce(Referral.activated_at, Referral.created_at)
        stmt = select(Referral.referrer_id.label("user_id"), func.count(Referral.id).label("value")).where(
            Referral.is_activated.is_(True)
        )
        if since is not None:
            stmt = stmt.where(activated_at >= since)
        return stmt.group_by(Referral.referrer_id).subquery()


__all__ = [
    "LeaderboardDimension",
    "LeaderboardEntry",
    "LeaderboardPage",
    "LeaderboardRanker",
    "LeaderboardTimeframe",
]
