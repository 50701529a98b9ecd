"""Composition root for the gamification engine."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Mapping
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.core.logging import configure_logging
from kudos_api.core.settings import Settings, get_settings
from kudos_api.domain.gamification.point_actions import PointAction, PointActionInfo, list_point_actions
from kudos_api.models.gamification import PointHistory, Redemption, RedemptionStatus, Reward, UserBadge
from kudos_api.services.activity import ActivityRouter
from kudos_api.services.badges import BadgeAwarder, BadgeCriteriaEvaluator, BadgeProgress
from kudos_api.services.leaderboard import (
    LeaderboardDimension,
    LeaderboardPage,
    LeaderboardRanker,
    LeaderboardTimeframe,
)
from kudos_api.services.notifications import EmailBackend, NotificationDedupeCache, NotificationService
from kudos_api.services.points import PointHistoryPage, PointLedger
from kudos_api.services.rewards import RewardCatalog, RewardListing
from kudos_api.services.stats import GamificationStatsService, PlatformStats, UserDashboard
from kudos_api.workers.notification_dedupe import NotificationDedupeSweeper

SessionFactory = Callable[[], AsyncSession]
Clock = Callable[[], datetime]

__version__ = "0.1.0"


@dataclass(slots=True)
class _Services:
    """Services bound to one session for the duration of a single call."""

    session: AsyncSession
    ledger: PointLedger
    awarder: BadgeAwarder
    evaluator: BadgeCriteriaEvaluator
    ranker: LeaderboardRanker
    catalog: RewardCatalog
    router: ActivityRouter
    stats: GamificationStatsService


class GamificationEngine:
    """Single entry point exposing every engine operation.

    Built once per process. Each operation opens its own session from the
    injected factory, so callers never share transactional state.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        email_backend: EmailBackend | None = None,
        dedupe_cache: NotificationDedupeCache | None = None,
        sweeper: NotificationDedupeSweeper | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._email_backend = email_backend
        self.dedupe_cache = dedupe_cache or NotificationDedupeCache()
        self._sweeper = sweeper
        self._clock = clock

    async def start(self) -> None:
        if self._sweeper is not None:
            self._sweeper.start()

    async def stop(self) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()

    @asynccontextmanager
    async def _services(self) -> AsyncIterator[_Services]:
        async with self._session_factory() as session:
            notifications = NotificationService(session, self._email_backend, dedupe=self.dedupe_cache)
            ledger = PointLedger(session)
            awarder = BadgeAwarder(session, notifications=notifications)
            evaluator = BadgeCriteriaEvaluator(session, awarder=awarder, clock=self._clock)
            ranker = LeaderboardRanker(session, clock=self._clock)
            catalog = RewardCatalog(session, ledger=ledger, notifications=notifications)
            yield _Services(
                session=session,
                ledger=ledger,
                awarder=awarder,
                evaluator=evaluator,
                ranker=ranker,
                catalog=catalog,
                router=ActivityRouter(ledger, evaluator),
                stats=GamificationStatsService(
                    session,
                    ledger=ledger,
                    evaluator=evaluator,
                    ranker=ranker,
                    catalog=catalog,
                ),
            )

    # Points

    async def award_points(
        self,
        user_id: UUID,
        action: PointAction | str,
        description: str | None = None,
    ) -> PointHistory | None:
        async with self._services() as services:
            return await services.ledger.award(user_id, action, description)

    async def deduct_points(self, user_id: UUID, points: int, description: str) -> PointHistory:
        async with self._services() as services:
            return await services.ledger.deduct(user_id, points, description)

    async def get_balance(self, user_id: UUID) -> int:
        async with self._services() as services:
            return await services.ledger.get_balance(user_id)

    async def get_history(self, user_id: UUID, page: int = 1, page_size: int | None = None) -> PointHistoryPage:
        async with self._services() as services:
            return await services.ledger.get_history(user_id, page=page, page_size=page_size)

    def list_point_actions(self) -> list[PointActionInfo]:
        return list_point_actions()

    # Badges

    async def evaluate_badges(self, user_id: UUID) -> list[str]:
        async with self._services() as services:
            return await services.evaluator.evaluate(user_id)

    async def get_badge_progress(self, user_id: UUID) -> list[BadgeProgress]:
        async with self._services() as services:
            return await services.evaluator.get_badge_progress(user_id)

    async def award_badge(self, user_id: UUID, badge_type: str) -> UserBadge | None:
        async with self._services() as services:
            return await services.awarder.award(user_id, badge_type)

    async def revoke_badge(self, user_id: UUID, badge_id: UUID) -> bool:
        async with self._services() as services:
            return await services.awarder.revoke(user_id, badge_id)

    # Leaderboards

    async def get_leaderboard(
        self,
        dimension: LeaderboardDimension | str,
        *,
        limit: int | None = None,
        offset: int = 0,
        timeframe: LeaderboardTimeframe | str = LeaderboardTimeframe.ALL_TIME,
    ) -> LeaderboardPage:
        async with self._services() as services:
            return await services.ranker.get_leaderboard(dimension, limit=limit, offset=offset, timeframe=timeframe)

    async def get_user_rank(
        self,
        dimension: LeaderboardDimension | str,
        user_id: UUID,
        *,
        timeframe: LeaderboardTimeframe | str = LeaderboardTimeframe.ALL_TIME,
    ) -> int:
        async with self._services() as services:
            return await services.ranker.get_user_rank(dimension, user_id, timeframe=timeframe)

    # Rewards

    async def list_rewards(
        self,
        *,
        category: str | None = None,
        min_points: int | None = None,
        max_points: int | None = None,
        can_afford_for_user: UUID | None = None,
    ) -> RewardListing:
        async with self._services() as services:
            return await services.catalog.list_rewards(
                category=category,
                min_points=min_points,
                max_points=max_points,
                can_afford_for_user=can_afford_for_user,
            )

    async def get_reward(self, reward_id: UUID) -> Reward:
        async with self._services() as services:
            return await services.catalog.get_reward(reward_id)

    async def list_reward_categories(self) -> list[str]:
        async with self._services() as services:
            return await services.catalog.list_reward_categories()

    async def redeem_reward(self, user_id: UUID, reward_id: UUID) -> Redemption:
        async with self._services() as services:
            return await services.catalog.redeem(user_id, reward_id)

    async def list_user_redemptions(self, user_id: UUID) -> list[Redemption]:
        async with self._services() as services:
            return await services.catalog.list_user_redemptions(user_id)

    async def get_redemption(self, redemption_id: UUID) -> Redemption:
        async with self._services() as services:
            return await services.catalog.get_redemption(redemption_id)

    async def update_redemption_status(
        self,
        redemption_id: UUID,
        status: RedemptionStatus | str,
        notes: str | None = None,
    ) -> Redemption:
        async with self._services() as services:
            return await services.catalog.update_redemption_status(redemption_id, status, notes)

    # Activities

    async def notify(
        self,
        activity_name: str,
        user_id: UUID,
        context: Mapping[str, Any] | None = None,
    ) -> PointHistory | None:
        async with self._services() as services:
            return await services.router.notify(activity_name, user_id, context)

    # Stats

    async def get_dashboard(self, user_id: UUID) -> UserDashboard:
        async with self._services() as services:
            return await services.stats.get_dashboard(user_id)

    async def get_platform_stats(self) -> PlatformStats:
        async with self._services() as services:
            return await services.stats.get_platform_stats()


def build_engine(
    *,
    session_factory: SessionFactory | None = None,
    email_backend: EmailBackend | None = None,
    settings: Settings | None = None,
    configure_logs: bool = True,
) -> GamificationEngine:
    """Assemble the engine with its dedupe cache and sweeper from settings."""

    settings = settings or get_settings()
    if configure_logs:
        configure_logging(
            service_name=settings.service_name,
            environment=settings.environment,
            version=__version__,
            level=settings.log_level,
        )

    if session_factory is None:
        from kudos_api.db.session import async_session

        session_factory = async_session

    dedupe_cache = NotificationDedupeCache()
    sweeper = None
    if settings.notification_dedupe_sweeper_enabled:
        sweeper = NotificationDedupeSweeper(
            dedupe_cache,
            ttl_seconds=settings.notification_dedupe_ttl_seconds,
            interval_seconds=settings.notification_dedupe_sweep_interval_seconds,
        )
    else:
        logger.info(
            "Notification dedupe sweeper disabled",
            reason="notification_dedupe_sweeper_enabled is false",
        )

    return GamificationEngine(
        session_factory,
        email_backend=email_backend,
        dedupe_cache=dedupe_cache,
        sweeper=sweeper,
    )


__all__ = ["GamificationEngine", "build_engine"]
