"""Exactly-once badge awarding."""

from __future__ import annotations

from uuid import UUID

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.db.unit_of_work import UnitOfWork
from kudos_api.models.gamification import Badge, UserBadge
from kudos_api.services.errors import BadgeNotFoundError
from kudos_api.services.notifications import NotificationService


class BadgeAwarder:
    """Records earned badges and schedules the achievement notice after commit.

    The ``uq_user_badges_user_badge`` constraint is the final guard: a
    concurrent insert that loses the race is rolled back and reported as a
    no-op rather than an error.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        notifications: NotificationService | None = None,
    ) -> None:
        self._db = db_session
        self._notifications = notifications

    async def award(self, user_id: UUID, badge_type: str) -> UserBadge | None:
        """Award ``badge_type``; returns the new row, or ``None`` if already held."""

        badge = await self._get_badge(badge_type)
        return await self.award_badge(user_id, badge.id, badge.name)

    async def award_badge(self, user_id: UUID, badge_id: UUID, badge_name: str) -> UserBadge | None:
        uow = UnitOfWork(self._db)
        try:
            async with uow:
                existing = await self._db.execute(
                    select(UserBadge.id).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
                )
                if existing.scalar_one_or_none() is not None:
                    return None

                user_badge = UserBadge(user_id=user_id, badge_id=badge_id)
                self._db.add(user_badge)
                await self._db.flush()
                award_id = user_badge.id

                if self._notifications is not None:
                    notifications = self._notifications

                    async def _notify() -> None:
                        await notifications.send_achievement_notification(
                            user_id,
                            "New badge earned!",
                            f"Congratulations! You've earned the {badge_name} badge",
                            badge_id,
                            award_id=award_id,
                        )

                    uow.after_commit(_notify, label="achievement_notification")
        except IntegrityError:
            logger.warning(
                "Detected race when awarding badge",
                user_id=str(user_id),
                badge_id=str(badge_id),
            )
            return None

        logger.info("Awarded badge", user_id=str(user_id), badge_id=str(badge_id), badge=badge_name)
        return user_badge

    async def revoke(self, user_id: UUID, badge_id: UUID) -> bool:
        """Delete an earned badge; ``False`` when the user did not hold it."""

        async with UnitOfWork(self._db):
            result = await self._db.execute(
                delete(UserBadge)
                .where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
                .execution_options(synchronize_session=False)
            )
        revoked = bool(result.rowcount)
        logger.info("Revoked badge", user_id=str(user_id), badge_id=str(badge_id), revoked=revoked)
        return revoked

    async def _get_badge(self, badge_type: str) -> Badge:
        result = await self._db.execute(select(Badge).where(Badge.type == badge_type))
        badge = result.scalar_one_or_none()
        if badge is None:
            raise BadgeNotFoundError(badge_type)
        return badge


__all__ = ["BadgeAwarder"]
