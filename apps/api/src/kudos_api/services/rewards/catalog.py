"""Reward catalog reads, redemption and redemption moderation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kudos_api.db.unit_of_work import UnitOfWork
from kudos_api.models.gamification import Redemption, RedemptionStatus, Reward
from kudos_api.services.errors import (
    InsufficientBalanceError,
    InvalidRedemptionStatusError,
    RedemptionNotFoundError,
    RewardNotFoundError,
    RewardUnavailableError,
)
from kudos_api.services.notifications import NotificationService
from kudos_api.services.points import PointLedger

_MODERATION_OUTCOMES = {RedemptionStatus.APPROVED, RedemptionStatus.REJECTED}


@dataclass(slots=True)
class RewardListing:
    rewards: list[Reward]
    total: int
    user_points: int | None = None


class RewardCatalog:
    """Catalog queries plus the redemption workflow.

    A redemption deducts the points, records a PENDING ``Redemption`` and
    takes one unit of stock inside a single unit of work. The stock update
    is conditional on the reward still being active and in stock, so a
    concurrent redemption of the last unit rolls the whole unit back.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        ledger: PointLedger | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self._db = db_session
        self._ledger = ledger or PointLedger(db_session)
        self._notifications = notifications

    async def list_rewards(
        self,
        *,
        category: str | None = None,
        min_points: int | None = None,
        max_points: int | None = None,
        can_afford_for_user: UUID | None = None,
    ) -> RewardListing:
        """Active, in-stock rewards ordered by ascending cost."""

        conditions = [Reward.is_active.is_(True), Reward.quantity > 0]
        if category:
            conditions.append(Reward.category == category)
        if min_points is not None:
            conditions.append(Reward.points_required >= min_points)
        if max_points is not None:
            conditions.append(Reward.points_required <= max_points)

        user_points: int | None = None
        if can_afford_for_user is not None:
            user_points = await self._ledger.get_balance(can_afford_for_user)
            conditions.append(Reward.points_required <= user_points)

        result = await self._db.execute(
            select(Reward).where(*conditions).order_by(Reward.points_required.asc(), Reward.title.asc())
        )
        rewards = list(result.scalars().all())
        return RewardListing(rewards=rewards, total=len(rewards), user_points=user_points)

    async def get_reward(self, reward_id: UUID) -> Reward:
        result = await self._db.execute(
            select(Reward).where(Reward.id == reward_id).execution_options(populate_existing=True)
        )
        reward = result.scalar_one_or_none()
        if reward is None:
            raise RewardNotFoundError(reward_id)
        return reward

    async def list_reward_categories(self) -> list[str]:
        result = await self._db.execute(
            select(Reward.category).where(Reward.is_active.is_(True)).distinct().order_by(Reward.category)
        )
        return list(result.scalars().all())

    async def count_available(self, *, max_points: int | None = None) -> int:
        stmt = select(func.count(Reward.id)).where(Reward.is_active.is_(True), Reward.quantity > 0)
        if max_points is not None:
            stmt = stmt.where(Reward.points_required <= max_points)
        return int((await self._db.execute(stmt)).scalar_one())

    async def redeem(self, user_id: UUID, reward_id: UUID) -> Redemption:
        reward = await self.get_reward(reward_id)
        if not reward.is_active or reward.quantity <= 0:
            raise RewardUnavailableError(reward_id)
        title, cost = reward.title, int(reward.points_required)

        balance = await self._ledger.get_balance(user_id)
        if balance < cost:
            raise InsufficientBalanceError(user_id, cost, balance)

        uow = UnitOfWork(self._db)
        async with uow:
            if cost > 0:
                await self._ledger.apply_deduction(user_id, cost, f"Redeemed: {title}")

            redemption = Redemption(
                user_id=user_id,
                reward_id=reward_id,
                status=RedemptionStatus.PENDING,
                points_spent=cost,
            )
            self._db.add(redemption)

            stock = await self._db.execute(
                update(Reward)
                .where(Reward.id == reward_id, Reward.is_active.is_(True), Reward.quantity > 0)
                .values(quantity=Reward.quantity - 1)
                .execution_options(synchronize_session=False)
            )
            if stock.rowcount == 0:
                raise RewardUnavailableError(reward_id)
            await self._db.flush()

            if self._notifications is not None:
                notifications = self._notifications

                async def _notify() -> None:
                    await notifications.send_redemption_notification(user_id, title, cost)

                uow.after_commit(_notify, label="redemption_notification")

        logger.info(
            "Redeemed reward",
            user_id=str(user_id),
            reward_id=str(reward_id),
            redemption_id=str(redemption.id),
            points=cost,
        )
        return redemption

    async def list_user_redemptions(self, user_id: UUID) -> list[Redemption]:
        result = await self._db.execute(
            select(Redemption)
            .options(selectinload(Redemption.reward))
            .where(Redemption.user_id == user_id)
            .order_by(Redemption.redeemed_at.desc())
        )
        return list(result.scalars().all())

    async def get_redemption(self, redemption_id: UUID) -> Redemption:
        result = await self._db.execute(
            select(Redemption)
            .options(selectinload(Redemption.reward))
            .where(Redemption.id == redemption_id)
            .execution_options(populate_existing=True)
        )
        redemption = result.scalar_one_or_none()
        if redemption is None:
            raise RedemptionNotFoundError(redemption_id)
        return redemption

    async def update_redemption_status(
        self,
        redemption_id: UUID,
        status: RedemptionStatus | str,
        notes: str | None = None,
    ) -> Redemption:
        """Moderate a PENDING redemption to APPROVED or REJECTED."""

        requested = RedemptionStatus(status)
        redemption = await self.get_redemption(redemption_id)
        current = RedemptionStatus(redemption.status)
        if requested not in _MODERATION_OUTCOMES or current is not RedemptionStatus.PENDING:
            raise InvalidRedemptionStatusError(current.value, requested.value)

        async with UnitOfWork(self._db):
            result = await self._db.execute(
                update(Redemption)
                .where(Redemption.id == redemption_id, Redemption.status == RedemptionStatus.PENDING)
                .values(status=requested, notes=notes, processed_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidRedemptionStatusError("processed", requested.value)

        logger.info(
            "Moderated redemption",
            redemption_id=str(redemption_id),
            status=requested.value,
        )
        return await self.get_redemption(redemption_id)


__all__ = ["RewardCatalog", "RewardListing"]
