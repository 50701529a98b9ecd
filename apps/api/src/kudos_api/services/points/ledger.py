"""Point ledger: user balances plus the append-only point history."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.core.settings import get_settings
from kudos_api.db.unit_of_work import UnitOfWork
from kudos_api.domain.gamification.point_actions import (
    POINT_VALUES,
    PointAction,
    describe_action,
    resolve_action,
)
from kudos_api.models.gamification import PointHistory
from kudos_api.models.user import User
from kudos_api.services.errors import InsufficientBalanceError, UserNotFoundError

_PENALTY_RETRIES = 3


@dataclass(slots=True)
class PointHistoryPage:
    """Newest-first page of ledger entries."""

    entries: list[PointHistory]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


class PointLedger:
    """Owns ``users.total_points`` and the matching ``point_history`` rows.

    Every mutation changes the balance with a single conditional ``UPDATE``
    and appends exactly one history row carrying the same signed amount, so
    the sum of a user's history always equals the balance.

    ``award`` and ``deduct`` run in their own unit of work. The ``apply_*``
    variants only flush, for callers composing a larger transaction.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def award(
        self,
        user_id: UUID,
        action: PointAction | str,
        description: str | None = None,
    ) -> PointHistory | None:
        """Apply the fixed amount for ``action``; ``None`` when nothing changed."""

        async with UnitOfWork(self._db):
            entry = await self.apply_award(user_id, action, description)
        return entry

    async def apply_award(
        self,
        user_id: UUID,
        action: PointAction | str,
        description: str | None = None,
    ) -> PointHistory | None:
        resolved = resolve_action(action)
        if resolved is None or resolved not in POINT_VALUES:
            logger.warning("Unknown point action ignored", user_id=str(user_id), action=str(action))
            return None

        points = POINT_VALUES[resolved]
        if points == 0:
            logger.debug("Point action carries no points", user_id=str(user_id), action=resolved.value)
            return None

        text = description or describe_action(resolved)
        if points > 0:
            await self._credit(user_id, points)
            applied = points
        else:
            applied = await self._apply_penalty(user_id, -points)
            if applied == 0:
                logger.info(
                    "Penalty skipped for empty balance",
                    user_id=str(user_id),
                    action=resolved.value,
                )
                return None

        entry = await self._append(user_id, applied, resolved.value, text)
        logger.info(
            "Awarded points",
            user_id=str(user_id),
            action=resolved.value,
            points=applied,
        )
        return entry

    async def deduct(self, user_id: UUID, points: int, description: str) -> PointHistory:
        """Remove ``points`` or raise :class:`InsufficientBalanceError` leaving state untouched."""

        async with UnitOfWork(self._db):
            entry = await self.apply_deduction(user_id, points, description)
        return entry

    async def apply_deduction(self, user_id: UUID, points: int, description: str) -> PointHistory:
        if points <= 0:
            raise ValueError("Deductions require a positive amount")

        stmt = (
            update(User)
            .where(User.id == user_id, User.total_points >= points)
            .values(total_points=User.total_points - points)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        if result.rowcount == 0:
            available = await self._read_balance(user_id)
            if available is None:
                raise UserNotFoundError(user_id)
            logger.info(
                "Rejected deduction for insufficient balance",
                user_id=str(user_id),
                requested=points,
                available=available,
            )
            raise InsufficientBalanceError(user_id, points, available)

        entry = await self._append(user_id, -points, PointAction.REDEMPTION.value, description)
        logger.info("Deducted points", user_id=str(user_id), points=points)
        return entry

    async def get_balance(self, user_id: UUID) -> int:
        balance = await self._read_balance(user_id)
        if balance is None:
            raise UserNotFoundError(user_id)
        return balance

    async def get_history(
        self,
        user_id: UUID,
        page: int = 1,
        page_size: int | None = None,
    ) -> PointHistoryPage:
        settings = get_settings()
        size = page_size or settings.point_history_page_size
        size = max(1, min(size, settings.point_history_max_page_size))
        page = max(1, page)

        total_stmt = select(func.count()).select_from(PointHistory).where(PointHistory.user_id == user_id)
        total = int((await self._db.execute(total_stmt)).scalar_one())

        stmt = (
            select(PointHistory)
            .where(PointHistory.user_id == user_id)
            .order_by(PointHistory.created_at.desc(), PointHistory.id.desc())
            .offset((page - 1) * size)
            .limit(size)
        )
        result = await self._db.execute(stmt)
        return PointHistoryPage(entries=list(result.scalars().all()), total=total, page=page, page_size=size)

    async def _credit(self, user_id: UUID, points: int) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(total_points=User.total_points + points)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        if result.rowcount == 0:
            raise UserNotFoundError(user_id)

    async def _apply_penalty(self, user_id: UUID, penalty: int) -> int:
        """Take up to ``penalty`` points without going below zero; returns the signed delta."""

        for _ in range(_PENALTY_RETRIES):
            available = await self._read_balance(user_id)
            if available is None:
                raise UserNotFoundError(user_id)
            amount = min(penalty, available)
            if amount == 0:
                return 0
            stmt = (
                update(User)
                .where(User.id == user_id, User.total_points >= amount)
                .values(total_points=User.total_points - amount)
                .execution_options(synchronize_session=False)
            )
            result = await self._db.execute(stmt)
            if result.rowcount:
                return -amount
        logger.warning("Penalty abandoned after concurrent balance changes", user_id=str(user_id))
        return 0

    async def _read_balance(self, user_id: UUID) -> int | None:
        result = await self._db.execute(select(User.total_points).where(User.id == user_id))
        value = result.scalar_one_or_none()
        return int(value) if value is not None else None

    async def _append(self, user_id: UUID, points: int, action: str, description: str | None) -> PointHistory:
        entry = PointHistory(user_id=user_id, points=points, action=action, description=description)
        self._db.add(entry)
        await self._db.flush()
        return entry


__all__ = ["PointHistoryPage", "PointLedger"]
