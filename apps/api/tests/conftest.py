from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

import kudos_api.models  # noqa: F401
from kudos_api.db.base import Base
from kudos_api.models.gamification import Badge, Reward
from kudos_api.models.user import User


async def _factory_for(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    factory = await _factory_for(engine)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Separate connections per session, for tests that race two writers."""

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'kudos.db'}",
        future=True,
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    factory = await _factory_for(engine)

    try:
        yield factory
    finally:
        await engine.dispose()


async def create_user(session: AsyncSession, email: str, **overrides: Any) -> User:
    values = {"full_name": email.split("@")[0].title(), "total_points": 0}
    values.update(overrides)
    user = User(email=email, **values)
    session.add(user)
    await session.commit()
    return user


async def create_badge(
    session: AsyncSession,
    badge_type: str,
    criteria_config: Any,
    *,
    required_count: int = 1,
    **overrides: Any,
) -> Badge:
    badge = Badge(
        type=badge_type,
        name=overrides.pop("name", badge_type.replace("_", " ").title()),
        criteria_config=criteria_config,
        required_count=required_count,
        **overrides,
    )
    session.add(badge)
    await session.commit()
    return badge


async def create_reward(session: AsyncSession, title: str, points_required: int, quantity: int, **overrides: Any) -> Reward:
    reward = Reward(
        title=title,
        points_required=points_required,
        quantity=quantity,
        category=overrides.pop("category", "General"),
        **overrides,
    )
    session.add(reward)
    await session.commit()
    return reward


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)
