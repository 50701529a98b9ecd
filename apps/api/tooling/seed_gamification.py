"""Seed badge definitions and the reward catalog into the API database."""

from __future__ import annotations

import asyncio
from typing import Any, TypedDict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from kudos_api.core.settings import settings
from kudos_api.domain.gamification import parse_criteria
from kudos_api.models.gamification import Badge, Reward


class SeedBadge(TypedDict):
    type: str
    name: str
    description: str
    category: str
    required_count: int
    criteria_config: dict[str, Any]


class SeedReward(TypedDict):
    title: str
    description: str
    points_required: int
    category: str
    partner: str | None
    quantity: int


BADGES: list[SeedBadge] = [
    {
        "type": "FIRST_FACE",
        "name": "First Face",
        "description": "Attended your first event",
        "category": "Events",
        "required_count": 1,
        "criteria_config": {"type": "event_attendance", "condition": "total_events_attended", "count": 1},
    },
    {
        "type": "CAFE_FRIEND",
        "name": "Cafe Friend",
        "description": "Joined five cafe meetups",
        "category": "Events",
        "required_count": 5,
        "criteria_config": {
            "type": "event_attendance",
            "condition": "event_type_count",
            "eventType": "CAFE_MEETUP",
            "count": 5,
        },
    },
    {
        "type": "EXPLORER",
        "name": "Explorer",
        "description": "Checked in at events in five different places",
        "category": "Travel",
        "required_count": 5,
        "criteria_config": {"type": "event_attendance", "condition": "unique_locations", "count": 5},
    },
    {
        "type": "CONNECTOR",
        "name": "Connector",
        "description": "You're good at connecting people",
        "category": "Social",
        "required_count": 10,
        "criteria_config": {"type": "connection", "condition": "accepted_connections", "count": 10},
    },
    {
        "type": "AMBASSADOR",
        "name": "Ambassador",
        "description": "Brought three friends who stuck around",
        "category": "Referrals",
        "required_count": 3,
        "criteria_config": {"type": "referral", "condition": "activated_referrals", "count": 3},
    },
    {
        "type": "HOST_MASTER",
        "name": "Host Master",
        "description": "You organize great events",
        "category": "Events",
        "required_count": 5,
        "criteria_config": {"type": "event_hosting", "condition": "events_hosted", "count": 5},
    },
    {
        "type": "REGULAR",
        "name": "Regular",
        "description": "Showed up four weeks in a row",
        "category": "Streaks",
        "required_count": 4,
        "criteria_config": {"type": "streak", "condition": "consecutive_weeks", "weeks": 4},
    },
    {
        "type": "KIND_SOUL",
        "name": "Kind Soul",
        "description": "Gave ten warm trust moments",
        "category": "Trust",
        "required_count": 10,
        "criteria_config": {
            "type": "trust_moment",
            "condition": "positive_ratings_given",
            "minRating": 4,
            "count": 10,
        },
    },
    {
        "type": "TOPIC_MASTER",
        "name": "Topic Master",
        "description": "Shared feedback on twenty card game topics",
        "category": "Card Game",
        "required_count": 20,
        "criteria_config": {"type": "engagement", "condition": "feedback_submitted", "count": 20},
    },
    {
        "type": "COLLECTOR",
        "name": "Collector",
        "description": "Earned five other badges",
        "category": "Achievements",
        "required_count": 5,
        "criteria_config": {"type": "meta", "condition": "badges_earned", "count": 5},
    },
]

REWARDS: list[SeedReward] = [
    {
        "title": "Free coffee",
        "description": "One drink at any partner cafe",
        "points_required": 50,
        "category": "Food & Drink",
        "partner": "Partner Cafes",
        "quantity": 100,
    },
    {
        "title": "Event ticket discount",
        "description": "20% off your next paid event",
        "points_required": 150,
        "category": "Events",
        "partner": None,
        "quantity": 50,
    },
    {
        "title": "Community tote bag",
        "description": "Limited edition merchandise",
        "points_required": 300,
        "category": "Merchandise",
        "partner": None,
        "quantity": 20,
    },
]


async def seed_badges(session: AsyncSession) -> None:
    for badge in BADGES:
        if parse_criteria(badge["criteria_config"], badge_type=badge["type"]) is None:
            raise ValueError(f"Seed badge {badge['type']} has an invalid criteria config")
        with session.no_autoflush:
            existing = await session.execute(select(Badge).where(Badge.type == badge["type"]))
        record = existing.scalar_one_or_none()

        if record:
            record.name = badge["name"]
            record.description = badge["description"]
            record.category = badge["category"]
            record.required_count = badge["required_count"]
            record.criteria_config = badge["criteria_config"]
            record.is_active = True
        else:
            session.add(Badge(is_active=True, **badge))
    await session.commit()


async def seed_rewards(session: AsyncSession) -> None:
    for reward in REWARDS:
        with session.no_autoflush:
            existing = await session.execute(select(Reward).where(Reward.title == reward["title"]))
        record = existing.scalar_one_or_none()

        if record:
            record.description = reward["description"]
            record.points_required = reward["points_required"]
            record.category = reward["category"]
            record.partner = reward["partner"]
            record.quantity = max(record.quantity, reward["quantity"])
            record.is_active = True
        else:
            session.add(Reward(is_active=True, **reward))
    await session.commit()


async def main() -> None:
    engine = create_async_engine(settings.database_url, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        async with session_factory() as session:
            await seed_badges(session)
            await seed_rewards(session)
        print(f"Seeded {len(BADGES)} badges and {len(REWARDS)} rewards")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
