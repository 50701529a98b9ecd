from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from conftest import create_badge, create_user
from kudos_api.models.activity import (
    ConnectionStatus,
    EventAttendance,
    HostedEvent,
    Referral,
    TopicFeedback,
    TrustMoment,
    UserConnection,
)
from kudos_api.models.gamification import UserBadge
from kudos_api.services.badges import BadgeCriteriaEvaluator

NOW = datetime(2026, 10, 21, 12, tzinfo=timezone.utc)


def _clock() -> datetime:
    return NOW


def _attendance(user_id, *, event_type=None, location=None, checked_in_at=None) -> EventAttendance:
    return EventAttendance(
        user_id=user_id,
        event_id=uuid4(),
        event_type=event_type,
        location=location,
        checked_in_at=checked_in_at or NOW - timedelta(days=1),
    )


async def _earned_count(session, user_id) -> int:
    result = await session.execute(select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_event_attendance_families(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "attendee@example.com")
        await create_badge(
            session,
            "FIRST_FACE",
            {"type": "event_attendance", "condition": "total_events_attended", "count": 1},
        )
        await create_badge(
            session,
            "CAFE_FRIEND",
            {"type": "event_attendance", "condition": "event_type_count", "eventType": "CAFE_MEETUP", "count": 2},
        )
        await create_badge(
            session,
            "EXPLORER",
            {"type": "event_attendance", "condition": "unique_locations", "count": 3},
        )
        session.add_all(
            [
                _attendance(user.id, event_type="CAFE_MEETUP", location="Kuala Lumpur"),
                _attendance(user.id, event_type="CAFE_MEETUP", location="Kuala Lumpur"),
                _attendance(user.id, event_type="TRIP", location="Penang"),
            ]
        )
        await session.commit()

        awarded = await BadgeCriteriaEvaluator(session, clock=_clock).evaluate(user.id)

        assert sorted(awarded) == ["CAFE_FRIEND", "FIRST_FACE"]


@pytest.mark.asyncio
async def test_social_families(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "social@example.com")
        friend = await create_user(session, "friend@example.com")
        other = await create_user(session, "other@example.com")
        await create_badge(session, "CONNECTOR", {"type": "connection", "condition": "accepted_connections"}, required_count=2)
        await create_badge(session, "AMBASSADOR", {"type": "referral", "condition": "activated_referrals", "count": 1})
        await create_badge(session, "HOST", {"type": "event_hosting", "condition": "events_hosted", "count": 1})
        session.add_all(
            [
                UserConnection(initiator_id=user.id, receiver_id=friend.id, status=ConnectionStatus.ACCEPTED.value),
                UserConnection(initiator_id=other.id, receiver_id=user.id, status=ConnectionStatus.ACCEPTED.value),
                UserConnection(initiator_id=user.id, receiver_id=uuid4(), status=ConnectionStatus.PENDING.value),
                Referral(referrer_id=user.id, referee_id=friend.id, is_activated=False),
            ]
        )
        await session.commit()

        evaluator = BadgeCriteriaEvaluator(session, clock=_clock)
        assert await evaluator.evaluate(user.id) == ["CONNECTOR"]

        session.add_all(
            [
                Referral(referrer_id=user.id, referee_id=other.id, is_activated=True, activated_at=NOW),
                HostedEvent(host_id=user.id, title="Board games night"),
            ]
        )
        await session.commit()

        assert sorted(await evaluator.evaluate(user.id)) == ["AMBASSADOR", "HOST"]
        assert await evaluator.evaluate(user.id) == []


@pytest.mark.asyncio
async def test_trust_engagement_and_meta_families(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "kind@example.com")
        peer = await create_user(session, "peer@example.com")
        await create_badge(
            session,
            "KIND_SOUL",
            {"type": "trust_moment", "condition": "positive_ratings_given", "minRating": 5, "count": 2},
        )
        await create_badge(session, "WARM", {"type": "trust_moment", "condition": "positive_ratings_given", "count": 3})
        await create_badge(session, "TOPIC_FAN", {"type": "engagement", "condition": "feedback_submitted", "count": 2})
        await create_badge(session, "COLLECTOR", {"type": "meta", "condition": "badges_earned", "count": 2})
        session.add_all(
            [
                TrustMoment(giver_id=user.id, receiver_id=peer.id, rating=5),
                TrustMoment(giver_id=user.id, receiver_id=peer.id, rating=5),
                TrustMoment(giver_id=user.id, receiver_id=peer.id, rating=4),
                TrustMoment(giver_id=user.id, receiver_id=peer.id, rating=2),
                TopicFeedback(user_id=user.id, topic_id="travel"),
                TopicFeedback(user_id=user.id, topic_id="food"),
            ]
        )
        await session.commit()

        evaluator = BadgeCriteriaEvaluator(session, clock=_clock)
        first = await evaluator.evaluate(user.id)
        assert sorted(first) == ["KIND_SOUL", "TOPIC_FAN", "WARM"]

        # COLLECTOR sorts first, so it only sees the other badges on the next pass.
        assert await evaluator.evaluate(user.id) == ["COLLECTOR"]


@pytest.mark.asyncio
async def test_streak_family_uses_recent_window(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "regular@example.com")
        lapsed = await create_user(session, "lapsed@example.com")
        await create_badge(session, "REGULAR", {"type": "streak", "condition": "consecutive_weeks", "weeks": 3})

        this_week = date.fromisocalendar(*NOW.isocalendar()[:2], 1)
        for offset in (0, 1, 2):
            monday = this_week - timedelta(weeks=offset)
            session.add(
                _attendance(user.id, checked_in_at=datetime.combine(monday, datetime.min.time(), tzinfo=timezone.utc) + timedelta(days=2))
            )
        for offset in (20, 21, 22):
            session.add(_attendance(lapsed.id, checked_in_at=NOW - timedelta(weeks=offset)))
        await session.commit()

        evaluator = BadgeCriteriaEvaluator(session, clock=_clock)
        assert await evaluator.evaluate(user.id) == ["REGULAR"]
        assert await evaluator.evaluate(lapsed.id) == []


@pytest.mark.asyncio
async def test_unknown_criteria_never_award_and_report_zero_progress(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "explorer@example.com")
        await create_badge(
            session,
            "GLOBETROTTER",
            {"type": "travel_countries", "minCountries": 5, "requiresLogbook": True},
            required_count=5,
        )
        session.add_all([_attendance(user.id, location=f"City {index}") for index in range(6)])
        await session.commit()

        evaluator = BadgeCriteriaEvaluator(session, clock=_clock)
        assert await evaluator.evaluate(user.id) == []
        assert await _earned_count(session, user.id) == 0

        [progress] = await evaluator.get_badge_progress(user.id)
        assert progress.current == 0
        assert progress.required == 5
        assert progress.percentage == 0
        assert progress.is_earned is False


@pytest.mark.asyncio
async def test_progress_agrees_with_evaluation(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "progress@example.com")
        await create_badge(
            session,
            "FIVE_EVENTS",
            {"type": "event_attendance", "condition": "total_events_attended", "count": 5},
        )
        await create_badge(
            session,
            "TWO_EVENTS",
            {"type": "event_attendance", "condition": "total_events_attended", "count": 2},
        )
        session.add_all([_attendance(user.id) for _ in range(3)])
        await session.commit()

        evaluator = BadgeCriteriaEvaluator(session, clock=_clock)
        before = {item.badge.type: item for item in await evaluator.get_badge_progress(user.id)}
        assert before["FIVE_EVENTS"].current == 3
        assert before["FIVE_EVENTS"].percentage == 60.0
        assert before["FIVE_EVENTS"].is_earned is False
        assert before["TWO_EVENTS"].is_earned is True
        assert before["TWO_EVENTS"].percentage == 100.0

        awarded = await evaluator.evaluate(user.id)
        assert awarded == [badge for badge, item in before.items() if item.is_earned]

        after = {item.badge.type: item for item in await evaluator.get_badge_progress(user.id)}
        assert after["TWO_EVENTS"].earned_at is not None
        assert after["FIVE_EVENTS"].earned_at is None


@pytest.mark.asyncio
async def test_inactive_badges_are_skipped(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "inactive@example.com")
        await create_badge(
            session,
            "RETIRED",
            {"type": "event_attendance", "condition": "total_events_attended", "count": 1},
            is_active=False,
        )
        session.add(_attendance(user.id))
        await session.commit()

        evaluator = BadgeCriteriaEvaluator(session, clock=_clock)
        assert await evaluator.evaluate(user.id) == []
        assert await evaluator.get_badge_progress(user.id) == []
