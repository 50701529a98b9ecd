from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from conftest import create_badge, create_user
from kudos_api.models.activity import ConnectionStatus, EventAttendance, Referral, UserConnection
from kudos_api.models.gamification import PointHistory, UserBadge
from kudos_api.models.user import UserStatusEnum
from kudos_api.services.leaderboard import LeaderboardDimension, LeaderboardRanker, LeaderboardTimeframe

NOW = datetime(2026, 10, 19, 9, tzinfo=timezone.utc)


def _clock() -> datetime:
    return NOW


@pytest.mark.asyncio
async def test_ties_share_lookup_rank_but_listing_is_sequential(session_factory) -> None:
    async with session_factory() as session:
        alice = await create_user(session, "alice@example.com", total_points=100)
        bob = await create_user(session, "bob@example.com", total_points=100)
        carol = await create_user(session, "carol@example.com", total_points=50)
        ranker = LeaderboardRanker(session, clock=_clock)

        assert await ranker.get_points_rank(alice.id) == 1
        assert await ranker.get_points_rank(bob.id) == 1
        assert await ranker.get_points_rank(carol.id) == 3

        page = await ranker.get_leaderboard(LeaderboardDimension.POINTS)
        assert [entry.rank for entry in page.entries] == [1, 2, 3]
        assert [entry.value for entry in page.entries] == [100, 100, 50]
        assert page.entries[2].user_id == carol.id
        assert {entry.user_id for entry in page.entries[:2]} == {alice.id, bob.id}
        assert page.total == 3


@pytest.mark.asyncio
async def test_inactive_users_are_excluded(session_factory) -> None:
    async with session_factory() as session:
        active = await create_user(session, "active@example.com", total_points=10)
        await create_user(
            session, "gone@example.com", total_points=500, status=UserStatusEnum.DEACTIVATED.value
        )
        await create_user(session, "deleted@example.com", total_points=400, deleted_at=NOW)
        ranker = LeaderboardRanker(session, clock=_clock)

        page = await ranker.get_leaderboard("points")
        assert [entry.user_id for entry in page.entries] == [active.id]
        assert await ranker.get_points_rank(active.id) == 1


@pytest.mark.asyncio
async def test_unknown_user_rank_is_zero(session_factory) -> None:
    async with session_factory() as session:
        await create_user(session, "someone@example.com", total_points=10)
        assert await LeaderboardRanker(session).get_points_rank(uuid4()) == 0


@pytest.mark.asyncio
async def test_pagination_continues_rank_numbers(session_factory) -> None:
    async with session_factory() as session:
        for index in range(5):
            await create_user(session, f"user{index}@example.com", total_points=100 - index * 10)
        ranker = LeaderboardRanker(session, clock=_clock)

        page = await ranker.get_leaderboard(LeaderboardDimension.POINTS, limit=2, offset=2)
        assert [entry.rank for entry in page.entries] == [3, 4]
        assert [entry.value for entry in page.entries] == [80, 70]
        assert page.total == 5


@pytest.mark.asyncio
async def test_trust_score_and_badge_boards(session_factory) -> None:
    async with session_factory() as session:
        trusted = await create_user(session, "trusted@example.com", trust_score=90)
        collector = await create_user(session, "collector@example.com", trust_score=40)
        first = await create_badge(session, "ONE", {"type": "meta", "condition": "badges_earned"})
        second = await create_badge(session, "TWO", {"type": "meta", "condition": "badges_earned"})
        session.add_all(
            [
                UserBadge(user_id=collector.id, badge_id=first.id),
                UserBadge(user_id=collector.id, badge_id=second.id),
                UserBadge(user_id=trusted.id, badge_id=first.id),
            ]
        )
        await session.commit()
        ranker = LeaderboardRanker(session, clock=_clock)

        trust = await ranker.get_leaderboard(LeaderboardDimension.TRUST_SCORE)
        assert [entry.user_id for entry in trust.entries] == [trusted.id, collector.id]
        assert await ranker.get_trust_score_rank(collector.id) == 2

        badges = await ranker.get_leaderboard(LeaderboardDimension.BADGES)
        assert [(entry.user_id, entry.value) for entry in badges.entries] == [(collector.id, 2), (trusted.id, 1)]
        assert await ranker.get_badges_rank(trusted.id) == 2


@pytest.mark.asyncio
async def test_connection_board_counts_both_sides(session_factory) -> None:
    async with session_factory() as session:
        hub = await create_user(session, "hub@example.com")
        left = await create_user(session, "left@example.com")
        right = await create_user(session, "right@example.com")
        session.add_all(
            [
                UserConnection(initiator_id=hub.id, receiver_id=left.id, status=ConnectionStatus.ACCEPTED.value),
                UserConnection(initiator_id=right.id, receiver_id=hub.id, status=ConnectionStatus.ACCEPTED.value),
                UserConnection(initiator_id=left.id, receiver_id=right.id, status=ConnectionStatus.PENDING.value),
            ]
        )
        await session.commit()

        page = await LeaderboardRanker(session, clock=_clock).get_leaderboard(LeaderboardDimension.CONNECTIONS)
        values = {entry.user_id: entry.value for entry in page.entries}
        assert values == {hub.id: 2, left.id: 1, right.id: 1}
        assert page.entries[0].user_id == hub.id


@pytest.mark.asyncio
async def test_event_and_referral_boards_respect_timeframe(session_factory) -> None:
    async with session_factory() as session:
        recent = await create_user(session, "recent@example.com")
        veteran = await create_user(session, "veteran@example.com")
        session.add_all(
            [
                EventAttendance(user_id=recent.id, event_id=uuid4(), checked_in_at=NOW - timedelta(days=2)),
                *[
                    EventAttendance(user_id=veteran.id, event_id=uuid4(), checked_in_at=NOW - timedelta(days=60 + day))
                    for day in range(3)
                ],
                Referral(referrer_id=veteran.id, is_activated=True, activated_at=NOW - timedelta(days=45)),
                Referral(referrer_id=recent.id, is_activated=True, activated_at=NOW - timedelta(days=3)),
                Referral(referrer_id=recent.id, is_activated=False),
            ]
        )
        await session.commit()
        ranker = LeaderboardRanker(session, clock=_clock)

        all_time = await ranker.get_leaderboard(LeaderboardDimension.EVENTS)
        assert [entry.user_id for entry in all_time.entries] == [veteran.id, recent.id]

        weekly = await ranker.get_leaderboard(LeaderboardDimension.EVENTS, timeframe=LeaderboardTimeframe.WEEKLY)
        assert [(entry.user_id, entry.value) for entry in weekly.entries] == [(recent.id, 1)]
        assert await ranker.get_user_rank("events", veteran.id, timeframe="weekly") == 2

        monthly = await ranker.get_leaderboard(LeaderboardDimension.REFERRALS, timeframe="monthly")
        assert [(entry.user_id, entry.value) for entry in monthly.entries] == [(recent.id, 1)]


@pytest.mark.asyncio
async def test_points_timeframe_sums_recent_earnings(session_factory) -> None:
    async with session_factory() as session:
        old_timer = await create_user(session, "old@example.com", total_points=500)
        newcomer = await create_user(session, "new@example.com", total_points=30)
        session.add_all(
            [
                PointHistory(user_id=old_timer.id, points=500, action="HOST_EVENT", created_at=NOW - timedelta(days=90)),
                PointHistory(user_id=newcomer.id, points=20, action="ATTEND_EVENT", created_at=NOW - timedelta(days=1)),
                PointHistory(user_id=newcomer.id, points=10, action="ATTEND_EVENT", created_at=NOW - timedelta(days=10)),
                PointHistory(user_id=newcomer.id, points=-5, action="CANCEL_RSVP", created_at=NOW - timedelta(days=1)),
            ]
        )
        await session.commit()
        ranker = LeaderboardRanker(session, clock=_clock)

        weekly = await ranker.get_leaderboard(LeaderboardDimension.POINTS, timeframe=LeaderboardTimeframe.WEEKLY)
        assert [(entry.user_id, entry.value) for entry in weekly.entries] == [(newcomer.id, 20)]

        monthly = await ranker.get_leaderboard(LeaderboardDimension.POINTS, timeframe=LeaderboardTimeframe.MONTHLY)
        assert [(entry.user_id, entry.value) for entry in monthly.entries] == [(newcomer.id, 30)]

        all_time = await ranker.get_leaderboard(LeaderboardDimension.POINTS)
        assert all_time.entries[0].user_id == old_timer.id


@pytest.mark.asyncio
async def test_limit_is_capped(session_factory) -> None:
    async with session_factory() as session:
        await create_user(session, "solo@example.com")
        page = await LeaderboardRanker(session).get_leaderboard(LeaderboardDimension.POINTS, limit=10_000)

        assert page.limit == 100
        assert len(page.entries) == 1
