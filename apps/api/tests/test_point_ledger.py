import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from conftest import create_user
from kudos_api.domain.gamification import PointAction, list_point_actions, points_for
from kudos_api.models.gamification import PointHistory
from kudos_api.models.user import User
from kudos_api.services.errors import InsufficientBalanceError, UserNotFoundError
from kudos_api.services.points import PointLedger


async def _balance_and_history_sum(session, user_id):
    balance = (await session.execute(select(User.total_points).where(User.id == user_id))).scalar_one()
    history = (
        await session.execute(
            select(func.coalesce(func.sum(PointHistory.points), 0)).where(PointHistory.user_id == user_id)
        )
    ).scalar_one()
    return balance, history


@pytest.mark.asyncio
async def test_award_credits_balance_and_appends_history(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "ledger@example.com")
        ledger = PointLedger(session)

        entry = await ledger.award(user.id, PointAction.ATTEND_EVENT, "Attended: Sunday picnic")

        assert entry is not None
        assert entry.points == 10
        assert entry.action == "ATTEND_EVENT"
        assert entry.description == "Attended: Sunday picnic"
        assert await ledger.get_balance(user.id) == 10


@pytest.mark.asyncio
async def test_award_uses_action_description_by_default(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "default@example.com")
        entry = await PointLedger(session).award(user.id, "register")

        assert entry is not None
        assert entry.action == "REGISTER"
        assert entry.description == "Welcome bonus for new users"


@pytest.mark.asyncio
async def test_balance_matches_history_after_mixed_operations(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "conservation@example.com")
        ledger = PointLedger(session)

        await ledger.award(user.id, PointAction.HOST_EVENT)
        await ledger.award(user.id, PointAction.REGISTER)
        await ledger.deduct(user.id, 7, "Redeemed: sticker")
        await ledger.award(user.id, PointAction.CANCEL_RSVP)

    async with session_factory() as session:
        balance, history = await _balance_and_history_sum(session, user.id)
        assert balance == 15 + 5 - 7 - 1
        assert balance == history


@pytest.mark.asyncio
async def test_deduct_rejects_overdraw_without_touching_state(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "overdraw@example.com", total_points=10)
        user_id = user.id
        session.add(PointHistory(user_id=user_id, points=10, action="REGISTER"))
        await session.commit()
        ledger = PointLedger(session)

        with pytest.raises(InsufficientBalanceError) as excinfo:
            await ledger.deduct(user_id, 11, "Too much")

        assert excinfo.value.requested == 11
        assert excinfo.value.available == 10

    async with session_factory() as session:
        balance, history = await _balance_and_history_sum(session, user_id)
        assert balance == 10
        assert history == 10
        count = (await session.execute(select(func.count(PointHistory.id)))).scalar_one()
        assert count == 1


@pytest.mark.asyncio
async def test_concurrent_awards_and_deductions_keep_history_in_step(file_session_factory) -> None:
    async with file_session_factory() as session:
        user = await create_user(session, "busy@example.com", total_points=100)
        user_id = user.id
        session.add(PointHistory(user_id=user_id, points=100, action="REGISTER"))
        await session.commit()

    async def _award():
        async with file_session_factory() as session:
            return await PointLedger(session).award(user_id, PointAction.HOST_EVENT)

    async def _deduct():
        async with file_session_factory() as session:
            return await PointLedger(session).deduct(user_id, 5, "Redeemed: sticker")

    entries = await asyncio.gather(*[_award() for _ in range(10)], *[_deduct() for _ in range(10)])

    assert all(entry is not None for entry in entries)
    async with file_session_factory() as session:
        balance, history = await _balance_and_history_sum(session, user_id)
        count = (await session.execute(select(func.count(PointHistory.id)))).scalar_one()

    assert balance == 100 + 10 * 15 - 10 * 5
    assert balance == history
    assert count == 21


@pytest.mark.asyncio
async def test_deduct_requires_positive_amount(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "zero@example.com", total_points=5)
        with pytest.raises(ValueError):
            await PointLedger(session).deduct(user.id, 0, "Nothing")


@pytest.mark.asyncio
async def test_deduct_records_negative_redemption_entry(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "spender@example.com", total_points=40)
        entry = await PointLedger(session).deduct(user.id, 25, "Redeemed: Coffee")

        assert entry.points == -25
        assert entry.action == "REDEMPTION"

    async with session_factory() as session:
        balance = (await session.execute(select(User.total_points).where(User.id == user.id))).scalar_one()
        assert balance == 15


@pytest.mark.asyncio
async def test_unknown_action_is_ignored(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "unknown@example.com")
        ledger = PointLedger(session)

        assert await ledger.award(user.id, "NOT_A_REAL_ACTION") is None
        assert await ledger.get_balance(user.id) == 0
        page = await ledger.get_history(user.id)
        assert page.total == 0


@pytest.mark.asyncio
async def test_zero_point_action_writes_nothing(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "connector@example.com")
        ledger = PointLedger(session)

        assert await ledger.award(user.id, PointAction.MAKE_CONNECTION) is None
        assert (await ledger.get_history(user.id)).total == 0


@pytest.mark.asyncio
async def test_penalty_is_clamped_to_available_balance(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "spammer@example.com", total_points=8)
        ledger = PointLedger(session)

        entry = await ledger.award(user.id, PointAction.SPAM_DETECTED)
        assert entry is not None
        assert entry.points == -8
        assert await ledger.get_balance(user.id) == 0

        assert await ledger.award(user.id, PointAction.SPAM_DETECTED) is None
        assert (await ledger.get_history(user.id)).total == 1


@pytest.mark.asyncio
async def test_award_for_missing_user_raises(session_factory) -> None:
    async with session_factory() as session:
        ledger = PointLedger(session)
        with pytest.raises(UserNotFoundError):
            await ledger.award(uuid4(), PointAction.REGISTER)
        with pytest.raises(UserNotFoundError):
            await ledger.get_balance(uuid4())

        count = (await session.execute(select(func.count(PointHistory.id)))).scalar_one()
        assert count == 0


@pytest.mark.asyncio
async def test_history_pagination(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "history@example.com")
        ledger = PointLedger(session)
        for _ in range(5):
            await ledger.award(user.id, PointAction.RSVP_EVENT)

        first = await ledger.get_history(user.id, page=1, page_size=2)
        second = await ledger.get_history(user.id, page=2, page_size=2)
        third = await ledger.get_history(user.id, page=3, page_size=2)

        assert first.total == 5
        assert first.total_pages == 3
        assert [len(first.entries), len(second.entries), len(third.entries)] == [2, 2, 1]
        ids = {entry.id for page in (first, second, third) for entry in page.entries}
        assert len(ids) == 5
        assert first.entries[0].created_at >= first.entries[1].created_at


@pytest.mark.asyncio
async def test_history_page_size_is_capped(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session, "capped@example.com")
        page = await PointLedger(session).get_history(user.id, page=0, page_size=10_000)

        assert page.page == 1
        assert page.page_size == 100


def test_point_action_catalog() -> None:
    actions = {info.action: info for info in list_point_actions()}

    assert actions[PointAction.REGISTER].points == 5
    assert actions[PointAction.REGISTER].category == "Profile"
    assert actions[PointAction.SPAM_DETECTED].category == "Penalties"
    assert PointAction.REDEMPTION not in actions
    assert points_for("attend_event") == 10
    assert points_for("nope") == 0
