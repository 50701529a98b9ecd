import pytest
from sqlalchemy import func, select

from kudos_api.db.unit_of_work import UnitOfWork
from kudos_api.models.user import User


@pytest.mark.asyncio
async def test_hooks_run_after_commit(session_factory) -> None:
    calls: list[str] = []

    async with session_factory() as session:
        async with UnitOfWork(session) as uow:
            session.add(User(email="hooked@example.com", full_name="Hooked"))

            async def _hook() -> None:
                count = (await session.execute(select(func.count(User.id)))).scalar_one()
                calls.append(f"users={count}")

            uow.after_commit(_hook)

    assert calls == ["users=1"]


@pytest.mark.asyncio
async def test_rollback_discards_changes_and_hooks(session_factory) -> None:
    calls: list[str] = []

    async with session_factory() as session:
        with pytest.raises(RuntimeError):
            async with UnitOfWork(session) as uow:
                session.add(User(email="ghost@example.com", full_name="Ghost"))
                await session.flush()

                async def _hook() -> None:
                    calls.append("ran")

                uow.after_commit(_hook)
                raise RuntimeError("abort")

        count = (await session.execute(select(func.count(User.id)))).scalar_one()

    assert count == 0
    assert calls == []


@pytest.mark.asyncio
async def test_failing_hook_is_swallowed(session_factory) -> None:
    calls: list[str] = []

    async with session_factory() as session:
        async with UnitOfWork(session) as uow:
            session.add(User(email="kept@example.com", full_name="Kept"))

            async def _broken() -> None:
                raise ValueError("mail server down")

            async def _after() -> None:
                calls.append("after")

            uow.after_commit(_broken, label="broken")
            uow.after_commit(_after)

        count = (await session.execute(select(func.count(User.id)))).scalar_one()

    assert count == 1
    assert calls == ["after"]
