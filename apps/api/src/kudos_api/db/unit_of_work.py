"""Transactional unit of work with post-commit side effects."""

from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

PostCommitHook = Callable[[], Awaitable[None]]


class UnitOfWork:
    """Commit-or-rollback scope over an ``AsyncSession``.

    Hooks registered through :meth:`after_commit` run only once the commit
    has succeeded. A failing hook is logged and never surfaces to the caller;
    a rolled back unit discards its hooks.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._hooks: list[tuple[str, PostCommitHook]] = []

    @property
    def session(self) -> AsyncSession:
        return self._db

    def after_commit(self, hook: PostCommitHook, *, label: str = "post_commit") -> None:
        self._hooks.append((label, hook))

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._hooks.clear()
            await self._db.rollback()
            return False

        try:
            await self._db.commit()
        except Exception:
            self._hooks.clear()
            await self._db.rollback()
            raise

        await self._run_hooks()
        return False

    async def _run_hooks(self) -> None:
        hooks, self._hooks = self._hooks, []
        for label, hook in hooks:
            try:
                await hook()
            except Exception:
                logger.exception("Post-commit hook failed", hook=label)


__all__ = ["PostCommitHook", "UnitOfWork"]
