"""High-level notification service for gamification events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_api.core.settings import get_settings
from kudos_api.models.user import User

from .backend import EmailBackend, InMemoryEmailBackend, SMTPEmailBackend
from .dedupe import NotificationDedupeCache
from .templates import RenderedTemplate, render_achievement, render_redemption_confirmation


@dataclass
class NotificationEvent:
    """Representation of a notification that was sent."""

    recipient: str
    subject: str
    body_text: str
    body_html: str | None
    event_type: str
    metadata: dict[str, Any]


@dataclass
class _Contact:
    email: str
    display_name: Optional[str]


class NotificationService:
    """Coordinates notification delivery via pluggable backends.

    Achievement notices are de-duplicated per earned-badge row through the
    injected :class:`NotificationDedupeCache`. A badge that is revoked and
    earned again gets a new row and a new notice.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        backend: Optional[EmailBackend] = None,
        *,
        dedupe: NotificationDedupeCache | None = None,
    ) -> None:
        self._db = db_session
        self._backend = backend or self._build_default_backend()
        self._dedupe = dedupe
        self._events: list[NotificationEvent] = []

    @property
    def sent_events(self) -> list[NotificationEvent]:
        """Events sent during the lifetime of this service instance."""
        return list(self._events)

    def use_in_memory_backend(self) -> InMemoryEmailBackend:
        backend = InMemoryEmailBackend()
        self._backend = backend
        return backend

    async def send_achievement_notification(
        self,
        user_id: UUID,
        title: str,
        message: str,
        badge_id: UUID,
        *,
        award_id: UUID | None = None,
    ) -> bool:
        """Tell a user about a newly earned badge; ``False`` when nothing was sent."""

        key = ("achievement", str(user_id), str(badge_id), str(award_id) if award_id else None)
        if self._dedupe is not None and not self._dedupe.check_and_mark(key):
            logger.debug("Achievement notification already sent", user_id=str(user_id), badge_id=str(badge_id))
            return False

        contact = await self._resolve_user_contact(user_id)
        if contact is None:
            return False

        template = render_achievement(title, message, contact.display_name)
        metadata = {"user_id": str(user_id), "badge_id": str(badge_id), "title": title}
        return await self._deliver(contact, template, event_type="achievement", metadata=metadata)

    async def send_redemption_notification(
        self,
        user_id: UUID,
        reward_title: str,
        points_spent: int,
    ) -> bool:
        contact = await self._resolve_user_contact(user_id)
        if contact is None:
            return False

        template = render_redemption_confirmation(reward_title, points_spent, contact.display_name)
        metadata = {"user_id": str(user_id), "reward_title": reward_title, "points_spent": points_spent}
        return await self._deliver(contact, template, event_type="redemption", metadata=metadata)

    def _build_default_backend(self) -> Optional[EmailBackend]:
        settings = get_settings()
        if not settings.smtp_host or not settings.smtp_sender_email:
            return None

        return SMTPEmailBackend(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender_email=settings.smtp_sender_email,
        )

    async def _resolve_user_contact(self, user_id: UUID) -> Optional[_Contact]:
        stmt = select(User.email, User.full_name).where(User.id == user_id)
        row = (await self._db.execute(stmt)).one_or_none()
        if row is None or not row.email:
            logger.warning("Notification recipient not found", user_id=str(user_id))
            return None
        return _Contact(email=row.email, display_name=row.full_name)

    async def _deliver(
        self,
        contact: _Contact,
        template: RenderedTemplate,
        *,
        event_type: str,
        metadata: dict[str, Any],
    ) -> bool:
        """Send using active backend and record emitted event."""
        if self._backend is None:
            logger.debug("No notification backend configured", event_type=event_type)
            return False

        await self._backend.send_email(
            contact.email,
            template.subject,
            template.text_body,
            body_html=template.html_body,
        )
        self._events.append(
            NotificationEvent(
                recipient=contact.email,
                subject=template.subject,
                body_text=template.text_body,
                body_html=template.html_body,
                event_type=event_type,
                metadata=metadata,
            )
        )
        logger.info("Notification sent", event_type=event_type, **metadata)
        return True


__all__ = ["NotificationEvent", "NotificationService"]
