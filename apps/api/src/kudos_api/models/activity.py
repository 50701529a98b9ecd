"""Activity facts recorded by collaborating services.

The gamification engine only reads these tables: attendance, hosting,
connections, referrals, trust moments and feedback are written by the
event, social and card-game services that own them.
"""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, false, func
from sqlalchemy.dialects.postgresql import UUID

from kudos_api.db.base import Base


class EventAttendance(Base):
    """A confirmed check-in of a user at an event."""

    __tablename__ = "event_attendances"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_id = Column(UUID(as_uuid=True), nullable=False)
    event_type = Column(String(32), nullable=True)
    location = Column(String, nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class HostedEvent(Base):
    """An event organised by a user."""

    __tablename__ = "hosted_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    host_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    event_type = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ConnectionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class UserConnection(Base):
    """Connection request between two users; accepted rows count for both sides."""

    __tablename__ = "user_connections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    initiator_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    receiver_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(
        String(16),
        nullable=False,
        default=ConnectionStatus.PENDING.value,
        server_default=ConnectionStatus.PENDING.value,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    connected_at = Column(DateTime(timezone=True), nullable=True)


class Referral(Base):
    """A referral from one user to another; activated once the referee is onboarded."""

    __tablename__ = "referrals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    referrer_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referee_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_activated = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    activated_at = Column(DateTime(timezone=True), nullable=True)


class TrustMoment(Base):
    """A rating one user gives another after a shared experience."""

    __tablename__ = "trust_moments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    giver_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class TopicFeedback(Base):
    """Card-game topic feedback submitted by a user."""

    __tablename__ = "topic_feedback"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic_id = Column(String, nullable=False)
    rating = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
