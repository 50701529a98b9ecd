"""Points, badge and reward domain models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from kudos_api.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PointHistory(Base):
    """Append-only ledger row; one per balance mutation."""

    __tablename__ = "point_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    points = Column(Integer, nullable=False)
    action = Column(String(64), nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())


class Badge(Base):
    """Badge definition with a typed criteria descriptor."""

    __tablename__ = "badges"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    type = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    criteria_config = Column(JSON, nullable=False, default=dict)
    required_count = Column(Integer, nullable=False, default=1, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user_badges = relationship("UserBadge", back_populates="badge", cascade="all, delete-orphan")


class UserBadge(Base):
    """Earned badge junction; unique per user and badge."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    badge_id = Column(
        UUID(as_uuid=True),
        ForeignKey("badges.id", ondelete="CASCADE"),
        nullable=False,
    )
    earned_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())

    badge = relationship("Badge", back_populates="user_badges")


class Reward(Base):
    """Catalog reward purchasable with points while in stock."""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_rewards_quantity_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    points_required = Column(Integer, nullable=False)
    category = Column(String, nullable=False, index=True)
    partner = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    redemptions = relationship("Redemption", back_populates="reward")


class RedemptionStatus(str, Enum):
    """Moderation states for reward redemptions."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Redemption(Base):
    """A user's claim on a reward, created together with the point deduction."""

    __tablename__ = "redemptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reward_id = Column(UUID(as_uuid=True), ForeignKey("rewards.id"), nullable=False)
    status = Column(
        SqlEnum(
            RedemptionStatus,
            name="redemption_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=RedemptionStatus.PENDING,
        server_default=RedemptionStatus.PENDING.value,
    )
    points_spent = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    redeemed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    reward = relationship("Reward", back_populates="redemptions")
