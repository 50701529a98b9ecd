from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from kudos_api.db.base import Base


class UserStatusEnum(str, Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"
    SUSPENDED = "suspended"


class User(Base):
    """Platform member carrying the point balance owned by the ledger."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("total_points >= 0", name="ck_users_total_points_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=False)
    profile_picture = Column(String, nullable=True)
    total_points = Column(Integer, nullable=False, default=0, server_default="0")
    trust_score = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(
        String(length=16),
        nullable=False,
        default=UserStatusEnum.ACTIVE.value,
        server_default=UserStatusEnum.ACTIVE.value,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
