"""SQLAlchemy models package."""

# Import all models
from .activity import (  # noqa: F401
    ConnectionStatus,
    EventAttendance,
    HostedEvent,
    Referral,
    TopicFeedback,
    TrustMoment,
    UserConnection,
)
from .gamification import (  # noqa: F401
    Badge,
    PointHistory,
    Redemption,
    RedemptionStatus,
    Reward,
    UserBadge,
)
from .user import User, UserStatusEnum  # noqa: F401
