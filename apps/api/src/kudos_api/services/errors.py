"""Typed failures surfaced by the gamification services."""

from __future__ import annotations

from uuid import UUID


class GamificationError(RuntimeError):
    """Base exception for gamification engine failures."""


class InsufficientBalanceError(GamificationError):
    """Raised when a deduction asks for more points than the user holds."""

    def __init__(self, user_id: UUID, requested: int, available: int) -> None:
        super().__init__(f"User {user_id} has {available} points, {requested} requested")
        self.user_id = user_id
        self.requested = requested
        self.available = available


class RewardUnavailableError(GamificationError):
    """Raised when a reward is inactive or out of stock at redemption time."""

    def __init__(self, reward_id: UUID) -> None:
        super().__init__(f"Reward {reward_id} is not available")
        self.reward_id = reward_id


class NotFoundError(GamificationError):
    """Raised when a referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, identifier: object) -> None:
        super().__init__(f"{self.entity} {identifier} not found")
        self.identifier = identifier


class UserNotFoundError(NotFoundError):
    entity = "User"


class BadgeNotFoundError(NotFoundError):
    entity = "Badge"


class RewardNotFoundError(NotFoundError):
    entity = "Reward"


class RedemptionNotFoundError(NotFoundError):
    entity = "Redemption"


class InvalidRedemptionStatusError(GamificationError):
    """Raised when moderation requests a transition outside PENDING -> APPROVED/REJECTED."""

    def __init__(self, current_status: str, requested_status: str) -> None:
        super().__init__(f"Cannot transition redemption from {current_status} to {requested_status}")
        self.current_status = current_status
        self.requested_status = requested_status


__all__ = [
    "BadgeNotFoundError",
    "GamificationError",
    "InsufficientBalanceError",
    "InvalidRedemptionStatusError",
    "NotFoundError",
    "RedemptionNotFoundError",
    "RewardNotFoundError",
    "RewardUnavailableError",
    "UserNotFoundError",
]
