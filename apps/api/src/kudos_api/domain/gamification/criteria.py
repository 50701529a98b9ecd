"""Typed badge criteria descriptors.

``Badge.criteria_config`` is stored as loose JSON. It is parsed here into a
closed union discriminated on ``type``; anything that does not validate is
treated as unknown and never satisfies a badge.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator


class _CriteriaBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    count: int | None = Field(default=None, ge=0)

    def threshold(self, fallback: int) -> int:
        """Required amount, falling back to the badge's ``required_count``."""

        return self.count if self.count is not None else fallback


class EventAttendanceCriteria(_CriteriaBase):
    type: Literal["event_attendance"]
    condition: Literal["total_events_attended", "event_type_count", "unique_locations"]
    event_type: str | None = Field(default=None, alias="eventType")

    @model_validator(mode="after")
    def _require_event_type(self) -> "EventAttendanceCriteria":
        if self.condition == "event_type_count" and not self.event_type:
            raise ValueError("event_type_count requires eventType")
        return self


class ConnectionCriteria(_CriteriaBase):
    type: Literal["connection"]
    condition: Literal["accepted_connections"]


class ReferralCriteria(_CriteriaBase):
    type: Literal["referral"]
    condition: Literal["activated_referrals"]


class EventHostingCriteria(_CriteriaBase):
    type: Literal["event_hosting"]
    condition: Literal["events_hosted"]


class StreakCriteria(_CriteriaBase):
    type: Literal["streak"]
    condition: Literal["consecutive_weeks"]
    weeks: int | None = Field(default=None, ge=1)

    def threshold(self, fallback: int) -> int:
        if self.weeks is not None:
            return self.weeks
        return super().threshold(fallback)


class TrustMomentCriteria(_CriteriaBase):
    type: Literal["trust_moment"]
    condition: Literal["positive_ratings_given"]
    min_rating: int | None = Field(default=None, alias="minRating", ge=1, le=5)


class EngagementCriteria(_CriteriaBase):
    type: Literal["engagement"]
    condition: Literal["feedback_submitted"]


class MetaCriteria(_CriteriaBase):
    type: Literal["meta"]
    condition: Literal["badges_earned"]


BadgeCriteria = Annotated[
    Union[
        EventAttendanceCriteria,
        ConnectionCriteria,
        ReferralCriteria,
        EventHostingCriteria,
        StreakCriteria,
        TrustMomentCriteria,
        EngagementCriteria,
        MetaCriteria,
    ],
    Field(discriminator="type"),
]

_ADAPTER: TypeAdapter[BadgeCriteria] = TypeAdapter(BadgeCriteria)


def parse_criteria(config: Mapping[str, Any] | None, *, badge_type: str | None = None) -> BadgeCriteria | None:
    """Parse a stored criteria config, returning ``None`` for unknown shapes."""

    if not isinstance(config, Mapping):
        logger.warning("Badge criteria config is not an object", badge_type=badge_type)
        return None
    try:
        return _ADAPTER.validate_python(dict(config))
    except ValidationError as exc:
        logger.warning(
            "Unknown badge criteria",
            badge_type=badge_type,
            criteria_type=config.get("type"),
            condition=config.get("condition"),
            errors=exc.error_count(),
        )
        return None


__all__ = [
    "BadgeCriteria",
    "ConnectionCriteria",
    "EngagementCriteria",
    "EventAttendanceCriteria",
    "EventHostingCriteria",
    "MetaCriteria",
    "ReferralCriteria",
    "StreakCriteria",
    "TrustMomentCriteria",
    "parse_criteria",
]
