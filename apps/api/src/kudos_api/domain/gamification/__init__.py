"""Pure gamification rules: point values, criteria descriptors, streaks."""

from .criteria import BadgeCriteria, parse_criteria  # noqa: F401
from .point_actions import (  # noqa: F401
    POINT_VALUES,
    PointAction,
    PointActionInfo,
    list_point_actions,
    points_for,
    resolve_action,
)
from .streaks import has_streak, longest_consecutive_run, week_index  # noqa: F401
