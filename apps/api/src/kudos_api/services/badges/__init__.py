"""Badge evaluation and awarding services."""

from .awarder import BadgeAwarder
from .evaluator import BadgeCriteriaEvaluator, BadgeDefinition, BadgeProgress

__all__ = ["BadgeAwarder", "BadgeCriteriaEvaluator", "BadgeDefinition", "BadgeProgress"]
