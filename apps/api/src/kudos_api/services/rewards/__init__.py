"""Reward catalog and redemption services."""

from .catalog import RewardCatalog, RewardListing

__all__ = ["RewardCatalog", "RewardListing"]
