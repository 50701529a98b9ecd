"""Activity routing from collaborator events to the point ledger."""

from .router import ACTIVITY_ROUTES, ActivityRouter, resolve_activity

__all__ = ["ACTIVITY_ROUTES", "ActivityRouter", "resolve_activity"]
