"""Background workers supporting async processing."""

from .notification_dedupe import NotificationDedupeSweeper

__all__ = ["NotificationDedupeSweeper"]
