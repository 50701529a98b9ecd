"""Notification service package."""

from .backend import EmailBackend, InMemoryEmailBackend, SMTPEmailBackend
from .dedupe import NotificationDedupeCache
from .service import NotificationEvent, NotificationService

__all__ = [
    "EmailBackend",
    "SMTPEmailBackend",
    "InMemoryEmailBackend",
    "NotificationDedupeCache",
    "NotificationService",
    "NotificationEvent",
]
