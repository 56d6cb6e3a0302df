# commute_matcher/core/notifications/__init__.py
"""
Триггер пакетной рассылки уведомлений.
"""

from commute_matcher.core.notifications.service import NotificationTrigger

__all__ = [
    "NotificationTrigger",
]
