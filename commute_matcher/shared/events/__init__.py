# commute_matcher/shared/events/__init__.py
"""
Схемы событий аудита (таблица events).

Все события иммутабельны и только добавляются.
"""

from commute_matcher.shared.events.base import DomainEvent
from commute_matcher.shared.events.match_events import MatchDetected

__all__ = [
    "DomainEvent",
    "MatchDetected",
]
