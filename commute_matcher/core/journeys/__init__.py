# commute_matcher/core/journeys/__init__.py
"""
Домен поездок: загрузка запрашивающей поездки и поиск кандидатов.
"""

from commute_matcher.core.journeys.repository import JourneyRepository

__all__ = [
    "JourneyRepository",
]
