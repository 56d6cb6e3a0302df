# commute_matcher/core/matching/exceptions.py
"""
Исключения домена матчинга.
"""

from __future__ import annotations


class MatchingError(Exception):
    """Базовая ошибка прогона матчинга."""


class JourneyNotFoundError(MatchingError):
    """Запрашивающая поездка не найдена."""

    def __init__(self, journey_id: int) -> None:
        self.journey_id = journey_id
        super().__init__("Submission not found")
