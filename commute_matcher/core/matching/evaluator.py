# commute_matcher/core/matching/evaluator.py
"""
Проверка совместимости кандидата: два отрезка и правило приёмки.
"""

from __future__ import annotations

import asyncio

from commute_matcher.common.constants import DistanceMethod
from commute_matcher.core.geo.service import DistanceProvider
from commute_matcher.core.geo.models import Coordinate
from commute_matcher.core.matching.models import Candidate, Evaluation, Journey


def leg_endpoints(
    requester: Journey,
    candidate: Candidate,
) -> tuple[tuple[Coordinate, Coordinate], tuple[Coordinate, Coordinate]]:
    """
    Пары точек для стартового и финишного отрезков.

    Попутный:  наше начало <-> его начало, наш конец <-> его конец.
    Встречный: наше начало <-> его конец,  наш конец <-> его начало.
    """
    other = candidate.journey
    if candidate.is_reversed:
        return (
            (requester.origin, other.destination),
            (requester.destination, other.origin),
        )
    return (
        (requester.origin, other.origin),
        (requester.destination, other.destination),
    )


def is_within_radius(start_km: float, end_km: float, max_radius_km: float) -> bool:
    """Оба отрезка должны уложиться в радиус (граница включительно)."""
    return start_km <= max_radius_km and end_km <= max_radius_km


class CompatibilityEvaluator:
    """Оценивает кандидата независимо от остальных."""

    def __init__(self, distance_provider: DistanceProvider) -> None:
        self._distance = distance_provider

    async def evaluate(
        self,
        requester: Journey,
        candidate: Candidate,
        method: DistanceMethod,
    ) -> Evaluation:
        """
        Считает оба отрезка параллельно и применяет правило приёмки.

        Args:
            requester: Запрашивающая поездка
            candidate: Кандидат с назначенным направлением
            method: Метод расчёта расстояния, общий для всего прогона

        Returns:
            Отрезки, использованный радиус и решение
        """
        (start_a, start_b), (end_a, end_b) = leg_endpoints(requester, candidate)

        start_km, end_km = await asyncio.gather(
            self._distance.distance(start_a, start_b, method),
            self._distance.distance(end_a, end_b, method),
        )

        # Берём более мягкое из двух предпочтений
        max_radius_km = max(requester.radius_km, candidate.journey.radius_km)

        return Evaluation(
            start_km=start_km,
            end_km=end_km,
            max_radius_km=max_radius_km,
            accepted=is_within_radius(start_km, end_km, max_radius_km),
        )
