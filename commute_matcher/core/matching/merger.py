# commute_matcher/core/matching/merger.py
"""
Слияние кандидатов из двух запросов (прямое и обратное направление).
"""

from __future__ import annotations

from typing import Iterable

from commute_matcher.common.constants import Orientation
from commute_matcher.core.matching.models import Candidate, Journey


def merge_candidates(
    same_direction: Iterable[Journey],
    reverse_direction: Iterable[Journey],
) -> list[Candidate]:
    """
    Объединяет результаты двух запросов в один список без дублей.

    Кандидат, найденный обоими запросами, считается попутным (SAME).
    Порядок: сначала попутные, затем встречные. Повторы id внутри
    одного списка схлопываются (остаётся первое вхождение).

    Args:
        same_direction: Кандидаты, чьё начало рядом с нашим началом, а конец с концом
        reverse_direction: Кандидаты, чьё начало рядом с нашим концом, а конец с началом

    Returns:
        Список кандидатов с назначенным направлением
    """
    seen: set[int] = set()
    merged: list[Candidate] = []

    for journey in same_direction:
        if journey.journey_id in seen:
            continue
        seen.add(journey.journey_id)
        merged.append(Candidate(journey=journey, orientation=Orientation.SAME))

    for journey in reverse_direction:
        if journey.journey_id in seen:
            continue
        seen.add(journey.journey_id)
        merged.append(Candidate(journey=journey, orientation=Orientation.REVERSE))

    return merged
