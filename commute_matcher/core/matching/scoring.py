# commute_matcher/core/matching/scoring.py
"""
Оценка силы совпадения и каноническая пара.
"""

from __future__ import annotations

import math

# Нормировка: по 2 * max_radius на каждый из двух отрезков
SCORE_NORMALIZATION = 4


def canonical_pair(first_id: int, second_id: int) -> tuple[int, int]:
    """Возвращает неупорядоченную пару как (min_id, max_id)."""
    return (first_id, second_id) if first_id <= second_id else (second_id, first_id)


def round_half_up(value: float, digits: int = 0) -> float:
    """Округление x.5 вверх (как Math.round), а не банковское."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def match_strength(start_km: float, end_km: float, max_radius_km: float) -> int:
    """
    Сила совпадения в диапазоне [0, 100].

    100 при нулевых отрезках, 0 когда сумма отрезков достигает
    4 * max_radius. Не возрастает с ростом суммы отрезков.
    """
    if max_radius_km <= 0:
        return 0
    raw = 100 * (1 - (start_km + end_km) / (SCORE_NORMALIZATION * max_radius_km))
    clamped = max(0.0, min(100.0, raw))
    return int(round_half_up(clamped))
