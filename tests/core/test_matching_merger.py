# tests/core/test_matching_merger.py
"""
Тесты для слияния попутных и встречных кандидатов.
"""

from __future__ import annotations

from commute_matcher.common.constants import Orientation
from commute_matcher.core.matching.merger import merge_candidates


class TestMergeCandidates:
    """Тесты для merge_candidates."""

    def test_empty_inputs(self) -> None:
        """Пустые списки -> пустой результат."""
        assert merge_candidates([], []) == []

    def test_orientation_assigned(self, make_journey) -> None:
        """Попутным назначается SAME, встречным REVERSE."""
        merged = merge_candidates([make_journey(1)], [make_journey(2)])

        assert [(c.journey_id, c.orientation) for c in merged] == [
            (1, Orientation.SAME),
            (2, Orientation.REVERSE),
        ]

    def test_found_by_both_queries_is_same(self, make_journey) -> None:
        """Кандидат из обоих запросов остаётся один и считается попутным."""
        journey = make_journey(5)

        merged = merge_candidates([journey], [journey])

        assert len(merged) == 1
        assert merged[0].orientation is Orientation.SAME
        assert merged[0].is_reversed is False

    def test_same_direction_first(self, make_journey) -> None:
        """Сначала попутные, потом встречные."""
        merged = merge_candidates(
            [make_journey(3), make_journey(1)],
            [make_journey(2), make_journey(1), make_journey(4)],
        )

        assert [c.journey_id for c in merged] == [3, 1, 2, 4]
        assert [c.is_reversed for c in merged] == [False, False, True, True]

    def test_duplicate_within_one_list_collapsed(self, make_journey) -> None:
        """Повтор ID внутри одного списка схлопывается."""
        merged = merge_candidates([make_journey(7), make_journey(7)], [])

        assert [c.journey_id for c in merged] == [7]
