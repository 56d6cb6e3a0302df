# commute_matcher/core/matches/models.py
"""
Модель совпадения двух поездок.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from commute_matcher.common.constants import MatchStatus


@dataclass(frozen=True)
class Match:
    """Совпадение: пара (sub_a_id < sub_b_id) уникальна во всей системе."""
    match_id: int
    sub_a_id: int
    sub_b_id: int
    match_strength: int
    status: MatchStatus = MatchStatus.NEW
    notification_sent: bool = False
    a_interested: bool = False
    b_interested: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Match":
        """Создаёт Match из строки таблицы matches."""
        return cls(
            match_id=int(row["match_id"]),
            sub_a_id=int(row["sub_a_id"]),
            sub_b_id=int(row["sub_b_id"]),
            match_strength=int(row["match_strength"]),
            status=MatchStatus(row.get("status") or MatchStatus.NEW.value),
            notification_sent=bool(row.get("notification_sent", False)),
            a_interested=bool(row.get("a_interested", False)),
            b_interested=bool(row.get("b_interested", False)),
            created_at=row.get("created_at"),
        )
