# commute_matcher/core/matching/models.py
"""
Доменные модели матчинга поездок.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from commute_matcher.common.constants import (
    DEFAULT_RADIUS_KM,
    DistanceMethod,
    JourneyStatus,
    MatchingMode,
    Orientation,
)
from commute_matcher.core.geo.models import Coordinate


def _radius_or_default(value: Any) -> int:
    """Пустой или нулевой радиус читается как радиус по умолчанию (3 км)."""
    if not value:
        return DEFAULT_RADIUS_KM
    return int(value)


@dataclass(frozen=True)
class Journey:
    """Поездка, отправленная пользователем (только чтение для движка матчинга)."""
    journey_id: int
    owner: str
    origin: Coordinate
    destination: Coordinate
    radius_km: int = DEFAULT_RADIUS_KM
    org_id: int | None = None
    status: JourneyStatus = JourneyStatus.ACTIVE
    created_at: datetime | None = None
    expires_at: datetime | None = None

    @property
    def radius_m(self) -> float:
        """Радиус отклонения в метрах (для запроса кандидатов)."""
        return self.radius_km * 1000

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Journey":
        """Создаёт Journey из строки таблицы journeys."""
        status = row.get("status") or JourneyStatus.ACTIVE.value
        return cls(
            journey_id=int(row["submission_id"]),
            owner=row.get("email") or "",
            origin=Coordinate(float(row["from_lat"]), float(row["from_lng"])),
            destination=Coordinate(float(row["to_lat"]), float(row["to_lng"])),
            radius_km=_radius_or_default(row.get("distance_pref")),
            org_id=row.get("org_id"),
            status=JourneyStatus(status),
            created_at=row.get("created_at"),
            expires_at=row.get("expires_at"),
        )


@dataclass(frozen=True)
class Candidate:
    """
    Кандидат на совпадение: поездка из запроса кандидатов
    с направлением, назначенным при слиянии.
    """
    journey: Journey
    orientation: Orientation = Orientation.SAME

    @property
    def journey_id(self) -> int:
        return self.journey.journey_id

    @property
    def is_reversed(self) -> bool:
        return self.orientation is Orientation.REVERSE


@dataclass(frozen=True)
class Evaluation:
    """Результат проверки совместимости одного кандидата."""
    start_km: float
    end_km: float
    max_radius_km: float
    accepted: bool


@dataclass(frozen=True)
class MatchRunConfig:
    """
    Динамические настройки, прочитанные один раз в начале прогона.
    Не перечитываются до конца прогона.
    """
    distance_method: DistanceMethod = DistanceMethod.GREAT_CIRCLE
    matching_mode: MatchingMode = MatchingMode.HYBRID


@dataclass
class MatchRunResult:
    """Итог прогона матчинга для входящего триггера."""
    success: bool
    matches_found: int = 0
    error: str | None = None
    error_code: str | None = None  # not_found | internal
    created_match_ids: list[int] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        """Ответ в формате {success, matchesFound} / {success: false, error}."""
        if self.success:
            return {"success": True, "matchesFound": self.matches_found}
        return {"success": False, "error": self.error}
