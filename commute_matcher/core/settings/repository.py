# commute_matcher/core/settings/repository.py
"""
Динамическая конфигурация из таблицы config (key/value).
Меняется администратором во время работы, поэтому не кэшируется между прогонами.
"""

from __future__ import annotations

from commute_matcher.common.constants import DistanceMethod, MatchingMode
from commute_matcher.core.matching.models import MatchRunConfig
from commute_matcher.infra.database import DatabaseManager


class RuntimeConfigRepository:
    """Чтение настроек distance_method и matching_mode."""

    KEYS = ("distance_method", "matching_mode")

    def __init__(
        self,
        db: DatabaseManager,
        default_distance_method: str = DistanceMethod.GREAT_CIRCLE.value,
        default_matching_mode: str = MatchingMode.HYBRID.value,
    ) -> None:
        self.db = db
        self._default_distance_method = default_distance_method
        self._default_matching_mode = default_matching_mode

    async def load(self) -> MatchRunConfig:
        """Читает настройки одним запросом и возвращает неизменяемый снимок."""
        rows = await self.db.fetch(
            "SELECT key, value FROM config WHERE key = ANY($1::text[])",
            list(self.KEYS),
        )
        values = {row["key"]: row["value"] for row in rows}

        return MatchRunConfig(
            distance_method=DistanceMethod.parse(
                values.get("distance_method") or self._default_distance_method
            ),
            matching_mode=MatchingMode.parse(
                values.get("matching_mode") or self._default_matching_mode
            ),
        )
