# commute_matcher/core/journeys/repository.py
"""
Репозиторий поездок (PostgreSQL).
Таблица: journeys. Поиск кандидатов через SQL-функцию find_nearby_journeys.
"""

from __future__ import annotations

from commute_matcher.common.constants import TypeMsg
from commute_matcher.common.logger import log_info
from commute_matcher.core.geo.models import Coordinate
from commute_matcher.core.matching.models import Journey
from commute_matcher.infra.database import DatabaseManager


class JourneyRepository:
    """Чтение поездок и поиск географически совместимых кандидатов."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def get_journey(self, journey_id: int) -> Journey | None:
        """Загружает поездку по ID."""
        query = """
            SELECT submission_id, email, from_lat, from_lng, to_lat, to_lng,
                   distance_pref, org_id, status, created_at, expires_at
            FROM journeys
            WHERE submission_id = $1
        """
        row = await self.db.fetchrow(query, journey_id)
        return Journey.from_record(row) if row else None

    async def find_candidates(
        self,
        origin: Coordinate,
        destination: Coordinate,
        radius_m: float,
        exclude_owner: str,
        exclude_id: int,
        exclude_org_id: int | None,
    ) -> list[Journey]:
        """
        Ищет поездки, чьё начало рядом с origin, а конец рядом с destination.

        Для встречного направления вызывающий код меняет origin и destination местами.
        Порядок результата не гарантируется.
        """
        query = """
            SELECT submission_id, email, from_lat, from_lng, to_lat, to_lng,
                   distance_pref, org_id, status, created_at, expires_at
            FROM find_nearby_journeys($1, $2, $3, $4, $5, $6, $7, $8)
        """
        rows = await self.db.fetch(
            query,
            origin.lat,
            origin.lng,
            destination.lat,
            destination.lng,
            float(radius_m),
            exclude_owner,
            exclude_id,
            exclude_org_id,
        )

        await log_info(
            f"find_nearby_journeys: {len(rows)} кандидатов в радиусе {radius_m:.0f} м",
            type_msg=TypeMsg.DEBUG,
        )
        return [Journey.from_record(row) for row in rows]
