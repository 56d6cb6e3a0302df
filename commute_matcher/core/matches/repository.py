# commute_matcher/core/matches/repository.py
"""
Репозиторий совпадений и событий аудита (PostgreSQL).
Таблицы: matches, events.

Уникальный индекс по (sub_a_id, sub_b_id) — единственная гарантия
идемпотентности. Проверка exists() перед вставкой лишь экономит
расчёт расстояний: два параллельных прогона могут пройти её оба,
и тогда второй INSERT упадёт на уникальном индексе. Это штатная ситуация.
"""

from __future__ import annotations

import json

import asyncpg

from commute_matcher.common.constants import MatchStatus
from commute_matcher.common.logger import log_debug, log_error, log_warning
from commute_matcher.core.matches.models import Match
from commute_matcher.infra.database import DatabaseManager
from commute_matcher.shared.events.base import DomainEvent


class MatchRepository:
    """Запись совпадений и событий match_detected."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def exists(self, min_id: int, max_id: int) -> bool:
        """Есть ли уже совпадение для канонической пары."""
        query = """
            SELECT 1 FROM matches
            WHERE sub_a_id = $1 AND sub_b_id = $2
            LIMIT 1
        """
        return await self.db.fetchval(query, min_id, max_id) is not None

    async def create(self, min_id: int, max_id: int, strength: int) -> Match | None:
        """
        Создаёт совпадение со статусом new и notification_sent = false.

        Returns:
            Созданный Match или None, если пара уже существует
            или запись не удалась (без повторов, без исключения)
        """
        query = """
            INSERT INTO matches (sub_a_id, sub_b_id, match_strength, status, notification_sent)
            VALUES ($1, $2, $3, $4, FALSE)
            RETURNING match_id, sub_a_id, sub_b_id, match_strength, status,
                      notification_sent, a_interested, b_interested, created_at
        """
        try:
            row = await self.db.fetchrow(query, min_id, max_id, strength, MatchStatus.NEW.value)
        except asyncpg.UniqueViolationError:
            await log_debug(f"Совпадение ({min_id}, {max_id}) уже создано параллельным прогоном")
            return None
        except (asyncpg.PostgresError, OSError) as e:
            await log_warning(f"Не удалось сохранить совпадение ({min_id}, {max_id}): {e}")
            return None

        return Match.from_record(row) if row else None

    async def append_event(self, event: DomainEvent) -> bool:
        """
        Добавляет событие аудита.

        Returns:
            True при успешной записи. Ошибка записи логируется и не пробрасывается:
            совпадение к этому моменту уже сохранено.
        """
        query = """
            INSERT INTO events (event_type, submission_id, metadata)
            VALUES ($1, $2, $3::jsonb)
        """
        try:
            await self.db.execute(
                query,
                event.event_type,
                event.submission_id,
                json.dumps(event.payload(), ensure_ascii=False),
            )
        except (asyncpg.PostgresError, OSError) as e:
            await log_error(f"Не удалось записать событие {event.event_type}: {e}")
            return False
        return True
