# commute_matcher/shared/events/base.py
"""
Базовый класс для событий аудита.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class DomainEvent(BaseModel):
    """
    Базовый класс для событий аудита.

    События иммутабельны и только добавляются в таблицу events.
    Поле submission_id — поездка, инициировавшая событие;
    остальные поля конкретного события уходят в колонку metadata.
    """

    model_config = ConfigDict(frozen=True)

    event_type: str = ""
    submission_id: int

    def payload(self) -> dict[str, Any]:
        """Возвращает словарь для колонки events.metadata."""
        return self.model_dump(mode="json", exclude={"event_type", "submission_id"})
