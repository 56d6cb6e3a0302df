# commute_matcher/shared/models/matching_dto.py
"""
DTO входящего триггера матчинга.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FindMatchesRequest(BaseModel):
    """Запрос на поиск совпадений для поездки."""

    model_config = ConfigDict(populate_by_name=True)

    submission_id: int = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("submissionId", "submission_id", "journey_id"),
        description="ID поездки, для которой ищутся совпадения",
    )


class FindMatchesResponse(BaseModel):
    """Результат прогона матчинга: {success, matchesFound} или {success: false, error}."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    matches_found: int | None = Field(default=None, serialization_alias="matchesFound")
    error: str | None = None
