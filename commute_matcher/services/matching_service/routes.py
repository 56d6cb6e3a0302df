# commute_matcher/services/matching_service/routes.py
"""
HTTP маршруты Matching Service.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from commute_matcher.core.matching.service import ERROR_NOT_FOUND, MatchingService
from commute_matcher.services.matching_service.dependencies import get_matching_service
from commute_matcher.shared.models.matching_dto import FindMatchesRequest, FindMatchesResponse

router = APIRouter(prefix="/matches", tags=["Matching"])


@router.post(
    "/find",
    response_model=FindMatchesResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
    responses={
        404: {"description": "Поездка не найдена"},
        500: {"description": "Прогон прерван"},
    },
    summary="Найти совпадения для поездки",
)
async def find_matches(
    request: FindMatchesRequest,
    service: MatchingService = Depends(get_matching_service),
):
    """
    Запускает прогон матчинга для поездки.

    Возвращает `{"success": true, "matchesFound": n}` или
    `{"success": false, "error": "..."}`.
    """
    result = await service.run(request.submission_id)

    if result.success:
        return FindMatchesResponse(success=True, matches_found=result.matches_found)

    status_code = 404 if result.error_code == ERROR_NOT_FOUND else 500
    return JSONResponse(status_code=status_code, content=result.to_response())
