# commute_matcher/services/matching_service/dependencies.py
"""
Dependency Injection для Matching Service.
"""

from __future__ import annotations

from commute_matcher.core.geo.service import DistanceProvider
from commute_matcher.core.journeys.repository import JourneyRepository
from commute_matcher.core.matches.repository import MatchRepository
from commute_matcher.core.matching.evaluator import CompatibilityEvaluator
from commute_matcher.core.matching.service import MatchingService
from commute_matcher.core.notifications.service import NotificationTrigger
from commute_matcher.core.settings.repository import RuntimeConfigRepository
from commute_matcher.infra.database import DatabaseManager


# Синглтоны процесса (без состояния между прогонами)
_distance_provider: DistanceProvider | None = None
_notifier: NotificationTrigger | None = None
_matching_service: MatchingService | None = None


def build_matching_service(
    db: DatabaseManager,
    distance_provider: DistanceProvider,
    notifier: NotificationTrigger,
) -> MatchingService:
    """Собирает MatchingService из инфраструктурных зависимостей."""
    from commute_matcher.config import settings

    return MatchingService(
        journeys=JourneyRepository(db),
        matches=MatchRepository(db),
        runtime_config=RuntimeConfigRepository(
            db,
            default_distance_method=settings.matching.DEFAULT_DISTANCE_METHOD,
            default_matching_mode=settings.matching.DEFAULT_MATCHING_MODE,
        ),
        evaluator=CompatibilityEvaluator(distance_provider),
        notifier=notifier,
    )


async def init_dependencies(db: DatabaseManager) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _distance_provider, _notifier, _matching_service
    _distance_provider = DistanceProvider()
    _notifier = NotificationTrigger()
    _matching_service = build_matching_service(db, _distance_provider, _notifier)


def get_matching_service() -> MatchingService:
    """Получить сервис матчинга."""
    if _matching_service is None:
        raise RuntimeError("MatchingService не инициализирован. Вызовите init_dependencies()")
    return _matching_service


async def cleanup_dependencies() -> None:
    """Очистить ресурсы при остановке приложения."""
    global _distance_provider, _notifier, _matching_service

    if _notifier is not None:
        await _notifier.close()
    if _distance_provider is not None:
        await _distance_provider.close()

    _distance_provider = None
    _notifier = None
    _matching_service = None
