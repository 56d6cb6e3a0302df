# commute_matcher/core/matching/service.py
"""
Сервис матчинга поездок.
Один прогон: загрузка поездки -> два запроса кандидатов -> слияние ->
проверка каждого кандидата -> оценка -> запись -> триггер уведомлений.
"""

from __future__ import annotations

from commute_matcher.common.constants import TypeMsg
from commute_matcher.common.logger import log_error, log_info, log_warning
from commute_matcher.core.journeys.repository import JourneyRepository
from commute_matcher.core.matches.repository import MatchRepository
from commute_matcher.core.matching.evaluator import CompatibilityEvaluator
from commute_matcher.core.matching.exceptions import JourneyNotFoundError
from commute_matcher.core.matching.merger import merge_candidates
from commute_matcher.core.matching.models import (
    Candidate,
    Journey,
    MatchRunConfig,
    MatchRunResult,
)
from commute_matcher.core.matching.scoring import canonical_pair, match_strength, round_half_up
from commute_matcher.core.notifications.service import NotificationTrigger
from commute_matcher.core.settings.repository import RuntimeConfigRepository
from commute_matcher.shared.events.match_events import MatchDetected

GENERIC_ERROR_MESSAGE = "Internal matching error"
ERROR_NOT_FOUND = "not_found"
ERROR_INTERNAL = "internal"


class MatchingService:
    """
    Движок матчинга поездок.

    Алгоритм прогона:
    1. Загрузить запрашивающую поездку (нет поездки -> ошибка прогона)
    2. Один раз прочитать distance_method и matching_mode
    3. Найти попутных и встречных кандидатов, объединить без дублей
    4. Для каждого кандидата по очереди:
       пропустить, если пара уже есть; посчитать оба отрезка параллельно;
       при приёмке оценить, сохранить совпадение и событие
    5. В режиме instant запустить рассылку, не дожидаясь её

    Сбой на одном кандидате не прерывает прогон. Состояние между
    прогонами не хранится: параллельные прогоны не координируются.
    """

    def __init__(
        self,
        journeys: JourneyRepository,
        matches: MatchRepository,
        runtime_config: RuntimeConfigRepository,
        evaluator: CompatibilityEvaluator,
        notifier: NotificationTrigger,
    ) -> None:
        self._journeys = journeys
        self._matches = matches
        self._runtime_config = runtime_config
        self._evaluator = evaluator
        self._notifier = notifier

    async def run(self, journey_id: int) -> MatchRunResult:
        """
        Выполняет прогон матчинга для поездки.

        Args:
            journey_id: ID запрашивающей поездки

        Returns:
            MatchRunResult(success=True, matches_found=n) или
            MatchRunResult(success=False, error=...). Не выбрасывает исключений.
        """
        try:
            return await self._run(journey_id)
        except JourneyNotFoundError as e:
            await log_warning(f"Поездка {journey_id} не найдена")
            return MatchRunResult(success=False, error=str(e), error_code=ERROR_NOT_FOUND)
        except Exception as e:
            # Уже сохранённые совпадения остаются в силе
            await log_error(f"find-matches error для поездки {journey_id}: {e}", exc_info=True)
            return MatchRunResult(success=False, error=GENERIC_ERROR_MESSAGE, error_code=ERROR_INTERNAL)

    async def _run(self, journey_id: int) -> MatchRunResult:
        requester = await self._journeys.get_journey(journey_id)
        if requester is None:
            raise JourneyNotFoundError(journey_id)

        config = await self._runtime_config.load()
        candidates = await self._collect_candidates(requester)

        if not candidates:
            await log_info(f"Поездка {journey_id}: кандидатов нет", type_msg=TypeMsg.DEBUG)
            return MatchRunResult(success=True, matches_found=0)

        result = MatchRunResult(success=True)
        for candidate in candidates:
            match_id = await self._process_candidate(requester, candidate, config)
            if match_id is not None:
                result.created_match_ids.append(match_id)
        result.matches_found = len(result.created_match_ids)

        self._notifier.trigger(config.matching_mode, result.matches_found)

        await log_info(
            f"Поездка {journey_id}: кандидатов {len(candidates)}, "
            f"новых совпадений {result.matches_found} ({config.distance_method.value})",
            type_msg=TypeMsg.INFO,
        )
        return result

    async def _collect_candidates(self, requester: Journey) -> list[Candidate]:
        """Два запроса кандидатов (попутный и встречный) и их слияние."""
        exclusions = {
            "radius_m": requester.radius_m,
            "exclude_owner": requester.owner,
            "exclude_id": requester.journey_id,
            "exclude_org_id": requester.org_id,
        }
        same_direction = await self._journeys.find_candidates(
            requester.origin, requester.destination, **exclusions
        )
        reverse_direction = await self._journeys.find_candidates(
            requester.destination, requester.origin, **exclusions
        )
        return merge_candidates(same_direction, reverse_direction)

    async def _process_candidate(
        self,
        requester: Journey,
        candidate: Candidate,
        config: MatchRunConfig,
    ) -> int | None:
        """
        Обрабатывает одного кандидата.

        Returns:
            ID созданного совпадения или None (пропуск, отказ, конфликт, ошибка)
        """
        min_id, max_id = canonical_pair(requester.journey_id, candidate.journey_id)

        try:
            if await self._matches.exists(min_id, max_id):
                return None

            evaluation = await self._evaluator.evaluate(
                requester, candidate, config.distance_method
            )
            if not evaluation.accepted:
                return None

            strength = match_strength(
                evaluation.start_km, evaluation.end_km, evaluation.max_radius_km
            )
            match = await self._matches.create(min_id, max_id, strength)
            if match is None:
                return None

            await self._matches.append_event(MatchDetected(
                submission_id=requester.journey_id,
                matched_with=candidate.journey_id,
                start_dist=round_half_up(evaluation.start_km, 1),
                end_dist=round_half_up(evaluation.end_km, 1),
                match_strength=strength,
                direction=candidate.orientation,
                distance_method=config.distance_method,
            ))
            return match.match_id
        except Exception as e:
            await log_error(
                f"Кандидат {candidate.journey_id} для поездки {requester.journey_id} пропущен: {e}",
                exc_info=True,
            )
            return None
