# tests/core/test_matching_service.py
"""
Тесты для MatchingService.
Репозитории заменены хранилищем в памяти с теми же правилами,
что и в PostgreSQL (фильтр find_nearby_journeys, уникальная пара).
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from commute_matcher.common.constants import (
    DistanceMethod,
    JourneyStatus,
    MatchingMode,
    MatchStatus,
    Orientation,
)
from commute_matcher.core.geo.models import Coordinate
from commute_matcher.core.geo.service import DistanceProvider, haversine_km
from commute_matcher.core.matches.models import Match
from commute_matcher.core.matching.evaluator import CompatibilityEvaluator
from commute_matcher.core.matching.models import Journey, MatchRunConfig
from commute_matcher.core.matching.scoring import canonical_pair
from commute_matcher.core.matching.service import (
    ERROR_INTERNAL,
    ERROR_NOT_FOUND,
    GENERIC_ERROR_MESSAGE,
    MatchingService,
)
from commute_matcher.shared.events.base import DomainEvent


# =============================================================================
# ХРАНИЛИЩЕ В ПАМЯТИ
# =============================================================================

class InMemoryStore:
    """Общие таблицы journeys / matches / events."""

    def __init__(self) -> None:
        self.journeys: dict[int, Journey] = {}
        self.matches: dict[tuple[int, int], Match] = {}
        self.events: list[DomainEvent] = []

    def add(self, *journeys: Journey) -> None:
        for journey in journeys:
            self.journeys[journey.journey_id] = journey


class FakeJourneyRepository:
    """Повторяет фильтр SQL-функции find_nearby_journeys."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    async def get_journey(self, journey_id: int) -> Journey | None:
        return self.store.journeys.get(journey_id)

    async def find_candidates(
        self,
        origin: Coordinate,
        destination: Coordinate,
        radius_m: float,
        exclude_owner: str,
        exclude_id: int,
        exclude_org_id: int | None,
    ) -> list[Journey]:
        self.calls.append((origin, destination))
        result = []
        for journey in self.store.journeys.values():
            if journey.status is not JourneyStatus.ACTIVE:
                continue
            if journey.journey_id == exclude_id or journey.owner == exclude_owner:
                continue
            if exclude_org_id is not None and journey.org_id == exclude_org_id:
                continue
            if haversine_km(origin, journey.origin) * 1000 > radius_m:
                continue
            if haversine_km(destination, journey.destination) * 1000 > radius_m:
                continue
            result.append(journey)
        return result


class FakeMatchRepository:
    """Уникальность пары как у индекса matches."""

    def __init__(self, store: InMemoryStore, stale_exists: bool = False) -> None:
        self.store = store
        # stale_exists: проверка всегда «не видит» пару (гонка двух прогонов)
        self.stale_exists = stale_exists
        self.fail_for: set[tuple[int, int]] = set()
        self.create_calls = 0

    async def exists(self, min_id: int, max_id: int) -> bool:
        if self.stale_exists:
            return False
        return (min_id, max_id) in self.store.matches

    async def create(self, min_id: int, max_id: int, strength: int) -> Match | None:
        self.create_calls += 1
        # Уступаем цикл событий, чтобы параллельные прогоны перемешались
        await asyncio.sleep(0)
        if (min_id, max_id) in self.fail_for:
            raise RuntimeError("simulated write failure")
        if (min_id, max_id) in self.store.matches:
            return None
        match = Match(
            match_id=len(self.store.matches) + 1,
            sub_a_id=min_id,
            sub_b_id=max_id,
            match_strength=strength,
            status=MatchStatus.NEW,
        )
        self.store.matches[(min_id, max_id)] = match
        return match

    async def append_event(self, event: DomainEvent) -> bool:
        self.store.events.append(event)
        return True


class FakeRuntimeConfig:
    def __init__(self, config: MatchRunConfig) -> None:
        self.config = config
        self.loads = 0

    async def load(self) -> MatchRunConfig:
        self.loads += 1
        return self.config


# =============================================================================
# ФИКСТУРЫ
# =============================================================================

@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def build_service(store: InMemoryStore, notifier: MagicMock):
    """Фабрика сервиса поверх общего хранилища."""
    def _build(
        config: MatchRunConfig | None = None,
        matches: FakeMatchRepository | None = None,
        journeys: Any = None,
        routing_handler=None,
    ) -> MatchingService:
        if routing_handler is not None:
            provider = DistanceProvider(
                mapbox_token="test_token",
                base_url="https://mapbox.test",
                client=httpx.AsyncClient(transport=httpx.MockTransport(routing_handler)),
            )
        else:
            provider = DistanceProvider(mapbox_token="")

        return MatchingService(
            journeys=journeys or FakeJourneyRepository(store),
            matches=matches or FakeMatchRepository(store),
            runtime_config=FakeRuntimeConfig(config or MatchRunConfig()),
            evaluator=CompatibilityEvaluator(provider),
            notifier=notifier,
        )

    return _build


@pytest.fixture
def commuters(store: InMemoryStore, make_journey, city_centre, airport, shift_north) -> dict[str, Journey]:
    """
    A: центр -> аэропорт, радиус 3.
    B: попутный, оба конца на 1 км севернее.
    C: встречный (аэропорт -> центр), концы на 0.5 км севернее.
    D: слишком далеко (10 км).
    E: тот же владелец, что у A.
    """
    journeys = {
        "A": make_journey(10, city_centre, airport, owner="a@example.com"),
        "B": make_journey(20, shift_north(city_centre, 1.0), shift_north(airport, 1.0)),
        "C": make_journey(30, shift_north(airport, 0.5), shift_north(city_centre, 0.5)),
        "D": make_journey(40, shift_north(city_centre, 10.0), shift_north(airport, 10.0)),
        "E": make_journey(50, city_centre, airport, owner="a@example.com"),
    }
    store.add(*journeys.values())
    return journeys


# =============================================================================
# ТЕСТЫ
# =============================================================================

class TestMatchingRun:
    """Тесты основного прогона."""

    @pytest.mark.asyncio
    async def test_finds_same_and_reverse_matches(self, build_service, store, commuters) -> None:
        """Находит попутного и встречного, исключая своего владельца и дальнего."""
        service = build_service()

        result = await service.run(10)

        assert result.success is True
        assert result.matches_found == 2
        assert set(store.matches) == {(10, 20), (10, 30)}
        assert store.matches[(10, 20)].match_strength == 83
        assert store.matches[(10, 30)].match_strength == 92
        assert all(m.status is MatchStatus.NEW for m in store.matches.values())
        assert all(m.notification_sent is False for m in store.matches.values())

    @pytest.mark.asyncio
    async def test_events_recorded(self, build_service, store, commuters) -> None:
        """Для каждого нового совпадения записывается match_detected."""
        service = build_service()

        await service.run(10)

        by_partner = {event.matched_with: event for event in store.events}
        assert set(by_partner) == {20, 30}

        same = by_partner[20]
        assert same.event_type == "match_detected"
        assert same.submission_id == 10
        assert same.start_dist == pytest.approx(1.0)
        assert same.end_dist == pytest.approx(1.0)
        assert same.match_strength == 83
        assert same.direction is Orientation.SAME
        assert same.distance_method is DistanceMethod.GREAT_CIRCLE

        reverse = by_partner[30]
        assert reverse.direction is Orientation.REVERSE
        assert reverse.start_dist == pytest.approx(0.5)
        assert reverse.payload()["direction"] == "reverse"

    @pytest.mark.asyncio
    async def test_reverse_query_swaps_points(self, build_service, store, commuters) -> None:
        """Второй запрос кандидатов идёт с переставленными концами."""
        journeys = FakeJourneyRepository(store)
        service = build_service(journeys=journeys)

        await service.run(10)

        a = commuters["A"]
        assert journeys.calls == [
            (a.origin, a.destination),
            (a.destination, a.origin),
        ]

    @pytest.mark.asyncio
    async def test_no_candidates(self, build_service, store, make_journey, notifier) -> None:
        """Нет кандидатов -> успех, 0 совпадений, без уведомления."""
        store.add(make_journey(1))
        service = build_service(MatchRunConfig(matching_mode=MatchingMode.INSTANT))

        result = await service.run(1)

        assert result.success is True
        assert result.matches_found == 0
        assert store.events == []
        notifier.trigger.assert_not_called()

    @pytest.mark.asyncio
    async def test_runtime_config_loaded_once(self, build_service, store, commuters) -> None:
        """Настройки читаются один раз на прогон."""
        runtime = FakeRuntimeConfig(MatchRunConfig())
        service = build_service()
        service._runtime_config = runtime

        await service.run(10)

        assert runtime.loads == 1


class TestIdempotency:
    """Тесты идемпотентности пары."""

    @pytest.mark.asyncio
    async def test_second_run_creates_nothing(self, build_service, store, commuters) -> None:
        """Повторный прогон той же поездки -> 0 новых совпадений."""
        service = build_service()

        first = await service.run(10)
        second = await service.run(10)

        assert first.matches_found == 2
        assert second.success is True
        assert second.matches_found == 0
        assert len(store.matches) == 2
        assert len(store.events) == 2

    @pytest.mark.asyncio
    async def test_both_sides_produce_one_match(self, build_service, store, commuters) -> None:
        """Прогон A, затем B -> одна строка для пары (A, B)."""
        service = build_service()

        await service.run(10)
        result_b = await service.run(20)

        pairs = [key for key in store.matches if set(key) == {10, 20}]
        assert pairs == [canonical_pair(20, 10)]
        assert result_b.success is True

    @pytest.mark.asyncio
    async def test_concurrent_runs_create_single_row(self, build_service, store, make_journey, city_centre, airport, shift_north) -> None:
        """Параллельные прогоны A и B проходят проверку оба, но строка одна."""
        store.add(
            make_journey(1, city_centre, airport),
            make_journey(2, shift_north(city_centre, 0.2), shift_north(airport, 0.2)),
        )
        matches = FakeMatchRepository(store, stale_exists=True)
        service = build_service(matches=matches)

        result_a, result_b = await asyncio.gather(service.run(1), service.run(2))

        assert result_a.success and result_b.success
        assert result_a.matches_found + result_b.matches_found == 1
        assert list(store.matches) == [(1, 2)]
        assert matches.create_calls == 2
        assert len(store.events) == 1


class TestFailures:
    """Тесты ошибок прогона и отдельных кандидатов."""

    @pytest.mark.asyncio
    async def test_journey_not_found(self, build_service) -> None:
        """Неизвестная поездка -> ошибка not_found."""
        service = build_service()

        result = await service.run(999)

        assert result.success is False
        assert result.error_code == ERROR_NOT_FOUND
        assert result.to_response() == {"success": False, "error": "Submission not found"}

    @pytest.mark.asyncio
    async def test_unhandled_error_returns_generic_message(self, build_service) -> None:
        """Сбой загрузки поездки не выбрасывается наружу."""
        journeys = MagicMock()

        async def broken(journey_id: int) -> Journey:
            raise RuntimeError("connection reset")

        journeys.get_journey = broken
        service = build_service(journeys=journeys)

        result = await service.run(1)

        assert result.success is False
        assert result.error == GENERIC_ERROR_MESSAGE
        assert result.error_code == ERROR_INTERNAL
        assert "connection reset" not in result.to_response()["error"]

    @pytest.mark.asyncio
    async def test_candidate_failure_is_skipped(self, build_service, store, commuters) -> None:
        """Ошибка записи одного кандидата не мешает остальным."""
        matches = FakeMatchRepository(store)
        matches.fail_for.add((10, 20))
        service = build_service(matches=matches)

        result = await service.run(10)

        assert result.success is True
        assert result.matches_found == 1
        assert list(store.matches) == [(10, 30)]

    @pytest.mark.asyncio
    async def test_routed_falls_back_to_great_circle(self, build_service, store, commuters) -> None:
        """Mapbox недоступен -> расстояния по haversine, совпадения создаются."""
        def unavailable(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        service = build_service(
            MatchRunConfig(distance_method=DistanceMethod.ROUTED),
            routing_handler=unavailable,
        )

        result = await service.run(10)

        assert result.matches_found == 2
        assert {e.distance_method for e in store.events} == {DistanceMethod.ROUTED}

    @pytest.mark.asyncio
    async def test_rejected_candidate_writes_nothing(self, build_service, store, commuters) -> None:
        """Маршрут по дорогам длиннее радиуса -> ни совпадения, ни события."""
        def long_route(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"routes": [{"distance": 10000.0}]})

        service = build_service(
            MatchRunConfig(distance_method=DistanceMethod.ROUTED),
            routing_handler=long_route,
        )

        result = await service.run(10)

        assert result.success is True
        assert result.matches_found == 0
        assert store.matches == {}
        assert store.events == []


class TestNotificationTrigger:
    """Тесты вызова триггера уведомлений."""

    @pytest.mark.asyncio
    async def test_trigger_called_with_mode_and_count(self, build_service, commuters, notifier) -> None:
        """После обработки кандидатов триггер получает режим и число совпадений."""
        service = build_service(MatchRunConfig(matching_mode=MatchingMode.INSTANT))

        await service.run(10)

        notifier.trigger.assert_called_once_with(MatchingMode.INSTANT, 2)

    @pytest.mark.asyncio
    async def test_trigger_receives_zero_on_repeat(self, build_service, commuters, notifier) -> None:
        """Повторный прогон передаёт 0: триггер сам решает не слать."""
        service = build_service(MatchRunConfig(matching_mode=MatchingMode.INSTANT))

        await service.run(10)
        await service.run(10)

        assert notifier.trigger.call_args_list[-1].args == (MatchingMode.INSTANT, 0)
