# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("MAPBOX_TOKEN", "")
os.environ.setdefault("NOTIFY_BASE_URL", "")
os.environ.setdefault("SERVICE_KEY", "test_service_key")

from commute_matcher.common.constants import JourneyStatus
from commute_matcher.core.geo.models import Coordinate
from commute_matcher.core.matching.models import Journey


# Километров в одном градусе широты (R = 6371 км)
KM_PER_DEG_LAT = 6371.0 * math.pi / 180


def north_of(point: Coordinate, km: float) -> Coordinate:
    """Точка в km километрах севернее (по меридиану расстояние haversine точное)."""
    return Coordinate(point.lat + km / KM_PER_DEG_LAT, point.lng)


# Базовые точки маршрута (Дублин: центр -> аэропорт)
CITY_CENTRE = Coordinate(53.3498, -6.2603)
AIRPORT = Coordinate(53.4264, -6.2499)


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок содержимого config.json для тестов."""
    return {
        "_comment_system": "комментарий",
        "PROJECT_NAME": "commute_matcher_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "json",
        "LOG_TO_FILE": False,
        "DB_HOST": "db.test",
        "DB_PORT": 6543,
        "DB_NAME": "commute_test",
        "DB_USER": "tester",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 3,
        "MAPBOX_BASE_URL": "https://mapbox.test",
        "ROUTING_TIMEOUT_SECONDS": 2.5,
        "DEFAULT_DISTANCE_METHOD": "great_circle",
        "DEFAULT_MATCHING_MODE": "instant",
        "NOTIFY_PATH": "/functions/v1/batch-send-emails",
        "PORT": 9000,
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def make_journey() -> Callable[..., Journey]:
    """Фабрика поездок с разумными значениями по умолчанию."""
    def _make(
        journey_id: int,
        origin: Coordinate = CITY_CENTRE,
        destination: Coordinate = AIRPORT,
        radius_km: int = 3,
        owner: str | None = None,
        org_id: int | None = None,
    ) -> Journey:
        return Journey(
            journey_id=journey_id,
            owner=owner or f"user{journey_id}@example.com",
            origin=origin,
            destination=destination,
            radius_km=radius_km,
            org_id=org_id,
            status=JourneyStatus.ACTIVE,
        )
    return _make


@pytest.fixture
def sample_journey_row() -> dict[str, Any]:
    """Пример строки таблицы journeys."""
    return {
        "submission_id": 42,
        "email": "commuter@example.com",
        "from_lat": CITY_CENTRE.lat,
        "from_lng": CITY_CENTRE.lng,
        "to_lat": AIRPORT.lat,
        "to_lng": AIRPORT.lng,
        "distance_pref": 5,
        "org_id": 7,
        "status": "active",
        "created_at": None,
        "expires_at": None,
    }


@pytest.fixture
def city_centre() -> Coordinate:
    """Начало базового маршрута."""
    return CITY_CENTRE


@pytest.fixture
def airport() -> Coordinate:
    """Конец базового маршрута."""
    return AIRPORT


@pytest.fixture
def shift_north() -> Callable[[Coordinate, float], Coordinate]:
    """Функция сдвига точки на заданное число км к северу."""
    return north_of
