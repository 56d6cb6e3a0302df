# commute_matcher/core/geo/service.py
"""
Расчёт расстояний между точками.
Расстояние по большому кругу (haversine) или по дорогам через Mapbox Directions API.
"""

from __future__ import annotations

import math

import httpx

from commute_matcher.common.constants import EARTH_RADIUS_KM, DistanceMethod, TypeMsg
from commute_matcher.common.logger import log_info, log_warning
from commute_matcher.core.geo.models import Coordinate


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """
    Расстояние по большому кругу между двумя точками (км).

    Args:
        a: Первая точка (широта, долгота в градусах)
        b: Вторая точка

    Returns:
        Расстояние в километрах на сфере радиусом 6371 км
    """
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) *
         math.sin(dlng / 2) ** 2)
    # Округление у антиподов может дать h чуть больше 1
    h = min(1.0, max(0.0, h))

    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class RoutingUnavailableError(Exception):
    """Сервис маршрутизации не вернул пригодный маршрут."""


class DistanceProvider:
    """
    Провайдер расстояний.

    Метод great_circle считается локально. Метод routed запрашивает
    расстояние по дорогам у Mapbox; при любой ошибке (нет токена, HTTP
    ошибка, таймаут, пустой маршрут) пишет предупреждение и возвращает
    haversine. distance() никогда не выбрасывает исключение.
    """

    DIRECTIONS_PATH = "/directions/v5/{profile}/{coordinates}"

    def __init__(
        self,
        mapbox_token: str | None = None,
        base_url: str = "https://api.mapbox.com",
        profile: str = "mapbox/driving",
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            mapbox_token: Токен Mapbox (берётся из конфига если None)
            base_url: Базовый URL Mapbox API
            profile: Профиль маршрутизации
            timeout: Таймаут запроса (секунды)
            client: Готовый HTTP клиент (для тестов)
        """
        if mapbox_token is None:
            from commute_matcher.config import settings
            mapbox_token = settings.routing.MAPBOX_TOKEN
            base_url = settings.routing.MAPBOX_BASE_URL
            profile = settings.routing.MAPBOX_PROFILE
            timeout = settings.routing.ROUTING_TIMEOUT_SECONDS

        self._token = mapbox_token
        self._base_url = base_url.rstrip("/")
        self._profile = profile
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def has_routing_token(self) -> bool:
        return bool(self._token)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def distance(
        self,
        a: Coordinate,
        b: Coordinate,
        method: DistanceMethod = DistanceMethod.GREAT_CIRCLE,
    ) -> float:
        """
        Расстояние между точками в км выбранным методом.

        Args:
            a: Начальная точка
            b: Конечная точка
            method: great_circle или routed

        Returns:
            Расстояние в км (для routed при сбое — haversine)
        """
        if method is not DistanceMethod.ROUTED:
            return haversine_km(a, b)

        if not self._token:
            await log_warning("Mapbox токен не настроен, используем haversine")
            return haversine_km(a, b)

        try:
            return await self._routed_km(a, b)
        except (httpx.HTTPError, RoutingUnavailableError, AttributeError, KeyError, TypeError, ValueError) as e:
            await log_warning(f"Mapbox fallback to haversine: {e}")
            return haversine_km(a, b)

    async def _routed_km(self, a: Coordinate, b: Coordinate) -> float:
        """Запрашивает расстояние по дорогам для лучшего маршрута (км)."""
        # Mapbox ожидает пары lng,lat
        coordinates = f"{a.lng},{a.lat};{b.lng},{b.lat}"
        url = self._base_url + self.DIRECTIONS_PATH.format(
            profile=self._profile,
            coordinates=coordinates,
        )

        response = await self._client.get(
            url,
            params={
                "access_token": self._token,
                "overview": "false",
                "steps": "false",
            },
        )

        if response.status_code != 200:
            raise RoutingUnavailableError(f"Mapbox HTTP {response.status_code}")

        data = response.json()
        routes = data.get("routes") or []
        if not routes:
            raise RoutingUnavailableError("No route found")

        distance_km = float(routes[0]["distance"]) / 1000

        await log_info(
            f"Mapbox: ({a.lat},{a.lng}) -> ({b.lat},{b.lng}) = {distance_km:.2f} км",
            type_msg=TypeMsg.DEBUG,
        )
        return distance_km
