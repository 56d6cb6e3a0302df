# commute_matcher/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DistanceMethod(str, Enum):
    """Способ расчёта расстояния между точками."""
    GREAT_CIRCLE = "great_circle"
    ROUTED = "routed"

    @classmethod
    def parse(cls, value: str | None) -> "DistanceMethod":
        """
        Приводит значение из таблицы config к DistanceMethod.

        Старые значения 'haversine' и 'mapbox' принимаются как синонимы.
        Неизвестное значение трактуется как great_circle.
        """
        if not value:
            return cls.GREAT_CIRCLE
        normalized = str(value).strip().lower()
        if normalized in (cls.ROUTED.value, "mapbox"):
            return cls.ROUTED
        return cls.GREAT_CIRCLE


class MatchingMode(str, Enum):
    """Режим доставки уведомлений о совпадениях."""
    INSTANT = "instant"
    HYBRID = "hybrid"
    BATCH = "batch"

    @classmethod
    def parse(cls, value: str | None) -> "MatchingMode":
        """Приводит значение из таблицы config к MatchingMode (по умолчанию hybrid)."""
        if not value:
            return cls.HYBRID
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.HYBRID


class Orientation(str, Enum):
    """Направление кандидата относительно запрашивающей поездки."""
    SAME = "same"
    REVERSE = "reverse"


class JourneyStatus(str, Enum):
    """Статусы поездки."""
    ACTIVE = "active"
    ARCHIVED = "archived"
    EXPIRED = "expired"


class MatchStatus(str, Enum):
    """Статусы совпадения."""
    NEW = "new"
    NOTIFIED = "notified"
    VIEWED = "viewed"
    INTEREST_EXPRESSED = "interest_expressed"
    MUTUAL_CONFIRMED = "mutual_confirmed"
    CONTACT_REVEALED = "contact_revealed"
    DECLINED = "declined"


class EventType(str, Enum):
    """Типы событий аудита."""
    MATCH_DETECTED = "match_detected"


# Радиус отклонения, если у поездки он не задан (км); допустимые 1, 3, 5, 8 проверяет схема БД
DEFAULT_RADIUS_KM: int = 3

# Средний радиус Земли (км)
EARTH_RADIUS_KM: float = 6371.0
