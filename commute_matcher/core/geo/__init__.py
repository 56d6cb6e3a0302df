# commute_matcher/core/geo/__init__.py
"""
Гео-домен: расчёт расстояний между точками.
"""

from commute_matcher.core.geo.models import Coordinate
from commute_matcher.core.geo.service import DistanceProvider, haversine_km

__all__ = [
    "Coordinate",
    "DistanceProvider",
    "haversine_km",
]
