# commute_matcher/core/geo/models.py
"""
Гео-модели.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinate:
    """Точка в градусах. Порядок всегда (широта, долгота)."""
    lat: float
    lng: float
