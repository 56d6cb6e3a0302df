# commute_matcher/shared/events/match_events.py
"""
События домена совпадений.
"""

from __future__ import annotations

from typing import Literal

from commute_matcher.common.constants import DistanceMethod, EventType, Orientation
from commute_matcher.shared.events.base import DomainEvent


class MatchDetected(DomainEvent):
    """Событие: найдено и сохранено новое совпадение."""

    event_type: Literal["match_detected"] = EventType.MATCH_DETECTED.value

    matched_with: int
    start_dist: float  # км, округлено до 0.1
    end_dist: float    # км, округлено до 0.1
    match_strength: int
    direction: Orientation
    distance_method: DistanceMethod
