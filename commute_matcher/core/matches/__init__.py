# commute_matcher/core/matches/__init__.py
"""
Домен совпадений: идемпотентная запись совпадений и событий аудита.
"""

from commute_matcher.core.matches.models import Match
from commute_matcher.core.matches.repository import MatchRepository

__all__ = [
    "Match",
    "MatchRepository",
]
