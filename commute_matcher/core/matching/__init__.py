# commute_matcher/core/matching/__init__.py
"""
Домен матчинга поездок.
Слияние кандидатов, проверка совместимости, оценка и прогон матчинга.
"""

from commute_matcher.core.matching.evaluator import CompatibilityEvaluator
from commute_matcher.core.matching.exceptions import JourneyNotFoundError, MatchingError
from commute_matcher.core.matching.merger import merge_candidates
from commute_matcher.core.matching.models import (
    Candidate,
    Evaluation,
    Journey,
    MatchRunConfig,
    MatchRunResult,
)
from commute_matcher.core.matching.scoring import canonical_pair, match_strength
from commute_matcher.core.matching.service import MatchingService

__all__ = [
    "Candidate",
    "CompatibilityEvaluator",
    "Evaluation",
    "Journey",
    "JourneyNotFoundError",
    "MatchRunConfig",
    "MatchRunResult",
    "MatchingError",
    "MatchingService",
    "canonical_pair",
    "match_strength",
    "merge_candidates",
]
