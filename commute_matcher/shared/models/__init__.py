# commute_matcher/shared/models/__init__.py
"""
Pydantic модели HTTP API.
"""

from commute_matcher.shared.models.common import HealthStatus
from commute_matcher.shared.models.matching_dto import FindMatchesRequest, FindMatchesResponse

__all__ = [
    "HealthStatus",
    "FindMatchesRequest",
    "FindMatchesResponse",
]
