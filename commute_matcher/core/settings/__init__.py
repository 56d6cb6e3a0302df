# commute_matcher/core/settings/__init__.py
"""
Динамические настройки матчинга.
"""

from commute_matcher.core.settings.repository import RuntimeConfigRepository

__all__ = [
    "RuntimeConfigRepository",
]
