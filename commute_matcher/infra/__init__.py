# commute_matcher/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними ресурсами: PostgreSQL.
"""

from commute_matcher.infra.database import DatabaseManager, get_db, init_db, close_db

__all__ = [
    "DatabaseManager",
    "get_db",
    "init_db",
    "close_db",
]
