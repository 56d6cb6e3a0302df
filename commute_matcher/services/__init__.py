# commute_matcher/services/__init__.py
"""
HTTP сервисы приложения.

- matching_service: входящий триггер прогона матчинга
"""

__all__: list[str] = []
