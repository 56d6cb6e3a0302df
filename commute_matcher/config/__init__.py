# commute_matcher/config/__init__.py
"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from commute_matcher.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
