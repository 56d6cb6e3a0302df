# commute_matcher/__init__.py
"""
Сервис подбора попутчиков для ежедневных поездок.
"""

__version__ = "1.0.0"
