#!/usr/bin/env python3
"""
Entrypoint для Matching Service.

Запуск:
    python entrypoints/entrypoint_matching_service.py

Порт по умолчанию: 8095
"""

import os
import sys

# Добавляем корень проекта в PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import uvicorn

from commute_matcher.config import settings


def main() -> None:
    """Запустить Matching Service."""
    uvicorn.run(
        "commute_matcher.services.matching_service.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
