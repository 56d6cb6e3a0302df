#!/usr/bin/env python3
# main.py
"""
Главная точка входа Commute Matcher.
Запускает HTTP сервис матчинга или один прогон матчинга из командной строки.
"""

from __future__ import annotations

import asyncio
import json
import sys

from commute_matcher.config import settings
from commute_matcher.common.constants import TypeMsg
from commute_matcher.common.logger import log_info, setup_logging


async def run_matching_service() -> None:
    """Запускает Matching Service (HTTP триггер прогона матчинга)."""
    import uvicorn

    await log_info(
        f"Запуск Matching Service на порту {settings.server.PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "commute_matcher.services.matching_service.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Matching Service: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_single_match(journey_id: int) -> int:
    """
    Выполняет один прогон матчинга для поездки и печатает результат в JSON.

    Returns:
        Код выхода процесса (0 при успехе)
    """
    from commute_matcher.infra.database import close_db, init_db
    from commute_matcher.services.matching_service.dependencies import (
        cleanup_dependencies,
        get_matching_service,
        init_dependencies,
    )

    db = await init_db()
    await init_dependencies(db)
    try:
        result = await get_matching_service().run(journey_id)
    finally:
        await cleanup_dependencies()
        await close_db()

    print(json.dumps(result.to_response(), ensure_ascii=False))
    return 0 if result.success else 1


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Commute Matcher — подбор попутчиков для ежедневных поездок

Использование:
    python main.py serve                 — HTTP сервис матчинга (:8095)
    python main.py match <submission_id> — один прогон матчинга, результат в JSON
""")


def main(argv: list[str]) -> int:
    """Разбирает аргументы командной строки и запускает выбранный режим."""
    setup_logging()

    if not argv or argv[0] in ("--help", "-h"):
        print_usage()
        return 0

    mode = argv[0].lower()

    if mode == "serve":
        asyncio.run(run_matching_service())
        return 0

    if mode == "match":
        if len(argv) < 2 or not argv[1].isdigit():
            print("Ошибка: укажите числовой submission_id")
            print_usage()
            return 1
        return asyncio.run(run_single_match(int(argv[1])))

    print(f"Ошибка: неизвестный режим '{mode}'")
    print_usage()
    return 1


if __name__ == "__main__":
    try:
        sys.exit(main(sys.argv[1:]))
    except KeyboardInterrupt:
        pass
