# commute_matcher/services/matching_service/app.py
"""
FastAPI приложение Matching Service.

Endpoints:
- POST /api/v1/matches/find - прогон матчинга для поездки
- GET /health - проверка здоровья
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commute_matcher.common.logger import log_warning, setup_logging
from commute_matcher.config import settings
from commute_matcher.infra.database import close_db, get_db, init_db
from commute_matcher.services.matching_service.dependencies import (
    cleanup_dependencies,
    init_dependencies,
)
from commute_matcher.services.matching_service.routes import router
from commute_matcher.shared.models.common import HealthStatus

SERVICE_NAME = "matching_service"
INVALID_REQUEST_MESSAGE = "Invalid request: submissionId must be a positive integer"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    setup_logging()
    db = await init_db()
    await init_dependencies(db)

    yield

    await cleanup_dependencies()
    await close_db()


app = FastAPI(
    title="Commute Matching Service",
    description="Подбор попутчиков для поездки и оценка совпадений.",
    version=settings.system.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Некорректное тело запроса: тот же формат {success, error}, что и у прогона."""
    await log_warning(f"Некорректный запрос {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": INVALID_REQUEST_MESSAGE},
    )


@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса."""
    db = get_db()
    db_ok = db.is_connected and await db.health_check()
    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if db_ok else "degraded",
        version=settings.system.VERSION,
        dependencies={"postgres": "healthy" if db_ok else "unhealthy"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.server.HOST, port=settings.server.PORT)
