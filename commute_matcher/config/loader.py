# commute_matcher/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Секретные данные и адреса инфраструктуры переопределяются из переменных окружения.

Динамические настройки (distance_method, matching_mode) сюда не входят:
они хранятся в таблице config и читаются один раз на каждый прогон матчинга
(см. commute_matcher.core.settings).
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации (можно переопределить через CONFIG_PATH)."""
    env_path = os.getenv("CONFIG_PATH")
    if env_path:
        return Path(env_path)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь без ключей-комментариев."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "commute_matcher"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"  # colored | json
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/commute_matcher.log"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "commute_matcher"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0
    DB_APPLY_SCHEMA: bool = True

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RoutingSettings(BaseModel):
    """Настройки сервиса маршрутизации (Mapbox Directions)."""
    MAPBOX_TOKEN: str = ""
    MAPBOX_BASE_URL: str = "https://api.mapbox.com"
    MAPBOX_PROFILE: str = "mapbox/driving"
    ROUTING_TIMEOUT_SECONDS: float = 5.0

    @field_validator("MAPBOX_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает токен Mapbox из переменных окружения."""
        if not v:
            return os.getenv("MAPBOX_TOKEN", "")
        return v


class MatchingSettings(BaseModel):
    """Значения по умолчанию для матчинга."""
    DEFAULT_DISTANCE_METHOD: str = "great_circle"
    DEFAULT_MATCHING_MODE: str = "hybrid"


class NotificationSettings(BaseModel):
    """Настройки триггера пакетной рассылки уведомлений."""
    NOTIFY_BASE_URL: str = ""
    NOTIFY_PATH: str = "/functions/v1/batch-send-emails"
    SERVICE_KEY: str = ""
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    @field_validator("NOTIFY_BASE_URL", mode="before")
    @classmethod
    def base_url_from_env(cls, v: str) -> str:
        """Получает базовый URL обработчика из переменных окружения."""
        if not v:
            return os.getenv("NOTIFY_BASE_URL", "")
        return v

    @field_validator("SERVICE_KEY", mode="before")
    @classmethod
    def key_from_env(cls, v: str) -> str:
        """Получает сервисный ключ из переменных окружения."""
        if not v:
            return os.getenv("SERVICE_KEY", "")
        return v

    @property
    def url(self) -> str:
        """Полный URL обработчика рассылки."""
        return f"{self.NOTIFY_BASE_URL.rstrip('/')}{self.NOTIFY_PATH}"


class ServerSettings(BaseModel):
    """Настройки HTTP сервера."""
    HOST: str = "0.0.0.0"
    PORT: int = 8095
    CORS_ALLOW_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Создаёт объект Settings из плоского словаря config.json.
        Адреса и секреты переопределяются из переменных окружения.
        """
        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "commute_matcher"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/commute_matcher.log"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "commute_matcher")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
                DB_APPLY_SCHEMA=data.get("DB_APPLY_SCHEMA", True),
            ),
            routing=RoutingSettings(
                MAPBOX_TOKEN=os.getenv("MAPBOX_TOKEN", data.get("MAPBOX_TOKEN", "")),
                MAPBOX_BASE_URL=data.get("MAPBOX_BASE_URL", "https://api.mapbox.com"),
                MAPBOX_PROFILE=data.get("MAPBOX_PROFILE", "mapbox/driving"),
                ROUTING_TIMEOUT_SECONDS=data.get("ROUTING_TIMEOUT_SECONDS", 5.0),
            ),
            matching=MatchingSettings(
                DEFAULT_DISTANCE_METHOD=data.get("DEFAULT_DISTANCE_METHOD", "great_circle"),
                DEFAULT_MATCHING_MODE=data.get("DEFAULT_MATCHING_MODE", "hybrid"),
            ),
            notifications=NotificationSettings(
                NOTIFY_BASE_URL=os.getenv("NOTIFY_BASE_URL", data.get("NOTIFY_BASE_URL", "")),
                NOTIFY_PATH=data.get("NOTIFY_PATH", "/functions/v1/batch-send-emails"),
                SERVICE_KEY=os.getenv("SERVICE_KEY", data.get("SERVICE_KEY", "")),
                NOTIFY_TIMEOUT_SECONDS=data.get("NOTIFY_TIMEOUT_SECONDS", 10.0),
            ),
            server=ServerSettings(
                HOST=os.getenv("HOST", data.get("HOST", "0.0.0.0")),
                PORT=int(os.getenv("PORT", data.get("PORT", 8095))),
                CORS_ALLOW_ORIGINS=data.get("CORS_ALLOW_ORIGINS", ["*"]),
            ),
        )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """Создаёт объект Settings из config.json."""
        return cls.from_dict(load_config_json())


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением config.json подгружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
