# services/stoppage_service/config.py

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Конфигурация stoppage_service — учёт простоев оборудования.
    Загружается из переменных окружения (.env) или docker-compose.
    """

    # --- Общая информация ---
    SERVICE_NAME: str = "stoppage_service"
    VERSION: str = "1.0.0"
    ENV: str = os.getenv("ENV", "dev")

    # --- Подключения ---
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://postgres:postgres@db:5432/downtime"
    )
    DB_SCHEMA: str = os.getenv("DB_SCHEMA", "downtime")

    # --- Тенанты ---
    TENANT_HEADER: str = "X-Tenant-Id"
    ALL_TENANTS_TOKEN: str = "*"          # агрегированный доступ (только привилегированные вызовы)

    # --- История простоев ---
    HISTORY_DEFAULT_LIMIT: int = 50
    HISTORY_MAX_LIMIT: int = 200

    # --- Логирование ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Метрики / API ---
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Единый экземпляр конфигурации для импорта
settings = Settings()
