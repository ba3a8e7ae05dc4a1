import os
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Конфигурация ledger_timeline: сервиса нормализации событий реестра
    и построения таймлайнов по дата-центрам.
    """

    # --- Общая информация ---
    SERVICE_NAME: str = "Ledger Timeline Service"
    VERSION: str = "1.0.0"
    ENV: str = os.getenv("ENV", "dev")

    # --- Реестр известных площадок (JSON-список в .env) ---
    KNOWN_FACILITIES: List[str] = []

    # --- Пагинация таймлайна ---
    WINDOW_INITIAL: int = 20        # сколько событий показываем сразу
    WINDOW_STEP: int = 20           # на сколько расширяем окно за один шаг

    # --- Порог выбросов для кредитного баланса (т CO2e) ---
    EMISSIONS_THRESHOLD: float = 5000.0

    # --- Палитра маркеров ---
    PALETTE_SIZE: int = 100
    PALETTE_SATURATION: int = 70
    PALETTE_LIGHTNESS: int = 60

    # --- Логирование ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Глобальный объект конфигурации
settings = Settings()
