import sys
from typing import Optional

from loguru import logger
from config import settings

SERVICE_TAG = "ledger_timeline"

_configured_level: Optional[str] = None


def setup_logging(level: Optional[str] = None):
    """
    Настраивает loguru-логгер для ledger_timeline.

    Логи идут в stdout (Docker-friendly), уровень берём из settings.LOG_LEVEL
    либо из аргумента. Роутеры и движок вызывают функцию при импорте,
    поэтому повторный вызов с тем же уровнем ничего не переустанавливает.
    """
    global _configured_level

    effective_level = (level or settings.LOG_LEVEL).upper()
    if _configured_level == effective_level:
        return logger

    logger.remove()
    logger.configure(extra={"service": SERVICE_TAG})

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<magenta>{extra[service]}</magenta> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        colorize=True,
        format=log_format,
        level=effective_level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )
    _configured_level = effective_level

    logger.info(f"📜 Logging initialized for {SERVICE_TAG} (level={effective_level})")
    return logger
