import sys
from loguru import logger
from config import settings


def setup_logging():
    """
    Настраивает loguru-логгер для stoppage_service.

    Логи выводятся в stdout (для Docker), формат короткий и читаемый.
    Уровень логирования задаётся через settings.LOG_LEVEL.
    """
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        colorize=True,
        format=log_format,
        level=settings.LOG_LEVEL.upper(),
        enqueue=True,       # потокобезопасность в Docker
        backtrace=False,
        diagnose=False
    )

    logger.info(f"📜 Logging initialized with level: {settings.LOG_LEVEL.upper()}")
    return logger
