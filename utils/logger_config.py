"""
Настройка логирования для проекта.
Консоль получает сообщения уровня LOG_LEVEL (по умолчанию INFO),
файловые логи подключаются явно через configure_file_logging().
"""
import os
import sys
from pathlib import Path
from typing import Union

from loguru import logger

# Удаляем стандартный обработчик loguru и ставим свой консольный
logger.remove()
logger.add(
    sys.stderr,
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
)

_file_sinks_configured = False


def configure_file_logging(log_dir: Union[str, Path] = ".") -> None:
    """
    Подключает файловые логи: errors.log (только ошибки) и debug.log (всё подряд).
    Повторный вызов ничего не делает.
    """
    global _file_sinks_configured
    if _file_sinks_configured:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path / "errors.log",
        level="ERROR",
        rotation="1 week",
        compression="zip",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
        backtrace=True,
        diagnose=True,
    )
    logger.add(
        log_path / "debug.log",
        level="DEBUG",
        rotation="1 day",
        compression="zip",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
        retention="7 days",
    )
    _file_sinks_configured = True


def get_logger():
    """Возвращает настроенный logger."""
    return logger
