"""
MODULE: config.settings
RESPONSIBILITY: Acquisition configuration loading and validation.
ALLOWED: os, dotenv, dataclasses.
FORBIDDEN: Network access, business logic (only config).
ERRORS: ConfigurationError (validation).
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from loguru import logger

from core.exceptions import ConfigurationError

DEFAULT_SERVICE_URL = "https://int44.zakupki.gov.ru/eis-integration/services/getDocsIP"
MAX_ARCHIVE_SIZE_BYTES = 100 * 1024 * 1024


@dataclass(frozen=True)
class AcquisitionConfig:
    """
    Настройки получения архивов ЕИС

    Attributes:
        token: Токен физического лица (individualPerson_token)
        service_url: Адрес SOAP-сервиса getDocsIP
        timeout_open: Таймаут установки соединения, сек
        timeout_read: Таймаут чтения данных, сек
        ssl_verify: Проверять TLS-сертификат сервера
        auto_wait_on_block: Ждать снятия блокировки скачивания вместо остановки
        block_wait_time: Пауза при блокировке, сек
        max_wait_time: Суммарный предел ожидания блокировок для одного архива, сек
        max_archive_size: Максимальный размер архива, байт
        retry_attempts: Число попыток скачивания
        retry_delay: Базовая пауза между попытками, сек (растёт линейно)
        wait_notice_interval: Период сообщений о ходе ожидания, сек
    """
    token: Optional[str] = None
    service_url: str = DEFAULT_SERVICE_URL
    timeout_open: int = 30
    timeout_read: int = 120
    ssl_verify: bool = False
    auto_wait_on_block: bool = True
    block_wait_time: int = 610
    max_wait_time: int = 1800
    max_archive_size: int = MAX_ARCHIVE_SIZE_BYTES
    retry_attempts: int = 3
    retry_delay: float = 2.0
    wait_notice_interval: int = 60

    @property
    def timeouts(self) -> tuple:
        """Пара (connect, read) для requests."""
        return (self.timeout_open, self.timeout_read)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ConfigurationError:
            return False
        return True

    def validate(self) -> None:
        """
        Валидация конфигурации

        Raises:
            ConfigurationError: Если токен пустой или числовые параметры не положительны
        """
        if not self.token or not self.token.strip():
            raise ConfigurationError("Токен не задан. Укажите EIS_TOKEN в .env файле")

        positive_fields = {
            "timeout_open": self.timeout_open,
            "timeout_read": self.timeout_read,
            "block_wait_time": self.block_wait_time,
            "max_archive_size": self.max_archive_size,
            "retry_attempts": self.retry_attempts,
        }
        for name, value in positive_fields.items():
            if value <= 0:
                raise ConfigurationError(f"Параметр {name} должен быть положительным, получено {value}")

        if self.max_wait_time < 0 or self.retry_delay < 0:
            raise ConfigurationError("max_wait_time и retry_delay не могут быть отрицательными")

    def with_overrides(self, **changes: Any) -> "AcquisitionConfig":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование конфигурации в словарь (токен замаскирован)"""
        data = asdict(self)
        if self.token:
            data["token"] = f"{self.token[:6]}..."
        return data


def token_from_file(file_path: str) -> Optional[str]:
    """
    Читает токен из файла.

    :param file_path: Путь к файлу с токеном.
    :return: Токен без пробельных символов или None, если файла нет или он пуст.
    """
    path = Path(file_path)
    if not path.exists():
        return None
    content = path.read_text(encoding="utf-8").strip()
    return content or None


class _EnvReader:
    """Типизированное чтение переменных окружения со значениями по умолчанию."""

    def get(self, key: str, default: Any = None) -> Any:
        value = os.getenv(key)
        if value is None or value.strip() == "":
            return default
        return value.strip()

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError) as e:
            logger.warning(f"Неверный формат int для {key}: {e}, используется значение по умолчанию: {default}")
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError) as e:
            logger.warning(f"Неверный формат float для {key}: {e}, используется значение по умолчанию: {default}")
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        return value.lower() in ("true", "1", "yes", "y")


def load_config(env_file: Optional[str] = None) -> AcquisitionConfig:
    """
    Загружает конфигурацию из .env файла и переменных окружения.

    Args:
        env_file: Путь к .env файлу (опционально)

    Returns:
        AcquisitionConfig. Валидация не выполняется: токен может быть
        не нужен, например, для разбора уже скачанных архивов.
    """
    try:
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)
        else:
            load_dotenv()
    except OSError as e:
        logger.warning(f"Не удалось загрузить .env файл: {e}")

    env = _EnvReader()
    token = env.get("EIS_TOKEN")
    if not token:
        token_file = env.get("EIS_TOKEN_FILE")
        if token_file:
            token = token_from_file(token_file)
            if not token:
                logger.error(f"Токен не найден в файле: {token_file}")

    return AcquisitionConfig(
        token=token,
        service_url=env.get("EIS_SERVICE_URL", DEFAULT_SERVICE_URL),
        timeout_open=env.get_int("EIS_TIMEOUT_OPEN", 30),
        timeout_read=env.get_int("EIS_TIMEOUT_READ", 120),
        ssl_verify=env.get_bool("EIS_SSL_VERIFY", False),
        auto_wait_on_block=env.get_bool("EIS_AUTO_WAIT_ON_BLOCK", True),
        block_wait_time=env.get_int("EIS_BLOCK_WAIT_TIME", 610),
        max_wait_time=env.get_int("EIS_MAX_WAIT_TIME", 1800),
        max_archive_size=env.get_int("EIS_MAX_ARCHIVE_SIZE", MAX_ARCHIVE_SIZE_BYTES),
        retry_attempts=env.get_int("EIS_RETRY_ATTEMPTS", 3),
        retry_delay=env.get_float("EIS_RETRY_DELAY", 2.0),
    )
