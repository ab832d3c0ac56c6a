"""
MODULE: core.exceptions
RESPONSIBILITY: Define the error taxonomy of the acquisition pipeline.
ALLOWED: Inheriting from TenderAcquisitionError, structured attributes.
FORBIDDEN: Business logic, I/O.
ERRORS: None.

Исключения пайплайна получения тендеров.

Каждый класс несёт категорию (ErrorCategory), по которой оркестратор решает,
повторять ли операцию, останавливаться с контрольной точкой или просто
учесть ошибку в счётчиках и идти дальше.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Категории ошибок"""
    INVALID_INPUT = "invalid_input"
    TRANSIENT = "transient"
    BLOCKED = "blocked"
    PARTIAL_DATA = "partial_data"
    FATAL = "fatal"


class TenderAcquisitionError(Exception):
    """Базовое исключение пайплайна"""

    category = ErrorCategory.FATAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.category is ErrorCategory.TRANSIENT

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }


class ConfigurationError(TenderAcquisitionError):
    """Ошибка конфигурации или пустой параметр запроса"""

    category = ErrorCategory.INVALID_INPUT


# === Скачивание архивов ===

class FetchError(TenderAcquisitionError):
    """Базовая ошибка скачивания архива"""

    category = ErrorCategory.TRANSIENT


class InvalidUrlError(FetchError):
    """URL пустой или со схемой, отличной от http/https"""

    category = ErrorCategory.INVALID_INPUT


class ArchiveTooLargeError(FetchError):
    """Архив превышает допустимый размер"""

    category = ErrorCategory.INVALID_INPUT

    def __init__(self, size: int, limit: int):
        super().__init__(f"Архив слишком большой: {size} байт (максимум {limit})")
        self.size = size
        self.limit = limit


class EmptyBodyError(FetchError):
    """Сервер вернул успешный ответ без содержимого"""

    category = ErrorCategory.INVALID_INPUT


class HttpStatusError(FetchError):
    """Неуспешный HTTP-статус"""

    def __init__(self, status_code: int, reason: str, body: Optional[str] = None):
        super().__init__(f"HTTP ошибка: {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason
        self.body = body

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class NetworkError(FetchError):
    """Сетевая ошибка (соединение, таймаут, обрыв потока)"""


class ArchiveBlockedError(FetchError):
    """Скачивание архива временно заблокировано ЕИС"""

    category = ErrorCategory.BLOCKED

    def __init__(self, message: str = "Скачивание архива временно заблокировано",
                 retry_after_seconds: int = 600):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
        self.blocked_until = datetime.now() + timedelta(seconds=retry_after_seconds)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        data["blocked_until"] = self.blocked_until.isoformat()
        return data


class RetriesExhaustedError(FetchError):
    """Все попытки скачивания исчерпаны"""

    def __init__(self, last_error: TenderAcquisitionError, attempts: int):
        super().__init__(f"Исчерпаны попытки скачивания ({attempts}): {last_error.message}")
        self.last_error = last_error
        self.attempts = attempts

    @property
    def retryable(self) -> bool:
        return False


# === Распаковка ===

class DecodeError(TenderAcquisitionError):
    """Базовая ошибка распаковки архива"""

    category = ErrorCategory.TRANSIENT


class UnknownFormatError(DecodeError):
    """Содержимое не является ни GZIP, ни ZIP"""

    category = ErrorCategory.INVALID_INPUT


class GzipDecodeError(DecodeError):
    """Ошибка распаковки GZIP"""


class ZipDecodeError(DecodeError):
    """ZIP-архив не удалось открыть"""


# === Разбор XML ===

class ParseError(TenderAcquisitionError):
    """Базовая ошибка разбора XML"""

    category = ErrorCategory.PARTIAL_DATA


class EmptyInputError(ParseError):
    """Пустой XML"""

    category = ErrorCategory.INVALID_INPUT


class MalformedXmlError(ParseError):
    """Парсер сообщил о структурной ошибке XML"""


# === Запросы к ЕИС ===

class QueryError(TenderAcquisitionError):
    """Ошибка SOAP-запроса к сервису получения документов"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
