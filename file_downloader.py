"""
MODULE: file_downloader
RESPONSIBILITY: Download EIS archives into memory with retries and block detection.
ALLOWED: requests, time, logging.
FORBIDDEN: Archive decompression, XML parsing.
ERRORS: Returned as Result (FetchError subclasses), never raised.

Скачивание архивов ЕИС.

Класс ArchiveDownloader отвечает за:
- Проверку схемы URL (только http/https)
- Потоковое скачивание с ограничением размера
- Повторные попытки при сетевых и HTTP-ошибках с линейно растущей паузой
- Распознавание временной блокировки скачивания и ожидание её снятия
"""

from __future__ import annotations

import time
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests

from config.settings import AcquisitionConfig
from core.exceptions import (
    ArchiveBlockedError,
    ArchiveTooLargeError,
    EmptyBodyError,
    HttpStatusError,
    InvalidUrlError,
    NetworkError,
    RetriesExhaustedError,
    TenderAcquisitionError,
)
from core.models import FetchedBlob
from core.result import Result
from utils.logger_config import get_logger

logger = get_logger()

# Фразы, которыми ЕИС отвечает вместо архива при временной блокировке ссылки
BLOCK_MARKER_PHRASES: Tuple[str, ...] = (
    "Скачивание архива по данной ссылке заблокировано",
    "Скачивание архива заблокировано",
)

# Рекомендуемое время повторной попытки для вызывающей стороны
BLOCK_RETRY_AFTER_SECONDS = 600

ALLOWED_SCHEMES = ("http", "https")
ARCHIVE_MAGIC_PREFIXES = (b"\x1f\x8b", b"PK")
CHUNK_SIZE = 64 * 1024
ERROR_BODY_LIMIT = 500


class ArchiveDownloader:
    """Класс для скачивания архивов ЕИС в память."""

    def __init__(self, config: AcquisitionConfig, session: Optional[requests.Session] = None):
        """
        Args:
            config: Настройки получения архивов
            session: HTTP-сессия (по умолчанию создаётся новая)
        """
        self.config = config
        self.http_session = session or requests.Session()
        self.http_session.headers.update({"User-Agent": "TenderAcquisition/1.0"})
        if config.token:
            self.http_session.headers["individualPerson_token"] = config.token

    def fetch(self, url: str) -> Result:
        """
        Скачивает архив по ссылке.

        Сетевые и HTTP-ошибки повторяются до retry_attempts раз с паузой
        retry_delay * номер попытки. Блокировка ЕИС не расходует попытки:
        при включённом автоожидании загрузчик ждёт block_wait_time и повторяет
        тот же URL, пока суммарное ожидание не превысит max_wait_time.

        Returns:
            Result с FetchedBlob или с ошибкой FetchError
        """
        if not self._is_valid_url(url):
            return Result.fail(InvalidUrlError(f"Некорректный URL (ожидается http/https): {url!r}"))

        max_attempts = max(self.config.retry_attempts, 1)
        attempt = 0
        waited_seconds = 0
        last_error: Optional[TenderAcquisitionError] = None

        while attempt < max_attempts:
            attempt += 1
            result = self._download_once(url)
            if result.is_success:
                if attempt > 1:
                    logger.info(f"Архив скачан с попытки {attempt}: {url}")
                return result

            error = result.error
            if isinstance(error, ArchiveBlockedError):
                if not self.config.auto_wait_on_block:
                    logger.warning(f"Скачивание заблокировано, автоожидание выключено: {url}")
                    return result
                wait_seconds = self.config.block_wait_time
                if waited_seconds + wait_seconds > self.config.max_wait_time:
                    logger.error(
                        f"Блокировка не снята за {waited_seconds} сек "
                        f"(предел {self.config.max_wait_time} сек): {url}"
                    )
                    return Result.fail(error, metadata={"waited_seconds": waited_seconds})
                self._wait_for_unblock(wait_seconds, url)
                waited_seconds += wait_seconds
                # Ожидание блокировки не считается попыткой
                attempt -= 1
                continue

            if not error.retryable:
                return result

            last_error = error
            if attempt < max_attempts:
                delay = self.config.retry_delay * attempt
                logger.warning(
                    f"Ошибка скачивания (попытка {attempt}/{max_attempts}): "
                    f"{error.message}. Повтор через {delay} сек"
                )
                time.sleep(delay)

        logger.error(f"Не удалось скачать архив {url}: {last_error.message}")
        return Result.fail(
            RetriesExhaustedError(last_error, attempt),
            metadata={"attempts": attempt},
        )

    @staticmethod
    def _is_valid_url(url: Optional[str]) -> bool:
        if not url or not isinstance(url, str):
            return False
        parsed = urlparse(url.strip())
        return parsed.scheme.lower() in ALLOWED_SCHEMES and bool(parsed.netloc)

    def _download_once(self, url: str) -> Result:
        """Одна попытка скачивания без повторов."""
        logger.debug(f"Скачивание архива: {url}")
        try:
            with self.http_session.get(
                url,
                stream=True,
                timeout=self.config.timeouts,
                verify=self.config.ssl_verify,
            ) as response:
                if not 200 <= response.status_code < 300:
                    return Result.fail(HttpStatusError(
                        response.status_code,
                        response.reason or "",
                        self._error_body(response),
                    ))

                content = self._read_limited(response)
                content_type = response.headers.get("Content-Type")
        except ArchiveTooLargeError as error:
            logger.warning(f"{error.message}: {url}")
            return Result.fail(error)
        except requests.RequestException as error:
            return Result.fail(NetworkError(f"Сетевая ошибка: {error}"))

        size = len(content)
        if size == 0:
            return Result.fail(EmptyBodyError(f"Пустой ответ сервера: {url}"))

        if self._is_block_response(content):
            return Result.fail(
                ArchiveBlockedError(retry_after_seconds=BLOCK_RETRY_AFTER_SECONDS),
                metadata={"retry_after_seconds": BLOCK_RETRY_AFTER_SECONDS},
            )

        logger.debug(f"Скачан архив: {size} байт")
        return Result.ok(
            FetchedBlob(content=content, size=size, content_type=content_type),
            metadata={"size": size, "content_type": content_type},
        )

    def _read_limited(self, response: requests.Response) -> bytes:
        """
        Читает тело ответа порциями и прерывает чтение, как только
        размер превысил max_archive_size.
        """
        limit = self.config.max_archive_size
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise ArchiveTooLargeError(int(declared), limit)

        buffer = bytearray()
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            buffer.extend(chunk)
            if len(buffer) > limit:
                raise ArchiveTooLargeError(len(buffer), limit)
        return bytes(buffer)

    @staticmethod
    def _error_body(response: requests.Response) -> Optional[str]:
        """Начало тела ответа для диагностики; битые байты заменяются."""
        try:
            raw = response.content
        except requests.RequestException as error:
            logger.debug(f"Не удалось прочитать тело ответа с ошибкой: {error}")
            return None
        if not raw:
            return None
        return raw[:ERROR_BODY_LIMIT].decode("utf-8", errors="replace")

    @staticmethod
    def _is_block_response(content: bytes) -> bool:
        # Архивы не проверяем: фраза блокировки приходит текстовым ответом
        if content.startswith(ARCHIVE_MAGIC_PREFIXES):
            return False
        text = content.decode("utf-8", errors="replace").lower()
        return any(phrase.lower() in text for phrase in BLOCK_MARKER_PHRASES)

    def _wait_for_unblock(self, wait_seconds: int, url: str) -> None:
        """Ожидание снятия блокировки с периодическими сообщениями о прогрессе."""
        logger.warning(f"Скачивание заблокировано ЕИС, ожидание {wait_seconds} сек: {url}")
        interval = max(self.config.wait_notice_interval, 1)
        remaining = wait_seconds
        while remaining > 0:
            step = min(interval, remaining)
            time.sleep(step)
            remaining -= step
            if remaining > 0:
                logger.info(f"Ожидание снятия блокировки: осталось {remaining} сек")
        logger.info(f"Ожидание завершено, повторное скачивание: {url}")
