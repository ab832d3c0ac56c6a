"""
MODULE: archive_extractor
RESPONSIBILITY: Decompress downloaded EIS archives (gzip-wrapped zip or bare zip) in memory.
ALLOWED: gzip, zipfile, zlib, io, logging.
FORBIDDEN: Network access, XML parsing.
ERRORS: Returned as Result (DecodeError subclasses), never raised.

Распаковка архивов ЕИС в памяти.

Формат определяется по первым байтам: 1F 8B - GZIP, внутри которого ZIP;
"PK" - сразу ZIP. Повреждённая запись ZIP пропускается, остальные
возвращаются. Архив, который не удаётся открыть целиком, - ошибка.
"""

from __future__ import annotations

import gzip
import io
import zipfile
import zlib
from typing import Dict, Optional

from core.exceptions import GzipDecodeError, UnknownFormatError, ZipDecodeError
from core.models import ExtractedFile
from core.result import Result
from utils.logger_config import get_logger

logger = get_logger()

GZIP_MAGIC = b"\x1f\x8b"
ZIP_MAGIC = b"PK"

# Флаг UTF-8 в имени записи ZIP (bit 11)
_UTF8_NAME_FLAG = 0x800


class ArchiveExtractor:
    """Класс для распаковки архивов ЕИС из памяти."""

    def extract(self, content: Optional[bytes]) -> Result:
        """
        Распаковывает архив.

        Returns:
            Result с dict[имя записи -> ExtractedFile] и metadata
            (format, compressed_size, decompressed_size, file_count, skipped_entries)
        """
        if not content:
            return Result.fail(UnknownFormatError("Пустое содержимое архива"))

        header = content[:2]
        if header == GZIP_MAGIC:
            gunzip_result = self.decompress_gzip(content)
            if gunzip_result.is_failure:
                return gunzip_result
            zip_result = self.extract_zip(gunzip_result.data)
            if zip_result.is_success:
                zip_result.metadata.update({
                    "format": "gzip+zip",
                    "compressed_size": len(content),
                    "decompressed_size": len(gunzip_result.data),
                })
            return zip_result

        if header == ZIP_MAGIC:
            zip_result = self.extract_zip(content)
            if zip_result.is_success:
                zip_result.metadata.update({
                    "format": "zip",
                    "compressed_size": None,
                    "decompressed_size": len(content),
                })
            return zip_result

        return Result.fail(UnknownFormatError(
            f"Неизвестный формат архива (не GZIP и не ZIP), первые байты: {header.hex()}"
        ))

    @staticmethod
    def decompress_gzip(content: bytes) -> Result:
        """Распаковка GZIP целиком в память."""
        logger.debug("Распаковка GZIP-архива")
        try:
            decompressed = gzip.decompress(content)
        except (OSError, EOFError, zlib.error) as error:
            logger.warning(f"Ошибка распаковки GZIP: {error}")
            return Result.fail(GzipDecodeError(f"Ошибка распаковки GZIP: {error}"))

        logger.debug(f"GZIP распакован: {len(content)} -> {len(decompressed)} байт")
        return Result.ok(
            decompressed,
            metadata={"compressed_size": len(content), "decompressed_size": len(decompressed)},
        )

    def extract_zip(self, content: bytes) -> Result:
        """Извлечение всех файлов ZIP-архива; повреждённые записи пропускаются."""
        logger.debug("Извлечение ZIP-архива из памяти")
        files: Dict[str, ExtractedFile] = {}
        skipped = []

        try:
            with zipfile.ZipFile(io.BytesIO(content)) as zip_ref:
                for zip_info in zip_ref.infolist():
                    if zip_info.is_dir():
                        continue
                    name = self._decode_entry_name(zip_info)
                    try:
                        data = zip_ref.read(zip_info)
                    except (zipfile.BadZipFile, zlib.error, OSError, EOFError, ValueError,
                            RuntimeError, NotImplementedError) as error:
                        logger.warning(f"Пропущена повреждённая запись архива {name}: {error}")
                        skipped.append(name)
                        continue

                    logger.debug(f"Извлечён файл: {name} ({zip_info.file_size} байт)")
                    files[name] = ExtractedFile(
                        name=name,
                        content=data,
                        size=zip_info.file_size,
                        compressed_size=zip_info.compress_size,
                        checksum=zip_info.CRC,
                    )
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError, ValueError,
                NotImplementedError) as error:
            logger.warning(f"Повреждённый ZIP-архив: {error}")
            return Result.fail(ZipDecodeError(f"Ошибка извлечения ZIP: {error}"))

        logger.debug(f"Извлечено {len(files)} файлов из ZIP-архива")
        return Result.ok(files, metadata={"file_count": len(files), "skipped_entries": skipped})

    @staticmethod
    def _decode_entry_name(zip_info: zipfile.ZipInfo) -> str:
        """
        Имена без флага UTF-8 zipfile читает как cp437; архивы с русскими
        именами обычно записаны в cp866.
        """
        if zip_info.flag_bits & _UTF8_NAME_FLAG:
            return zip_info.filename
        try:
            return zip_info.filename.encode("cp437").decode("cp866")
        except (UnicodeEncodeError, UnicodeDecodeError):
            return zip_info.filename
