"""
Обработка одного архива: скачивание, распаковка, разбор XML-файлов.

Ошибка отдельного файла не прерывает обработку архива: она попадает
в журнал ошибок архива, остальные файлы обрабатываются дальше.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from archive_extractor import ArchiveExtractor
from core.exceptions import ErrorCategory, TenderAcquisitionError
from core.models import DocumentType, ExtractedFile, FailureRecord
from core.result import Result
from file_downloader import ArchiveDownloader
from parsing_xml.xml_parser import TenderXMLParser
from utils.logger_config import get_logger

logger = get_logger()

XML_EXTENSION = ".xml"


@dataclass
class ArchiveOutcome:
    """Итог обработки одного архива"""
    tenders: List[Dict[str, Any]] = field(default_factory=list)
    total_files: int = 0
    xml_files: int = 0
    failures: List[FailureRecord] = field(default_factory=list)


class ArchiveProcessingService:
    """Сервис обработки одного архива ЕИС."""

    def __init__(self, downloader: ArchiveDownloader, extractor: ArchiveExtractor, parser: TenderXMLParser):
        self.downloader = downloader
        self.extractor = extractor
        self.parser = parser

    def download_archive_data(self, url: str) -> Result:
        """
        Скачивание и распаковка архива.

        Returns:
            Result с dict[имя файла -> ExtractedFile]; metadata объединяет
            сведения загрузчика и распаковщика
        """
        fetch_result = self.downloader.fetch(url)
        if fetch_result.is_failure:
            return fetch_result

        extract_result = self.extractor.extract(fetch_result.data.content)
        if extract_result.is_failure:
            logger.warning(f"Не удалось распаковать архив {url}: {extract_result.error_message}")
            return extract_result

        metadata = dict(fetch_result.metadata)
        metadata.update(extract_result.metadata)
        return Result.ok(extract_result.data, metadata=metadata)

    def process_archive(
        self,
        url: str,
        archive_index: int,
        stamp_index: bool = False,
        include_attachments: bool = False,
    ) -> Result:
        """
        Полная обработка архива.

        Args:
            url: Ссылка на архив
            archive_index: Порядковый номер архива в списке ответа
            stamp_index: Добавлять archive_index в записи тендеров
            include_attachments: Добавлять сведения о вложениях

        Returns:
            Result с ArchiveOutcome или с ошибкой скачивания/распаковки
        """
        try:
            download_result = self.download_archive_data(url)
        except Exception as error:
            logger.exception(f"Непредвиденная ошибка при скачивании или распаковке {url}")
            return Result.fail(TenderAcquisitionError(f"Непредвиденная ошибка обработки архива: {error}"))
        if download_result.is_failure:
            return download_result

        files: Dict[str, ExtractedFile] = download_result.data
        outcome = ArchiveOutcome(total_files=len(files))

        for file_name, extracted in files.items():
            if not file_name.lower().endswith(XML_EXTENSION):
                continue
            outcome.xml_files += 1

            try:
                record_result = self._process_file(extracted, include_attachments)
            except Exception as error:
                logger.exception(f"Непредвиденная ошибка при разборе {file_name} из {url}")
                outcome.failures.append(FailureRecord(
                    archive_index=archive_index,
                    archive_url=url,
                    file_name=file_name,
                    error=str(error),
                    category=ErrorCategory.FATAL.value,
                ))
                continue

            if record_result.is_failure:
                logger.warning(f"Файл {file_name} пропущен: {record_result.error_message}")
                outcome.failures.append(FailureRecord(
                    archive_index=archive_index,
                    archive_url=url,
                    file_name=file_name,
                    error=record_result.error_message,
                    category=record_result.error.category.value,
                ))
                continue

            record = record_result.data
            if record is None:
                continue

            record["source_file"] = file_name
            record["archive_url"] = url
            record["processed_at"] = datetime.now()
            if stamp_index:
                record["archive_index"] = archive_index
            outcome.tenders.append(record)

        logger.info(
            f"Архив обработан: файлов {outcome.total_files}, XML {outcome.xml_files}, "
            f"тендеров {len(outcome.tenders)}, ошибок {len(outcome.failures)}"
        )
        return Result.ok(outcome, metadata=download_result.metadata)

    def _process_file(self, extracted: ExtractedFile, include_attachments: bool) -> Result:
        """Запись тендера из файла; data=None, если файл не извещение или без реестрового номера."""
        parse_result = self.parser.parse(extracted.content)
        if parse_result.is_failure:
            return parse_result

        document = parse_result.data
        if document.document_type is not DocumentType.TENDER:
            return Result.ok(None)

        record: Optional[Dict[str, Any]] = dict(document.content)
        if not record.get("reestr_number"):
            return Result.ok(None)

        if include_attachments:
            attachments_result = self.parser.extract_attachments(extracted.content)
            if attachments_result.is_success:
                record["attachments"] = [item.to_dict() for item in attachments_result.data]
                record["attachments_count"] = len(attachments_result.data)
            else:
                logger.debug(f"Вложения не извлечены: {attachments_result.error_message}")

        return Result.ok(record)
