"""
Координатор поиска тендеров.

Связывает запрос к сервису ЕИС, скачивание, распаковку и разбор архивов.
Режимы:
- search: обработка всех архивов подряд, ошибки только учитываются
- search_resumable: при блокировке скачивания обработка останавливается
  и возвращается контрольная точка, с которой её можно продолжить
- search_enhanced: как search, но с вложениями в каждой записи
- search_all: search по нескольким подсистемам
"""

from typing import Dict, Iterable, Optional

from archive_extractor import ArchiveExtractor
from config.settings import AcquisitionConfig
from core.document_types import (
    DEFAULT_DOCUMENT_TYPE,
    DEFAULT_SEARCH_SUBSYSTEMS,
    DEFAULT_SUBSYSTEM,
    description_for_subsystem,
    document_types_for_subsystem,
)
from core.exceptions import ArchiveBlockedError, ConfigurationError
from core.models import (
    AcquisitionState,
    ArchiveHandle,
    FailureRecord,
    ResumeCheckpoint,
    SearchOutcome,
)
from core.result import Result
from eis_requester import EISRequester
from file_downloader import ArchiveDownloader
from parsing_xml.xml_parser import TenderXMLParser
from utils.logger_config import get_logger

from .archive_processing_service import ArchiveProcessingService

logger = get_logger()


class TenderSearchCoordinator:
    """Координатор получения тендеров из архивов ЕИС."""

    def __init__(
        self,
        config: AcquisitionConfig,
        query_service: Optional[EISRequester] = None,
        downloader: Optional[ArchiveDownloader] = None,
        extractor: Optional[ArchiveExtractor] = None,
        parser: Optional[TenderXMLParser] = None,
    ):
        """
        Args:
            config: Настройки получения архивов
            query_service: Клиент сервиса ЕИС (по умолчанию EISRequester)
            downloader: Загрузчик архивов
            extractor: Распаковщик архивов
            parser: Разборщик XML
        """
        self.config = config
        self.query_service = query_service or EISRequester(config)
        self.downloader = downloader or ArchiveDownloader(config)
        self.extractor = extractor or ArchiveExtractor()
        self.parser = parser or TenderXMLParser()
        self.archive_service = ArchiveProcessingService(self.downloader, self.extractor, self.parser)

    # === Делегаты ===

    def get_docs_by_region(self, org_region, exact_date, subsystem_type=DEFAULT_SUBSYSTEM,
                           document_type=DEFAULT_DOCUMENT_TYPE) -> Result:
        return self.query_service.get_docs_by_region(org_region, exact_date, subsystem_type, document_type)

    def get_docs_by_reestr_number(self, reestr_number, subsystem_type=DEFAULT_SUBSYSTEM) -> Result:
        return self.query_service.get_docs_by_reestr_number(reestr_number, subsystem_type)

    def download_archive_data(self, url: str) -> Result:
        return self.archive_service.download_archive_data(url)

    def parse_xml_document(self, xml_content) -> Result:
        return self.parser.parse(xml_content)

    def extract_attachments_from_xml(self, xml_content) -> Result:
        return self.parser.extract_attachments(xml_content)

    # === Поиск ===

    def search(
        self,
        org_region: str,
        exact_date: str,
        subsystem_type: str = DEFAULT_SUBSYSTEM,
        document_type: str = DEFAULT_DOCUMENT_TYPE,
    ) -> Result:
        """
        Поиск тендеров: запрос ссылок и обработка всех архивов.

        Заблокированный архив (если автоожидание не помогло) учитывается как
        ошибка, обработка продолжается со следующего.

        Returns:
            Result с SearchOutcome или с ошибкой запроса к ЕИС
        """
        state_result = self._query_state(org_region, exact_date, subsystem_type, document_type)
        if state_result.is_failure:
            return state_result
        return self._process_archives(state_result.data, resumable=False, include_attachments=False)

    def search_enhanced(
        self,
        org_region: str,
        exact_date: str,
        subsystem_type: str = DEFAULT_SUBSYSTEM,
        document_type: str = DEFAULT_DOCUMENT_TYPE,
        include_attachments: bool = True,
    ) -> Result:
        """search с добавлением attachments и attachments_count в записи тендеров."""
        state_result = self._query_state(org_region, exact_date, subsystem_type, document_type)
        if state_result.is_failure:
            return state_result
        return self._process_archives(
            state_result.data, resumable=False, include_attachments=include_attachments
        )

    def search_resumable(
        self,
        org_region: str,
        exact_date: str,
        subsystem_type: str = DEFAULT_SUBSYSTEM,
        document_type: str = DEFAULT_DOCUMENT_TYPE,
        resume_state: Optional[AcquisitionState] = None,
    ) -> Result:
        """
        Поиск с возможностью продолжения после блокировки.

        Без resume_state выполняется запрос к ЕИС и обработка с первого архива.
        С resume_state запрос не выполняется: обработка продолжается с
        resume_state.next_archive_index по сохранённому списку ссылок,
        накопленные записи и счётчики сохраняются.

        Returns:
            Result с SearchOutcome при завершении. При блокировке - неуспешный
            Result с ArchiveBlockedError, data=ResumeCheckpoint и metadata
            resume_state, retry_after_seconds, blocked_until.
        """
        if resume_state is None:
            state_result = self._query_state(org_region, exact_date, subsystem_type, document_type)
            if state_result.is_failure:
                return state_result
            state = state_result.data
        else:
            if not 0 <= resume_state.next_archive_index <= len(resume_state.archive_urls):
                return Result.fail(ConfigurationError(
                    f"Индекс продолжения {resume_state.next_archive_index} вне диапазона 0..{len(resume_state.archive_urls)}"
                ))
            # Копия, чтобы не менять переданное состояние
            state = AcquisitionState.from_dict(resume_state.to_dict())
            logger.info(
                f"Продолжение обработки с архива {state.next_archive_index + 1}/{len(state.archive_urls)}, "
                f"уже найдено тендеров: {len(state.tenders)}"
            )

        return self._process_archives(state, resumable=True, include_attachments=False)

    def search_all(
        self,
        org_region: str,
        exact_date: str,
        subsystems: Optional[Iterable[str]] = None,
        document_types: Optional[Dict[str, str]] = None,
    ) -> Result:
        """
        search по нескольким подсистемам.

        Для каждой подсистемы берётся тип документа из document_types,
        иначе первый подходящий тип. Записи помечаются subsystem_type,
        subsystem_description и document_type_used. Ошибка одной подсистемы
        не прерывает поиск по остальным.

        Returns:
            Result с общим SearchOutcome; metadata["subsystem_errors"] -
            ошибки по подсистемам
        """
        subsystems = list(subsystems or DEFAULT_SEARCH_SUBSYSTEMS)
        document_types = document_types or {}

        combined = SearchOutcome(
            tenders=[], total_archives=0, archives_processed=0, archives_failed=0, total_files=0
        )
        subsystem_errors = []

        for subsystem_type in subsystems:
            document_type = document_types.get(subsystem_type) or document_types_for_subsystem(subsystem_type)[0]
            description = description_for_subsystem(subsystem_type)
            logger.info(f"Поиск в подсистеме {subsystem_type} ({description}), тип {document_type}")

            result = self.search(org_region, exact_date, subsystem_type, document_type)
            if result.is_failure:
                logger.warning(f"Подсистема {subsystem_type}: {result.error_message}")
                subsystem_errors.append({
                    "subsystem_type": subsystem_type,
                    "document_type": document_type,
                    "error": result.error_message,
                })
                continue

            outcome = result.data
            for tender in outcome.tenders:
                tender["subsystem_type"] = subsystem_type
                tender["subsystem_description"] = description
                tender["document_type_used"] = document_type
            combined.tenders.extend(outcome.tenders)
            combined.total_archives += outcome.total_archives
            combined.archives_processed += outcome.archives_processed
            combined.archives_failed += outcome.archives_failed
            combined.total_files += outcome.total_files
            combined.files_failed += outcome.files_failed
            combined.failures.extend(outcome.failures)

        logger.info(
            f"Поиск по {len(subsystems)} подсистемам завершён: тендеров {combined.total_tenders}, "
            f"подсистем с ошибками {len(subsystem_errors)}"
        )
        return Result.ok(combined, metadata={"subsystems": subsystems, "subsystem_errors": subsystem_errors})

    # === Внутренняя логика ===

    def _query_state(self, org_region, exact_date, subsystem_type, document_type) -> Result:
        """Запрос ссылок на архивы; ошибка запроса прерывает весь поиск."""
        logger.info(f"Поиск тендеров: регион {org_region}, дата {exact_date}")
        query_result = self.query_service.get_docs_by_region(
            org_region, exact_date, subsystem_type, document_type
        )
        if query_result.is_failure:
            logger.error(f"Запрос к ЕИС не выполнен: {query_result.error_message}")
            return query_result

        urls = query_result.data or []
        logger.info(f"Найдено архивов: {len(urls)}")
        return Result.ok(AcquisitionState(archive_urls=[ArchiveHandle(url) for url in urls]))

    def _process_archives(self, state: AcquisitionState, resumable: bool, include_attachments: bool) -> Result:
        total = len(state.archive_urls)

        while state.next_archive_index < total:
            index = state.next_archive_index
            handle = state.archive_urls[index]
            logger.info(f"Обработка архива {index + 1}/{total}")

            result = self.archive_service.process_archive(
                handle.url,
                index,
                stamp_index=resumable,
                include_attachments=include_attachments,
            )

            if result.is_failure:
                error = result.error
                if resumable and isinstance(error, ArchiveBlockedError):
                    return self._checkpoint(state, handle, error)

                logger.warning(f"Архив {index + 1}/{total} не обработан: {error.message}")
                state.archives_failed += 1
                state.failures.append(FailureRecord(
                    archive_index=index,
                    archive_url=handle.url,
                    error=error.message,
                    category=error.category.value,
                ))
            else:
                outcome = result.data
                state.archives_processed += 1
                state.total_files += outcome.total_files
                state.files_failed += len(outcome.failures)
                state.failures.extend(outcome.failures)
                state.tenders.extend(outcome.tenders)

            state.next_archive_index = index + 1

        search_outcome = SearchOutcome(
            tenders=state.tenders,
            total_archives=total,
            archives_processed=state.archives_processed,
            archives_failed=state.archives_failed,
            total_files=state.total_files,
            files_failed=state.files_failed,
            failures=state.failures,
        )
        logger.info(
            f"Поиск завершён: тендеров {search_outcome.total_tenders}, файлов {search_outcome.total_files}, "
            f"архивов обработано {search_outcome.archives_processed}, с ошибками {search_outcome.archives_failed}"
        )
        return Result.ok(search_outcome, metadata={"total_archives": total})

    @staticmethod
    def _checkpoint(state: AcquisitionState, handle: ArchiveHandle, error: ArchiveBlockedError) -> Result:
        logger.warning(
            f"Скачивание заблокировано на архиве {state.next_archive_index + 1}/{len(state.archive_urls)}. "
            f"Продолжить можно после {error.blocked_until:%H:%M:%S} "
            f"(через {error.retry_after_seconds} сек)"
        )
        checkpoint = ResumeCheckpoint(
            state=state,
            retry_after_seconds=error.retry_after_seconds,
            blocked_until=error.blocked_until,
            blocked_url=handle.url,
        )
        return Result.fail(
            error,
            data=checkpoint,
            metadata={
                "resume_state": state,
                "retry_after_seconds": error.retry_after_seconds,
                "blocked_until": error.blocked_until,
                "archive_index": state.next_archive_index,
            },
        )
