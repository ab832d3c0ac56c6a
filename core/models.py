"""
MODULE: core.models
RESPONSIBILITY: Define domain data structures (dataclasses, enums).
ALLOWED: Dataclasses, Enums, Typing.
FORBIDDEN: Business logic, network or database operations.
ERRORS: None.

Модели данных пайплайна получения тендеров ЕИС

Модуль содержит dataclass модели для:
- скачанных архивов и извлечённых из них файлов
- записей тендеров и их вложенных разделов (лоты, объекты закупки)
- состояния многоархивной обработки (контрольная точка для продолжения)
- итогов поиска
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


def compact(values: Dict[str, Any]) -> Dict[str, Any]:
    """Убирает из словаря пустые значения (None, пустые строки и словари)."""
    return {
        key: value
        for key, value in values.items()
        if value is not None and value != "" and value != {}
    }


class DocumentType(Enum):
    """Типы XML-документов ЕИС"""
    TENDER = "tender"
    CONTRACT = "contract"
    ORGANIZATION = "organization"
    UNKNOWN = "unknown"


class NameKind(Enum):
    """Чем является наименование объекта закупки"""
    PRODUCT_NAME = "product_name"
    CHARACTERISTIC = "characteristic"


@dataclass(frozen=True)
class ArchiveHandle:
    """Ссылка на архив из ответа сервиса ЕИС"""
    url: str


@dataclass
class FetchedBlob:
    """
    Скачанное содержимое архива

    Attributes:
        content: Байты ответа
        size: Размер в байтах
        content_type: Заголовок Content-Type (не проверяется)
    """
    content: bytes
    size: int
    content_type: Optional[str] = None


@dataclass
class ExtractedFile:
    """
    Файл, извлечённый из ZIP-архива

    Attributes:
        name: Имя записи в архиве
        content: Распакованное содержимое
        size: Исходный размер
        compressed_size: Размер в сжатом виде
        checksum: CRC32 записи
    """
    name: str
    content: bytes
    size: int
    compressed_size: Optional[int] = None
    checksum: Optional[int] = None


@dataclass
class ParsedDocument:
    """Результат разбора одного XML-документа"""
    document_type: DocumentType
    root_element: str
    namespace: Optional[str]
    content: Dict[str, Any]


@dataclass
class Classification:
    """Пара код + наименование из справочника (КТРУ, ОКПД2, ОКЕИ)"""
    code: Optional[str] = None
    name: Optional[str] = None
    national_code: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.code or self.name or self.national_code)

    def to_dict(self) -> Dict[str, Any]:
        return compact({
            "code": self.code,
            "name": self.name,
            "national_code": self.national_code,
        })


@dataclass
class PurchaseObject:
    """Позиция объекта закупки"""
    name: Optional[str] = None
    product_name: Optional[str] = None
    name_type: NameKind = NameKind.PRODUCT_NAME
    sid: Optional[str] = None
    external_sid: Optional[str] = None
    price: Optional[str] = None
    quantity: Optional[float] = None
    sum: Optional[str] = None
    type: Optional[str] = None
    hierarchy_type: Optional[str] = None
    ktru: Optional[Classification] = None
    okpd2: Optional[Classification] = None
    okei: Optional[Classification] = None
    is_preference_rf: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        restrictions = compact({"is_preference_rf": self.is_preference_rf})
        return compact({
            "sid": self.sid,
            "external_sid": self.external_sid,
            "name": self.name,
            "product_name": self.product_name,
            "name_type": self.name_type.value,
            "price": self.price,
            "quantity": self.quantity,
            "sum": self.sum,
            "type": self.type,
            "hierarchy_type": self.hierarchy_type,
            "ktru": self.ktru.to_dict() if self.ktru else None,
            "okpd2": self.okpd2.to_dict() if self.okpd2 else None,
            "okei": self.okei.to_dict() if self.okei else None,
            "restrictions": restrictions,
        })


@dataclass
class PurchaseObjectsInfo:
    """Раздел объектов закупки"""
    objects: List[PurchaseObject] = field(default_factory=list)
    total_sum: Optional[str] = None
    quantity_undefined: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "objects": [obj.to_dict() for obj in self.objects],
            "objects_count": len(self.objects),
        }
        data.update(compact({
            "total_sum": self.total_sum,
            "quantity_undefined": self.quantity_undefined,
        }))
        return data


@dataclass
class Lot:
    """Лот закупки"""
    lot_number: Optional[str] = None
    lot_name: Optional[str] = None
    max_price: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return compact({
            "lot_number": self.lot_number,
            "lot_name": self.lot_name,
            "max_price": self.max_price,
        })


@dataclass
class TenderRecord:
    """
    Запись извещения о закупке.

    Все поля необязательны, кроме реестрового номера, без которого запись
    не попадает в результаты. to_dict() возвращает только заполненные поля.
    """
    reestr_number: Optional[str] = None
    doc_number: Optional[str] = None
    title: Optional[str] = None
    placement_type: Optional[str] = None
    publish_date: Optional[datetime] = None
    planned_publish_date: Optional[datetime] = None
    max_price: Optional[str] = None
    currency: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    bidding_date: Optional[datetime] = None
    summarizing_date: Optional[datetime] = None
    organization_name: Optional[str] = None
    organization_short_name: Optional[str] = None
    organization_inn: Optional[str] = None
    organization_kpp: Optional[str] = None
    organization_ogrn: Optional[str] = None
    organization_reg_num: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    etp_name: Optional[str] = None
    etp_code: Optional[str] = None
    etp_url: Optional[str] = None
    href: Optional[str] = None
    print_form_url: Optional[str] = None
    version_number: Optional[str] = None
    external_id: Optional[str] = None
    collecting_start: Optional[datetime] = None
    collecting_end: Optional[datetime] = None
    lots: List[Lot] = field(default_factory=list)
    contract_guarantee_part: Optional[float] = None
    application_guarantee_part: Optional[float] = None
    purchase_objects: Optional[PurchaseObjectsInfo] = None

    _SCALAR_FIELDS = (
        "reestr_number", "doc_number", "title", "placement_type",
        "publish_date", "planned_publish_date", "max_price", "currency",
        "start_date", "end_date", "bidding_date", "summarizing_date",
        "organization_name", "organization_short_name", "organization_inn",
        "organization_kpp", "organization_ogrn", "organization_reg_num",
        "contact_name", "contact_email", "contact_phone",
        "etp_name", "etp_code", "etp_url", "href", "print_form_url",
        "version_number", "external_id",
    )

    def to_dict(self) -> Dict[str, Any]:
        data = compact({name: getattr(self, name) for name in self._SCALAR_FIELDS})

        procedure_info = compact({
            "collecting_start": self.collecting_start,
            "collecting_end": self.collecting_end,
        })
        if procedure_info:
            data["procedure_info"] = procedure_info

        if self.lots:
            data["lot_info"] = {
                "lots": [lot.to_dict() for lot in self.lots],
                "lots_count": len(self.lots),
            }

        guarantee_info = compact({
            "contract_guarantee_part": self.contract_guarantee_part,
            "application_guarantee_part": self.application_guarantee_part,
        })
        if guarantee_info:
            data["guarantee_info"] = guarantee_info

        if self.purchase_objects is not None:
            data["purchase_objects"] = self.purchase_objects.to_dict()

        return data


@dataclass
class AttachmentInfo:
    """Сведения о прикреплённом к извещению документе"""
    published_content_id: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    description: Optional[str] = None
    url: Optional[str] = None
    doc_kind: Optional[str] = None
    doc_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return compact({
            "published_content_id": self.published_content_id,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "description": self.description,
            "url": self.url,
            "doc_kind": self.doc_kind,
            "doc_date": self.doc_date,
        })


@dataclass
class FailureRecord:
    """Запись журнала ошибок: архив или отдельный файл в архиве"""
    archive_index: int
    archive_url: str
    error: str
    category: str
    file_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return compact({
            "archive_index": self.archive_index,
            "archive_url": self.archive_url,
            "file_name": self.file_name,
            "error": self.error,
            "category": self.category,
        })


@dataclass
class AcquisitionState:
    """
    Контрольная точка многоархивной обработки.

    Создаётся, когда скачивание архива заблокировано, а автоожидание
    выключено. Передаётся в следующий вызов, который продолжает обработку
    с next_archive_index, не скачивая заново уже обработанные архивы.
    """
    archive_urls: List[ArchiveHandle]
    next_archive_index: int = 0
    tenders: List[Dict[str, Any]] = field(default_factory=list)
    total_files: int = 0
    archives_processed: int = 0
    archives_failed: int = 0
    files_failed: int = 0
    failures: List[FailureRecord] = field(default_factory=list)

    @property
    def remaining_archives(self) -> int:
        return max(len(self.archive_urls) - self.next_archive_index, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "archive_urls": [handle.url for handle in self.archive_urls],
            "next_archive_index": self.next_archive_index,
            "tenders": list(self.tenders),
            "total_files": self.total_files,
            "archives_processed": self.archives_processed,
            "archives_failed": self.archives_failed,
            "files_failed": self.files_failed,
            "failures": [failure.to_dict() for failure in self.failures],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AcquisitionState":
        return cls(
            archive_urls=[
                url if isinstance(url, ArchiveHandle) else ArchiveHandle(url)
                for url in data.get("archive_urls", [])
            ],
            next_archive_index=int(data.get("next_archive_index", 0)),
            tenders=list(data.get("tenders", [])),
            total_files=int(data.get("total_files", 0)),
            archives_processed=int(data.get("archives_processed", 0)),
            archives_failed=int(data.get("archives_failed", 0)),
            files_failed=int(data.get("files_failed", 0)),
            failures=[
                FailureRecord(
                    archive_index=item["archive_index"],
                    archive_url=item["archive_url"],
                    error=item["error"],
                    category=item["category"],
                    file_name=item.get("file_name"),
                )
                for item in data.get("failures", [])
            ],
        )


@dataclass
class SearchOutcome:
    """Итог завершённого поиска"""
    tenders: List[Dict[str, Any]]
    total_archives: int
    archives_processed: int
    archives_failed: int
    total_files: int
    files_failed: int = 0
    failures: List[FailureRecord] = field(default_factory=list)
    processed_at: datetime = field(default_factory=datetime.now)

    @property
    def total_tenders(self) -> int:
        return len(self.tenders)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenders": self.tenders,
            "total_archives": self.total_archives,
            "archives_processed": self.archives_processed,
            "archives_failed": self.archives_failed,
            "total_files": self.total_files,
            "files_failed": self.files_failed,
            "total_tenders": self.total_tenders,
            "failures": [failure.to_dict() for failure in self.failures],
            "processed_at": self.processed_at,
        }


@dataclass
class ResumeCheckpoint:
    """Остановка по блокировке: состояние для продолжения и рекомендуемая пауза"""
    state: AcquisitionState
    retry_after_seconds: int
    blocked_until: datetime
    blocked_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resume_state": self.state.to_dict(),
            "retry_after_seconds": self.retry_after_seconds,
            "blocked_until": self.blocked_until,
            "blocked_url": self.blocked_url,
        }
