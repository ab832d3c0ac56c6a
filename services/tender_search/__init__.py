"""
Поиск тендеров в архивах ЕИС.
"""
from .archive_processing_service import ArchiveOutcome, ArchiveProcessingService
from .coordinator import TenderSearchCoordinator

__all__ = [
    'ArchiveOutcome',
    'ArchiveProcessingService',
    'TenderSearchCoordinator',
]
