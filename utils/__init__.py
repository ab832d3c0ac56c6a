"""
Утилиты для проекта.
"""
from .logger_config import configure_file_logging, get_logger
from .xml_extractor import extract_archive_urls, extract_error_info, extract_soap_fault, has_element

__all__ = [
    'configure_file_logging',
    'get_logger',
    'extract_archive_urls',
    'extract_error_info',
    'extract_soap_fault',
    'has_element',
]
