"""
Разбор XML-документов ЕИС: определение типа, извлечение записи тендера,
объектов закупки и вложений.
"""
from .normalizers import extract_date_from_text, extract_price_from_text
from .xml_parser import TenderXMLParser

__all__ = [
    'TenderXMLParser',
    'extract_date_from_text',
    'extract_price_from_text',
]
