"""
Утилиты для извлечения данных из SOAP-ответов ЕИС.
"""
from typing import List, Optional, Union

from lxml import etree

from utils.logger_config import get_logger

logger = get_logger()

_SAFE_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def _to_bytes(xml_content: Union[str, bytes]) -> bytes:
    if isinstance(xml_content, str):
        return xml_content.encode("utf-8")
    return xml_content


def extract_archive_urls(xml_content: Union[str, bytes, None]) -> List[str]:
    """
    Извлекает все URL-адреса архивов из SOAP-ответа.

    Элементы archiveUrl ищутся без учёта пространства имён. Порядок ссылок
    сохраняется (от него зависит индекс архива в контрольной точке),
    повторы убираются.

    :param xml_content: Строка или байты с XML-документом.
    :return: Список URL-адресов. Если ошибка при парсинге, пустой список.
    """
    if not xml_content:
        return []

    try:
        tree = etree.fromstring(_to_bytes(xml_content), _SAFE_PARSER)
    except etree.XMLSyntaxError as e:
        logger.error(f"Ошибка при парсинге SOAP-ответа (XMLSyntaxError): {e}")
        return []

    urls = [
        element.text.strip()
        for element in tree.xpath("//*[local-name()='archiveUrl']")
        if element.text and element.text.strip()
    ]
    return list(dict.fromkeys(urls))


def extract_soap_fault(xml_content: Union[str, bytes, None]) -> Optional[str]:
    """
    Возвращает текст SOAP Fault (faultstring) или None, если ответ без ошибки.
    """
    if not xml_content:
        return None

    try:
        tree = etree.fromstring(_to_bytes(xml_content), _SAFE_PARSER)
    except etree.XMLSyntaxError:
        return None

    faults = tree.xpath("//*[local-name()='Fault']")
    if not faults:
        return None

    fault = faults[0]
    for tag in ("faultstring", "Text", "Reason"):
        found = fault.xpath(f".//*[local-name()='{tag}']")
        if found:
            text = "".join(found[0].itertext()).strip()
            if text:
                return text
    return "".join(fault.itertext()).strip() or "SOAP Fault"


def extract_error_info(xml_content: Union[str, bytes, None]) -> Optional[str]:
    """
    Сервис ЕИС сообщает о прикладных ошибках блоком errorInfo внутри
    обычного ответа. Возвращает текст ошибки или None.
    """
    if not xml_content:
        return None

    try:
        tree = etree.fromstring(_to_bytes(xml_content), _SAFE_PARSER)
    except etree.XMLSyntaxError:
        return None

    found = tree.xpath("//*[local-name()='errorInfo']")
    if not found:
        return None
    parts = [text.strip() for text in found[0].itertext() if text.strip()]
    return " ".join(parts) or None


def has_element(xml_content: Union[str, bytes, None], local_name: str) -> bool:
    """Есть ли в документе элемент с указанным локальным именем (без учёта пространства имён)."""
    if not xml_content:
        return False

    try:
        tree = etree.fromstring(_to_bytes(xml_content), _SAFE_PARSER)
    except etree.XMLSyntaxError:
        return False

    return bool(tree.xpath(f"//*[local-name()='{local_name}']"))
