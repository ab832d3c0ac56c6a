"""
Извлечение сведений о прикреплённых документах (attachmentInfo).
"""

from typing import Dict, List

from lxml import etree

from core.models import AttachmentInfo
from parsing_xml.field_paths import ATTACHMENT_FIELDS, ATTACHMENT_NODE_PATTERNS
from parsing_xml.normalizers import extract_date_from_text, parse_int
from parsing_xml.xpath_lookup import find_all_nodes, find_text


def parse_attachment(node: etree._Element, namespaces: Dict[str, str]) -> AttachmentInfo:
    values = {
        key: find_text(node, candidates, namespaces)
        for key, candidates in ATTACHMENT_FIELDS.items()
    }
    return AttachmentInfo(
        published_content_id=values["published_content_id"],
        file_name=values["file_name"],
        file_size=parse_int(values["file_size"]),
        description=values["description"],
        url=values["url"],
        doc_kind=values["doc_kind"],
        doc_date=extract_date_from_text(values["doc_date"]),
    )


def extract_attachment_list(root: etree._Element, namespaces: Dict[str, str]) -> List[AttachmentInfo]:
    """
    Все вложения документа.

    Узел, найденный несколькими шаблонами (например, ns4:attachmentInfo
    внутри ns5:attachmentsInfo), возвращается столько раз, сколько шаблонов
    его нашли.
    """
    return [
        parse_attachment(node, namespaces)
        for node in find_all_nodes(root, ATTACHMENT_NODE_PATTERNS, namespaces)
    ]
