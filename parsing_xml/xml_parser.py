"""
MODULE: parsing_xml.xml_parser
RESPONSIBILITY: Classify an EIS XML document and extract a normalized record from it.
ALLOWED: lxml, parsing_xml helpers, core models.
FORBIDDEN: Network access, archive handling.
ERRORS: Returned as Result (ParseError subclasses), never raised.

Разбор XML-документов ЕИС.

Тип документа определяется по имени корневого элемента, а если оно ничего
не говорит (например, export) - по наличию purchaseNumber или contractNumber.
Для извещений извлекается полная запись тендера, для остальных типов -
краткая сводка.
"""

from datetime import datetime
from typing import Any, Dict, Union

from lxml import etree

from core.exceptions import EmptyInputError, MalformedXmlError
from core.models import DocumentType, Lot, ParsedDocument, TenderRecord
from core.result import Result
from parsing_xml.attachments import extract_attachment_list
from parsing_xml.field_paths import (
    CONTACT_PERSON_FIELDS,
    CONTRACT_NUMBER_MARKER,
    GUARANTEE_FIELDS,
    LOT_FIELDS,
    LOT_NODES,
    PURCHASE_NUMBER_MARKER,
    TENDER_DATE_FIELDS,
    TENDER_TEXT_FIELDS,
)
from parsing_xml.normalizers import extract_date_from_text, extract_price_from_text, parse_float
from parsing_xml.purchase_objects import extract_purchase_objects
from parsing_xml.xpath_lookup import collect_namespaces, field_paths, find_nodes, find_text
from utils.logger_config import get_logger

logger = get_logger()

_SAFE_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)

_PRICE_FIELDS = ("max_price",)

CONTRACT_NUMBER_PATHS = field_paths("contractNumber")
ORGANIZATION_NAME_PATHS = field_paths("fullName")


class TenderXMLParser:
    """Класс для разбора XML-документов ЕИС."""

    def parse(self, xml_content: Union[str, bytes, None]) -> Result:
        """
        Разбирает документ.

        Returns:
            Result с ParsedDocument или с ошибкой EmptyInputError / MalformedXmlError
        """
        root_result = self._load_root(xml_content)
        if root_result.is_failure:
            return root_result
        root = root_result.data

        namespaces = collect_namespaces(root)
        document_type = self.detect_document_type(root)

        if document_type is DocumentType.TENDER:
            content = self.parse_tender(root, namespaces).to_dict()
        elif document_type is DocumentType.CONTRACT:
            content = self._parse_contract(root, namespaces)
        elif document_type is DocumentType.ORGANIZATION:
            content = self._parse_organization(root, namespaces)
        else:
            content = self._parse_generic(root)

        qname = etree.QName(root)
        return Result.ok(ParsedDocument(
            document_type=document_type,
            root_element=qname.localname,
            namespace=qname.namespace,
            content=content,
        ))

    def extract_attachments(self, xml_content: Union[str, bytes, None]) -> Result:
        """
        Сведения о вложениях документа.

        Returns:
            Result со списком AttachmentInfo, metadata["total_count"] - их число
        """
        root_result = self._load_root(xml_content)
        if root_result.is_failure:
            return root_result
        root = root_result.data

        attachments = extract_attachment_list(root, collect_namespaces(root))
        return Result.ok(attachments, metadata={"total_count": len(attachments)})

    @staticmethod
    def _load_root(xml_content: Union[str, bytes, None]) -> Result:
        if not xml_content or not xml_content.strip():
            return Result.fail(EmptyInputError("Пустое содержимое XML"))

        data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
        try:
            root = etree.fromstring(data, _SAFE_PARSER)
        except (etree.XMLSyntaxError, ValueError) as error:
            logger.debug(f"Некорректный XML: {error}")
            return Result.fail(MalformedXmlError(f"Некорректный XML: {error}"))
        return Result.ok(root)

    @staticmethod
    def detect_document_type(root: etree._Element) -> DocumentType:
        root_name = etree.QName(root).localname.lower()

        if any(marker in root_name for marker in ("notification", "tender", "auction")):
            return DocumentType.TENDER
        if "contract" in root_name:
            return DocumentType.CONTRACT
        if "org" in root_name:
            return DocumentType.ORGANIZATION

        if root.xpath(PURCHASE_NUMBER_MARKER):
            return DocumentType.TENDER
        if root.xpath(CONTRACT_NUMBER_MARKER):
            return DocumentType.CONTRACT
        return DocumentType.UNKNOWN

    def parse_tender(self, root: etree._Element, namespaces: Dict[str, str]) -> TenderRecord:
        """Полная запись извещения."""
        values: Dict[str, Any] = {}
        for key, candidates in TENDER_TEXT_FIELDS.items():
            text = find_text(root, candidates, namespaces)
            values[key] = extract_price_from_text(text) if key in _PRICE_FIELDS else text

        for key, candidates in TENDER_DATE_FIELDS.items():
            values[key] = extract_date_from_text(find_text(root, candidates, namespaces))

        for key, candidates in GUARANTEE_FIELDS.items():
            values[key] = parse_float(find_text(root, candidates, namespaces))

        return TenderRecord(
            contact_name=self._contact_name(root, namespaces),
            lots=self._lots(root, namespaces),
            purchase_objects=extract_purchase_objects(root, namespaces),
            **values,
        )

    @staticmethod
    def _contact_name(root, namespaces):
        parts = [
            find_text(root, CONTACT_PERSON_FIELDS[key], namespaces)
            for key in ("first_name", "middle_name", "last_name")
        ]
        return " ".join(part for part in parts if part) or None

    @staticmethod
    def _lots(root, namespaces):
        lots = []
        for node in find_nodes(root, LOT_NODES, namespaces):
            lot = Lot(
                lot_number=find_text(node, LOT_FIELDS["lot_number"], namespaces),
                lot_name=find_text(node, LOT_FIELDS["lot_name"], namespaces),
                max_price=extract_price_from_text(find_text(node, LOT_FIELDS["max_price"], namespaces)),
            )
            if lot.to_dict():
                lots.append(lot)
        return lots

    @staticmethod
    def _parse_contract(root, namespaces):
        return {
            "contract_number": find_text(root, CONTRACT_NUMBER_PATHS, namespaces),
            "document_parsed_at": datetime.now(),
        }

    @staticmethod
    def _parse_organization(root, namespaces):
        return {
            "organization_name": find_text(root, ORGANIZATION_NAME_PATHS, namespaces),
            "document_parsed_at": datetime.now(),
        }

    @staticmethod
    def _parse_generic(root):
        qname = etree.QName(root)
        return {
            "root_element": qname.localname,
            "namespace": qname.namespace,
            "element_count": sum(1 for _ in root.iter(tag=etree.Element)),
            "document_parsed_at": datetime.now(),
        }
