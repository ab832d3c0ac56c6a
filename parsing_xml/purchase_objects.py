"""
Разбор раздела объектов закупки (purchaseObjectsInfo).

Для каждой позиции извлекаются идентификаторы, цена, количество, сумма,
справочные коды (КТРУ, ОКПД2, ОКЕИ) и признак преференций. Наименование
для отображения берётся из КТРУ, затем из ОКПД2, затем из самой позиции.
"""

import re
from typing import Dict, Optional, Sequence

from lxml import etree

from core.models import Classification, NameKind, PurchaseObject, PurchaseObjectsInfo
from parsing_xml.field_paths import (
    KTRU_FIELDS,
    OKEI_FIELDS,
    OKPD2_FIELDS,
    PURCHASE_OBJECT_FIELDS,
    PURCHASE_OBJECT_NODES,
    PURCHASE_OBJECTS_TOTAL_SUM,
    QUANTITY_UNDEFINED,
)
from parsing_xml.normalizers import extract_price_from_text, parse_bool, parse_quantity
from parsing_xml.xpath_lookup import find_nodes, find_text

# Наименования, похожие на характеристику товара, а не на сам товар
CHARACTERISTIC_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^\s*соответствие\s+требованиям",
        r"^\s*(минимальн|максимальн)\w*\s+.*(срок|период)",
        r"^\s*количество\s+",
        r"^\s*(размер|объ[её]м|вес|масса|цвет|материал|тип|класс|категория|способ|технология)\s+",
    )
)


def classify_name(name: Optional[str]) -> NameKind:
    """Определяет, похоже ли наименование на характеристику."""
    if name and any(pattern.search(name) for pattern in CHARACTERISTIC_PATTERNS):
        return NameKind.CHARACTERISTIC
    return NameKind.PRODUCT_NAME


def _classification(node, fields: Dict[str, Sequence[str]], namespaces) -> Optional[Classification]:
    classification = Classification(**{
        key: find_text(node, candidates, namespaces) for key, candidates in fields.items()
    })
    return None if classification.is_empty() else classification


def parse_purchase_object(node: etree._Element, namespaces: Dict[str, str]) -> PurchaseObject:
    """Одна позиция объекта закупки."""
    values = {
        key: find_text(node, candidates, namespaces)
        for key, candidates in PURCHASE_OBJECT_FIELDS.items()
    }
    ktru = _classification(node, KTRU_FIELDS, namespaces)
    okpd2 = _classification(node, OKPD2_FIELDS, namespaces)
    okei = _classification(node, OKEI_FIELDS, namespaces)

    raw_name = values["name"]
    product_name = (ktru and ktru.name) or (okpd2 and okpd2.name) or raw_name

    return PurchaseObject(
        name=raw_name,
        product_name=product_name,
        name_type=classify_name(raw_name),
        sid=values["sid"],
        external_sid=values["external_sid"],
        price=extract_price_from_text(values["price"]),
        quantity=parse_quantity(values["quantity"]),
        sum=extract_price_from_text(values["sum"]),
        type=values["type"],
        hierarchy_type=values["hierarchy_type"],
        ktru=ktru,
        okpd2=okpd2,
        okei=okei,
        is_preference_rf=parse_bool(values["is_preference_rf"]),
    )


def extract_purchase_objects(root: etree._Element, namespaces: Dict[str, str]) -> Optional[PurchaseObjectsInfo]:
    """
    Раздел объектов закупки или None, если в документе нет ни позиций,
    ни итоговой суммы.
    """
    objects = [
        parse_purchase_object(node, namespaces)
        for node in find_nodes(root, PURCHASE_OBJECT_NODES, namespaces)
    ]
    total_sum = extract_price_from_text(find_text(root, PURCHASE_OBJECTS_TOTAL_SUM, namespaces))
    if not objects and total_sum is None:
        return None

    return PurchaseObjectsInfo(
        objects=objects,
        total_sum=total_sum,
        quantity_undefined=parse_bool(find_text(root, QUANTITY_UNDEFINED, namespaces)),
    )
