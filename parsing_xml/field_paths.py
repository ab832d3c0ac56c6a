"""
Таблицы XPath-кандидатов для полей документов ЕИС.

Каждое поле описано цепочкой путей от самого точного к самому общему.
Собственные элементы извещения в выгрузке имеют префикс ns5, общие
типы (объекты закупки, вложения) - ns4, справочники - ns2.
"""

from parsing_xml.xpath_lookup import field_paths

# === Поля извещения (текст) ===

TENDER_TEXT_FIELDS = {
    "reestr_number": field_paths("commonInfo/purchaseNumber", "purchaseNumber"),
    "doc_number": field_paths("commonInfo/docNumber", "docNumber"),
    "title": field_paths("commonInfo/purchaseObjectInfo", "purchaseObjectInfo"),
    "placement_type": field_paths("commonInfo/placingWay/ns2:name", "placingWay/ns2:name"),
    "max_price": field_paths("maxPriceInfo/maxPrice", "maxPrice"),
    "currency": field_paths("currency/ns2:name"),
    "organization_name": field_paths("responsibleOrgInfo/fullName", "fullName"),
    "organization_short_name": field_paths("responsibleOrgInfo/shortName", "shortName"),
    "organization_inn": field_paths("responsibleOrgInfo/INN", "INN"),
    "organization_kpp": field_paths("responsibleOrgInfo/KPP", "KPP"),
    "organization_ogrn": field_paths("responsibleOrgInfo/OGRN", "OGRN"),
    "organization_reg_num": field_paths("responsibleOrgInfo/regNum", "regNum"),
    "contact_email": field_paths("contactEMail"),
    "contact_phone": field_paths("contactPhone"),
    "etp_name": field_paths("ETP/name"),
    "etp_code": field_paths("ETP/code"),
    "etp_url": field_paths("ETP/url"),
    "href": field_paths("href"),
    "print_form_url": field_paths("printFormInfo/url"),
    # Собственные поля документа: внутри export или у корня-извещения
    "version_number": field_paths("versionNumber", axis="/*/*/") + field_paths("versionNumber", axis="/*/"),
    "external_id": field_paths("externalId", axis="/*/*/") + field_paths("externalId", axis="/*/"),
}

# === Поля извещения (даты) ===

TENDER_DATE_FIELDS = {
    "publish_date": field_paths("commonInfo/publishDTInEIS", "publishDTInEIS"),
    "planned_publish_date": field_paths("plannedPublishDate"),
    "start_date": field_paths("collectingInfo/startDT", "startDT"),
    "end_date": field_paths("collectingInfo/endDT", "endDT"),
    "bidding_date": field_paths("biddingDate"),
    "summarizing_date": field_paths("summarizingDate"),
    "collecting_start": field_paths("collectingInfo/startDT"),
    "collecting_end": field_paths("collectingInfo/endDT"),
}

# === Обеспечение (доли в процентах) ===

GUARANTEE_FIELDS = {
    "contract_guarantee_part": field_paths("contractGuarantee/part"),
    "application_guarantee_part": field_paths("applicationGuarantee/part"),
}

# === Контактное лицо ===

CONTACT_PERSON_FIELDS = {
    "first_name": field_paths("ns5:contactPersonInfo/firstName", "firstName", ns="ns4"),
    "middle_name": field_paths("ns5:contactPersonInfo/middleName", "middleName", ns="ns4"),
    "last_name": field_paths("ns5:contactPersonInfo/lastName", "lastName", ns="ns4"),
}

# === Лоты ===

LOT_NODES = field_paths("lotInfo")

LOT_FIELDS = {
    "lot_number": field_paths("lotNumber", axis=".//"),
    "lot_name": field_paths("lotName", axis=".//"),
    "max_price": field_paths("maxPrice", axis=".//"),
}

# === Объекты закупки ===

PURCHASE_OBJECT_NODES = field_paths("purchaseObject", ns="ns4")

PURCHASE_OBJECT_FIELDS = {
    "sid": field_paths("sid", ns="ns4", axis=""),
    "external_sid": field_paths("externalSid", ns="ns4", axis=""),
    "name": field_paths("name", ns="ns4", axis=""),
    "price": field_paths("price", ns="ns4", axis=""),
    "quantity": field_paths("quantity/value", "quantity", ns="ns4", axis=""),
    "sum": field_paths("sum", ns="ns4", axis=""),
    "type": field_paths("type", ns="ns4", axis=""),
    "hierarchy_type": field_paths("hierarchyType", ns="ns4", axis=""),
    "is_preference_rf": field_paths(
        "restrictionsInfo/isPreferenseRFPurchaseObjects", ns="ns4", axis=""
    ),
}

KTRU_FIELDS = {
    "code": field_paths("KTRU/ns2:code", ns="ns4", axis=""),
    "name": field_paths("KTRU/ns2:name", ns="ns4", axis=""),
}

OKPD2_FIELDS = {
    "code": field_paths("OKPD2/ns2:OKPDCode", "OKPD2/ns2:code", ns="ns4", axis=""),
    "name": field_paths("OKPD2/ns2:OKPDName", "OKPD2/ns2:name", ns="ns4", axis=""),
}

OKEI_FIELDS = {
    "code": field_paths("OKEI/ns2:code", ns="ns4", axis=""),
    "national_code": field_paths("OKEI/ns2:nationalCode", ns="ns4", axis=""),
    "name": field_paths("OKEI/ns2:name", ns="ns4", axis=""),
}

PURCHASE_OBJECTS_TOTAL_SUM = field_paths("purchaseObjectsInfo/totalSum", "totalSum", ns="ns4")
QUANTITY_UNDEFINED = field_paths("quantityUndefined")

# === Вложения ===

# Шаблоны применяются все подряд, без удаления повторов
ATTACHMENT_NODE_PATTERNS = (
    "//ns4:attachmentInfo",
    "//attachmentInfo",
    "//ns5:attachmentsInfo//ns4:attachmentInfo",
    "//attachmentsInfo//attachmentInfo",
)

ATTACHMENT_FIELDS = {
    "published_content_id": field_paths("publishedContentId", ns="ns4", axis=".//"),
    "file_name": field_paths("fileName", ns="ns4", axis=".//"),
    "file_size": field_paths("fileSize", ns="ns4", axis=".//"),
    "description": field_paths("docDescription", ns="ns4", axis=".//"),
    "url": field_paths("url", ns="ns4", axis=".//"),
    "doc_kind": field_paths("docKindInfo/ns2:name", ns="ns4", axis=".//"),
    "doc_date": field_paths("docDate", ns="ns4", axis=".//"),
}

# === Признаки типа документа ===

PURCHASE_NUMBER_MARKER = "//*[local-name()='purchaseNumber']"
CONTRACT_NUMBER_MARKER = "//*[local-name()='contractNumber']"
