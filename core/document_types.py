"""
MODULE: core.document_types
RESPONSIBILITY: Subsystem and document type constants of the EIS document API.
ALLOWED: Constants and lookups.
FORBIDDEN: I/O.
ERRORS: None.

Подсистемы и типы документов сервиса getDocsIP ЕИС.
"""

from typing import Dict, List, Tuple

SUBSYSTEM_TYPES: Tuple[str, ...] = (
    "PRIZ", "RPEC", "RPGZ", "RJ", "RDI", "BTK", "RPKLKP", "RPNZ", "RGK", "EA",
    "UR", "REC", "RPP", "RVP", "RRK", "RRA", "RNP", "RKPO", "PPRF615", "RD615",
    "LKOK", "OZ", "OD223", "RD223", "MSP223", "IPVP223", "TRU223", "RJ223",
    "RPP223", "RPZ223", "RI223", "RZ223", "OV223", "TPOZ223", "POZ223",
    "RNP223", "POM223", "ZC",
)

DOCUMENT_TYPES_44FZ: Tuple[str, ...] = (
    "TENDER_PLAN", "TENDER_TERMS", "CONTRACT_PLAN", "TENDER_PROTOCOL",
    "CONTRACT_EXECUTION_REPORT", "TENDER_NOTICE", "TENDER_DOCUMENTATION",
)

# Извещения об электронных процедурах
ELECTRONIC_NOTIFICATION_TYPES: Tuple[str, ...] = (
    "epNotificationEF2020", "epNotificationEF", "epNotificationOK2020",
    "epNotificationEP2020", "epNotificationZK2020", "epNotificationZP2020",
    "epNotificationISM2020", "fcsNotificationEF", "fcsNotificationOK",
    "fcsNotificationEP", "fcsNotificationZK", "fcsNotificationZP",
    "fcsNotificationISM", "fcsPlacement", "fcsPlacementResult",
)

DEFAULT_SUBSYSTEM = "PRIZ"
DEFAULT_DOCUMENT_TYPE = "epNotificationEF2020"

# Подсистемы, опрашиваемые search_all по умолчанию
DEFAULT_SEARCH_SUBSYSTEMS: Tuple[str, ...] = (
    "PRIZ", "RPEC", "RPGZ", "BTK", "UR", "RGK", "OD223", "RD223",
)

SUBSYSTEM_DESCRIPTIONS: Dict[str, str] = {
    "PRIZ": "Реестр извещений и протоколов (44-ФЗ)",
    "RPEC": "Реестр электронных процедур",
    "RPGZ": "Реестр планов-графиков закупок",
    "BTK": "Библиотека типовых контрактов",
    "UR": "Реестр участников закупок",
    "RGK": "Реестр контрактов (44-ФЗ)",
    "RJ": "Реестр жалоб",
    "RNP": "Реестр недобросовестных поставщиков",
    "OD223": "Закупки по 223-ФЗ",
    "RD223": "Реестр договоров (223-ФЗ)",
    "RI223": "Реестр извещений (223-ФЗ)",
}


def description_for_subsystem(subsystem_type: str) -> str:
    """Человекочитаемое описание подсистемы."""
    return SUBSYSTEM_DESCRIPTIONS.get(subsystem_type, subsystem_type)


def document_types_for_subsystem(subsystem_type: str) -> List[str]:
    """
    Типы документов, которые имеет смысл запрашивать в подсистеме.

    Для реестра извещений это электронные извещения, для остальных
    подсистем - общие типы документов 44-ФЗ.
    """
    if subsystem_type in ("PRIZ", "RPEC"):
        return list(ELECTRONIC_NOTIFICATION_TYPES)
    return list(DOCUMENT_TYPES_44FZ)
