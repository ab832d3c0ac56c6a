"""
MODULE: eis_requester
RESPONSIBILITY: Query the EIS getDocsIP SOAP service for archive URLs.
ALLOWED: requests, lxml helpers from utils, logging.
FORBIDDEN: Downloading or parsing archives.
ERRORS: Returned as Result (QueryError); blank parameters raise ConfigurationError.

Клиент SOAP-сервиса ЕИС "Получение документов" (getDocsIP).

Сервис принимает запрос по региону заказчика или по реестровому номеру
и возвращает список ссылок на архивы с документами.
"""

import uuid
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

import requests

from config.settings import AcquisitionConfig
from core.document_types import DEFAULT_DOCUMENT_TYPE, DEFAULT_SUBSYSTEM, SUBSYSTEM_TYPES
from core.exceptions import ConfigurationError, QueryError
from core.result import Result
from utils.logger_config import get_logger
from utils.xml_extractor import extract_archive_urls, extract_error_info, extract_soap_fault, has_element

logger = get_logger()

WS_NAMESPACE = "http://zakupki.gov.ru/fz44/get-docs-ip/ws"

OPERATION_BY_REGION = "getDocsByOrgRegion"
OPERATION_BY_REESTR_NUMBER = "getDocsByReestrNumber"


class EISRequester:
    """Класс для запросов к сервису получения документов ЕИС."""

    def __init__(self, config: AcquisitionConfig, session: Optional[requests.Session] = None):
        """
        Args:
            config: Настройки (нужны токен, адрес сервиса, таймауты)
            session: HTTP-сессия (по умолчанию создаётся новая)

        Raises:
            ConfigurationError: Если токен не задан
        """
        if not config.token or not config.token.strip():
            raise ConfigurationError("Токен не задан. Укажите EIS_TOKEN или передайте его явно")

        self.config = config
        self.url = config.service_url
        self.token = config.token.strip()
        self.http_session = session or requests.Session()

    @staticmethod
    def get_current_time() -> str:
        """Текущее время со смещением часового пояса, например 2025-01-15T10:00:00+03:00."""
        return datetime.now().astimezone().isoformat(timespec="seconds")

    @staticmethod
    def _validate_params(**params) -> None:
        for name, value in params.items():
            if value is None or not str(value).strip():
                raise ConfigurationError(f"Параметр {name} не может быть пустым")
        subsystem_type = params.get("subsystem_type")
        if subsystem_type and subsystem_type not in SUBSYSTEM_TYPES:
            logger.warning(f"Неизвестная подсистема {subsystem_type}, запрос будет отправлен как есть")

    def generate_soap_request(self, operation: str, selection_params: str) -> str:
        """Формирует SOAP-конверт с блоком index и переданными selectionParams."""
        id_value = str(uuid.uuid4())
        current_time = self.get_current_time()

        soap_request = f"""<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"
                  xmlns:ws="{WS_NAMESPACE}">
    <soapenv:Header>
        <individualPerson_token>{escape(self.token)}</individualPerson_token>
    </soapenv:Header>
    <soapenv:Body>
        <ws:{operation}Request>
            <index>
                <id>{id_value}</id>
                <createDateTime>{current_time}</createDateTime>
                <mode>PROD</mode>
            </index>
            <selectionParams>
{selection_params}
            </selectionParams>
        </ws:{operation}Request>
    </soapenv:Body>
</soapenv:Envelope>
"""
        return soap_request

    def get_docs_by_region(
        self,
        org_region: str,
        exact_date: str,
        subsystem_type: str = DEFAULT_SUBSYSTEM,
        document_type: str = DEFAULT_DOCUMENT_TYPE,
    ) -> Result:
        """
        Ссылки на архивы документов региона за дату.

        Args:
            org_region: Код региона заказчика ("77")
            exact_date: Дата в формате ГГГГ-ММ-ДД
            subsystem_type: Подсистема (PRIZ, RPEC, ...)
            document_type: Тип документа 44-ФЗ

        Returns:
            Result со списком URL архивов
        """
        self._validate_params(
            org_region=org_region,
            exact_date=exact_date,
            subsystem_type=subsystem_type,
            document_type=document_type,
        )
        selection_params = f"""                <orgRegion>{escape(str(org_region))}</orgRegion>
                <subsystemType>{escape(subsystem_type)}</subsystemType>
                <documentType44>{escape(document_type)}</documentType44>
                <periodInfo>
                    <exactDate>{escape(exact_date)}</exactDate>
                </periodInfo>"""

        logger.info(
            f"Запрос документов: регион {org_region}, подсистема {subsystem_type}, "
            f"тип {document_type}, дата {exact_date}"
        )
        return self.send_soap_request(
            self.generate_soap_request(OPERATION_BY_REGION, selection_params),
            OPERATION_BY_REGION,
        )

    def get_docs_by_reestr_number(self, reestr_number: str, subsystem_type: str = DEFAULT_SUBSYSTEM) -> Result:
        """Ссылки на архивы документов закупки по реестровому номеру."""
        self._validate_params(reestr_number=reestr_number, subsystem_type=subsystem_type)
        selection_params = f"""                <subsystemType>{escape(subsystem_type)}</subsystemType>
                <registryNumber>{escape(reestr_number)}</registryNumber>"""

        logger.info(f"Запрос документов по реестровому номеру {reestr_number}, подсистема {subsystem_type}")
        return self.send_soap_request(
            self.generate_soap_request(OPERATION_BY_REESTR_NUMBER, selection_params),
            OPERATION_BY_REESTR_NUMBER,
        )

    def send_soap_request(self, soap_request: str, operation: str) -> Result:
        """
        Отправляет SOAP-запрос и извлекает ссылки на архивы из ответа.

        SOAP Fault, HTTP-ошибка, блок errorInfo или отсутствие dataInfo
        возвращаются как QueryError.
        """
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "individualPerson_token": self.token,
        }
        try:
            response = self.http_session.post(
                self.url,
                data=soap_request.encode("utf-8"),
                headers=headers,
                timeout=self.config.timeouts,
                verify=self.config.ssl_verify,
            )
        except requests.RequestException as error:
            logger.error(f"Ошибка запроса к ЕИС ({operation}): {error}")
            return Result.fail(QueryError(f"Ошибка запроса: {error}"))

        body = response.content
        fault = extract_soap_fault(body)
        if fault:
            logger.error(f"SOAP Fault ({operation}): {fault}")
            return Result.fail(QueryError(f"SOAP Fault: {fault}", status_code=response.status_code))

        if not 200 <= response.status_code < 300:
            logger.error(f"HTTP ошибка ({operation}): {response.status_code}")
            return Result.fail(QueryError(
                f"HTTP ошибка: {response.status_code} {response.reason or ''}".rstrip(),
                status_code=response.status_code,
            ))

        if not body:
            return Result.fail(QueryError("Пустой ответ сервиса", status_code=response.status_code))

        error_info = extract_error_info(body)
        if error_info:
            logger.error(f"ЕИС вернула ошибку ({operation}): {error_info}")
            return Result.fail(QueryError(f"Ошибка ЕИС: {error_info}", status_code=response.status_code))

        if not has_element(body, "dataInfo"):
            return Result.fail(QueryError("В ответе нет блока dataInfo", status_code=response.status_code))

        archive_urls = extract_archive_urls(body)
        logger.info(f"Ответ {operation}: найдено архивов {len(archive_urls)}")
        return Result.ok(archive_urls, metadata={"operation": operation, "timestamp": datetime.now()})
