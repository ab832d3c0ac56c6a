"""
Shared fixtures: configuration, archive builders, HTTP fakes and EIS XML samples.
"""

import gzip
import io
import zipfile

import pytest

from config.settings import AcquisitionConfig


# === HTTP fakes ===

class FakeResponse:
    """Minimal stand-in for requests.Response used as a context manager."""

    def __init__(self, status_code=200, content=b"", headers=None, reason="OK", stream_error=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.reason = reason
        self.stream_error = stream_error

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def iter_content(self, chunk_size=1):
        if self.stream_error is not None:
            raise self.stream_error
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]


class FakeSession:
    """Returns queued responses (or raises queued exceptions) for get/post."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.headers = {}
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def make_session():
    return FakeSession


# === Configuration ===

@pytest.fixture
def config():
    """Fast configuration: short waits, small size limit."""
    return AcquisitionConfig(
        token="test-token",
        retry_attempts=3,
        retry_delay=1.0,
        auto_wait_on_block=True,
        block_wait_time=10,
        max_wait_time=30,
        wait_notice_interval=5,
        max_archive_size=1024 * 1024,
    )


@pytest.fixture
def no_sleep(monkeypatch):
    """Records requested sleeps instead of sleeping."""
    sleeps = []
    monkeypatch.setattr("file_downloader.time.sleep", sleeps.append)
    return sleeps


# === Archive builders ===

def _zip_bytes(files, compression=zipfile.ZIP_DEFLATED):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_zip():
    return _zip_bytes


@pytest.fixture
def make_gzip_zip():
    def build(files):
        return gzip.compress(_zip_bytes(files))
    return build


# === EIS XML samples ===

TENDER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ns3:export xmlns:ns3="http://zakupki.gov.ru/oos/export/1" xmlns:ns5="http://zakupki.gov.ru/oos/EPtypes/1" xmlns:ns4="http://zakupki.gov.ru/oos/common/1" xmlns:ns2="http://zakupki.gov.ru/oos/base/1">
  <ns3:epNotificationEF2020>
    <ns5:versionNumber>2</ns5:versionNumber>
    <ns5:commonInfo>
      <ns5:purchaseNumber>0123456789012345678</ns5:purchaseNumber>
      <ns5:docNumber>№0123456789012345678</ns5:docNumber>
      <ns5:publishDTInEIS>2025-01-15T10:30:00+03:00</ns5:publishDTInEIS>
      <ns5:href>https://zakupki.gov.ru/epz/order/notice/ea20/view/common-info.html?regNumber=0123456789012345678</ns5:href>
      <ns5:placingWay>
        <ns2:code>EAP20</ns2:code>
        <ns2:name>Электронный аукцион</ns2:name>
      </ns5:placingWay>
      <ns5:ETP>
        <ns2:code>ETP_SBAST</ns2:code>
        <ns2:name>ЗАО «Сбербанк-АСТ»</ns2:name>
        <ns2:url>http://www.sberbank-ast.ru</ns2:url>
      </ns5:ETP>
      <ns5:purchaseObjectInfo>Test Tender Name</ns5:purchaseObjectInfo>
    </ns5:commonInfo>
    <ns5:purchaseResponsibleInfo>
      <ns5:responsibleOrgInfo>
        <ns5:regNum>03732000059</ns5:regNum>
        <ns5:fullName>Test Organization</ns5:fullName>
        <ns5:INN>3666057069</ns5:INN>
        <ns5:KPP>366601001</ns5:KPP>
      </ns5:responsibleOrgInfo>
      <ns5:responsibleInfo>
        <ns5:contactPersonInfo>
          <ns4:lastName>Doe</ns4:lastName>
          <ns4:firstName>John</ns4:firstName>
        </ns5:contactPersonInfo>
        <ns5:contactEMail>john@example.com</ns5:contactEMail>
        <ns5:contactPhone>+7-123-456-7890</ns5:contactPhone>
      </ns5:responsibleInfo>
    </ns5:purchaseResponsibleInfo>
    <ns5:notificationInfo>
      <ns5:procedureInfo>
        <ns5:collectingInfo>
          <ns5:startDT>2025-01-15T10:30:00+03:00</ns5:startDT>
          <ns5:endDT>2025-01-23T08:00:00+03:00</ns5:endDT>
        </ns5:collectingInfo>
        <ns5:biddingDate>2025-01-27</ns5:biddingDate>
      </ns5:procedureInfo>
      <ns5:contractConditionsInfo>
        <ns5:maxPriceInfo>
          <ns5:maxPrice>1000000.50</ns5:maxPrice>
          <ns5:currency>
            <ns2:code>RUB</ns2:code>
            <ns2:name>Российский рубль</ns2:name>
          </ns5:currency>
        </ns5:maxPriceInfo>
      </ns5:contractConditionsInfo>
      <ns5:applicationGuarantee>
        <ns5:part>1</ns5:part>
      </ns5:applicationGuarantee>
      <ns5:contractGuarantee>
        <ns5:part>5.5</ns5:part>
      </ns5:contractGuarantee>
    </ns5:notificationInfo>
    <ns5:attachmentsInfo>
      <ns4:attachmentInfo>
        <ns4:publishedContentId>A1B2C3</ns4:publishedContentId>
        <ns4:fileName>document1.pdf</ns4:fileName>
        <ns4:fileSize>20480</ns4:fileSize>
        <ns4:docDescription>Описание объекта закупки</ns4:docDescription>
        <ns4:docDate>2025-01-15T10:00:00+03:00</ns4:docDate>
        <ns4:url>http://example.com/doc1.pdf</ns4:url>
        <ns4:docKindInfo>
          <ns2:code>DOC</ns2:code>
          <ns2:name>Описание объекта закупки</ns2:name>
        </ns4:docKindInfo>
      </ns4:attachmentInfo>
    </ns5:attachmentsInfo>
  </ns3:epNotificationEF2020>
</ns3:export>
"""

TENDER_WITH_OBJECTS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ns3:export xmlns:ns3="http://zakupki.gov.ru/oos/export/1" xmlns:ns5="http://zakupki.gov.ru/oos/EPtypes/1" xmlns:ns4="http://zakupki.gov.ru/oos/common/1" xmlns:ns2="http://zakupki.gov.ru/oos/base/1">
  <ns3:epNotificationEF2020>
    <ns5:commonInfo>
      <ns5:purchaseNumber>0373200592025000025</ns5:purchaseNumber>
      <ns5:purchaseObjectInfo>Электронный аукцион на поставку тумбы с ванной моечной</ns5:purchaseObjectInfo>
    </ns5:commonInfo>
    <ns5:notificationInfo>
      <ns5:purchaseObjectsInfo>
        <ns5:notDrugPurchaseObjectsInfo>
          <ns4:purchaseObject>
            <ns4:sid>186548938</ns4:sid>
            <ns4:externalSid>217455879-1616303245</ns4:externalSid>
            <ns4:KTRU>
              <ns2:code>25.99.11.132-00000001</ns2:code>
              <ns2:name>Ванна моечная для пищеблока</ns2:name>
              <ns2:versionId>108402</ns2:versionId>
              <ns2:versionNumber>1</ns2:versionNumber>
            </ns4:KTRU>
            <ns4:name>Ванна моечная для пищеблока</ns4:name>
            <ns4:OKEI>
              <ns2:code>796</ns2:code>
              <ns2:nationalCode>шт</ns2:nationalCode>
              <ns2:name>Штука</ns2:name>
            </ns4:OKEI>
            <ns4:price>66500</ns4:price>
            <ns4:quantity>
              <ns4:value>10</ns4:value>
            </ns4:quantity>
            <ns4:sum>665000</ns4:sum>
            <ns4:type>PRODUCT</ns4:type>
            <ns4:hierarchyType>ND</ns4:hierarchyType>
            <ns4:OKPD2>
              <ns2:OKPDCode>25.99.11.132</ns2:OKPDCode>
              <ns2:OKPDName>Ванны из нержавеющей стали</ns2:OKPDName>
            </ns4:OKPD2>
            <ns4:restrictionsInfo>
              <ns4:isPreferenseRFPurchaseObjects>true</ns4:isPreferenseRFPurchaseObjects>
            </ns4:restrictionsInfo>
          </ns4:purchaseObject>
          <ns4:totalSum>665000</ns4:totalSum>
          <ns5:quantityUndefined>false</ns5:quantityUndefined>
        </ns5:notDrugPurchaseObjectsInfo>
      </ns5:purchaseObjectsInfo>
    </ns5:notificationInfo>
  </ns3:epNotificationEF2020>
</ns3:export>
"""

CHARACTERISTIC_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ns3:export xmlns:ns3="http://zakupki.gov.ru/oos/export/1" xmlns:ns5="http://zakupki.gov.ru/oos/EPtypes/1" xmlns:ns4="http://zakupki.gov.ru/oos/common/1" xmlns:ns2="http://zakupki.gov.ru/oos/base/1">
  <ns3:epNotificationEF2020>
    <ns5:commonInfo>
      <ns5:purchaseNumber>0373200593425000054</ns5:purchaseNumber>
    </ns5:commonInfo>
    <ns5:notificationInfo>
      <ns5:purchaseObjectsInfo>
        <ns5:notDrugPurchaseObjectsInfo>
          <ns4:purchaseObject>
            <ns4:name>Реагенты сложные диагностические</ns4:name>
            <ns4:OKPD2>
              <ns2:OKPDCode>20.59.52.199</ns2:OKPDCode>
              <ns2:OKPDName>Реагенты сложные диагностические</ns2:OKPDName>
              <ns4:characteristics>
                <ns4:characteristicsUsingTextForm>
                  <ns4:name>Соответствие требованиям ТЗ</ns4:name>
                  <ns4:type>1</ns4:type>
                </ns4:characteristicsUsingTextForm>
              </ns4:characteristics>
            </ns4:OKPD2>
            <ns4:price>1000</ns4:price>
            <ns4:type>PRODUCT</ns4:type>
          </ns4:purchaseObject>
          <ns4:purchaseObject>
            <ns4:KTRU>
              <ns2:code>21.20.23.110-00005860</ns2:code>
              <ns2:name>Скрытая кровь в кале ИВД, набор</ns2:name>
            </ns4:KTRU>
            <ns4:name>Количество выполняемых тестов</ns4:name>
            <ns4:price>2000</ns4:price>
            <ns4:quantity>
              <ns4:value>2,5</ns4:value>
            </ns4:quantity>
            <ns4:type>PRODUCT</ns4:type>
          </ns4:purchaseObject>
          <ns4:purchaseObject>
            <ns4:name>Цвет корпуса</ns4:name>
            <ns4:price>300</ns4:price>
          </ns4:purchaseObject>
        </ns5:notDrugPurchaseObjectsInfo>
      </ns5:purchaseObjectsInfo>
    </ns5:notificationInfo>
  </ns3:epNotificationEF2020>
</ns3:export>
"""

SIMPLE_TENDER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ns3:export xmlns:ns3="http://zakupki.gov.ru/oos/export/1" xmlns:ns5="http://zakupki.gov.ru/oos/EPtypes/1">
  <ns3:epNotificationEF2020>
    <ns5:commonInfo>
      <ns5:purchaseNumber>0123456789012345678</ns5:purchaseNumber>
      <ns5:purchaseObjectInfo>Simple Tender</ns5:purchaseObjectInfo>
    </ns5:commonInfo>
  </ns3:epNotificationEF2020>
</ns3:export>
"""

CONTRACT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<contract>
  <contractNumber>987654</contractNumber>
  <name>Test Contract</name>
</contract>
"""


def tender_xml_with_number(reestr_number, title="Tender"):
    """Namespace-free notification with the given registry number."""
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<export><epNotificationEF2020><commonInfo>"
        f"<purchaseNumber>{reestr_number}</purchaseNumber>"
        f"<purchaseObjectInfo>{title}</purchaseObjectInfo>"
        "</commonInfo></epNotificationEF2020></export>"
    )


@pytest.fixture
def tender_xml():
    return TENDER_XML


@pytest.fixture
def tender_with_objects_xml():
    return TENDER_WITH_OBJECTS_XML


@pytest.fixture
def characteristic_xml():
    return CHARACTERISTIC_XML


@pytest.fixture
def simple_tender_xml():
    return SIMPLE_TENDER_XML


@pytest.fixture
def contract_xml():
    return CONTRACT_XML


@pytest.fixture
def make_tender_xml():
    return tender_xml_with_number
