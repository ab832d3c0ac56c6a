"""
Unit tests for TenderSearchCoordinator: multi-archive iteration, failure
accounting and resumable checkpoints.
"""

from unittest.mock import Mock

import pytest

from archive_extractor import ArchiveExtractor
from core.exceptions import (
    ArchiveBlockedError,
    ConfigurationError,
    ErrorCategory,
    HttpStatusError,
    QueryError,
    RetriesExhaustedError,
)
from core.models import AcquisitionState, ArchiveHandle, FetchedBlob, ResumeCheckpoint, SearchOutcome
from core.result import Result
from services.tender_search import TenderSearchCoordinator

URLS = [
    "https://int44.zakupki.gov.ru/files/archive-0.zip",
    "https://int44.zakupki.gov.ru/files/archive-1.zip",
    "https://int44.zakupki.gov.ru/files/archive-2.zip",
]


def fetched(content):
    return Result.ok(FetchedBlob(content=content, size=len(content)))


def blocked():
    return Result.fail(ArchiveBlockedError(), metadata={"retry_after_seconds": 600})


def http_failure(status_code=404):
    return Result.fail(RetriesExhaustedError(HttpStatusError(status_code, "Not Found"), 3))


class FakeDownloader:
    """Serves queued fetch results per URL; the last one repeats."""

    def __init__(self, results_by_url):
        self.results = {url: list(results) for url, results in results_by_url.items()}
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        queued = self.results[url]
        return queued.pop(0) if len(queued) > 1 else queued[0]


@pytest.fixture
def query_service():
    service = Mock()
    service.get_docs_by_region.return_value = Result.ok(list(URLS), metadata={"operation": "getDocsByOrgRegion"})
    return service


@pytest.fixture
def archives(make_gzip_zip, make_tender_xml):
    """One archive per URL, each with a single notification."""
    return [
        make_gzip_zip({f"notice_{index}.xml": make_tender_xml(f"000000000000000000{index}", f"Тендер {index}")})
        for index in range(len(URLS))
    ]


def make_coordinator(config, query_service, downloader):
    return TenderSearchCoordinator(config, query_service=query_service, downloader=downloader)


class TestSearch:
    """Plain search: every archive is attempted, failures are only counted."""

    def test_collects_tenders_from_all_archives(self, config, query_service, archives):
        downloader = FakeDownloader({url: [fetched(archive)] for url, archive in zip(URLS, archives)})
        result = make_coordinator(config, query_service, downloader).search("77", "2025-01-15")

        assert result.is_success
        outcome = result.data
        assert isinstance(outcome, SearchOutcome)
        assert [tender["reestr_number"] for tender in outcome.tenders] == [
            "0000000000000000000", "0000000000000000001", "0000000000000000002",
        ]
        assert outcome.total_archives == 3
        assert outcome.archives_processed == 3
        assert outcome.archives_failed == 0
        assert outcome.total_files == 3
        assert outcome.total_tenders == 3
        query_service.get_docs_by_region.assert_called_once_with("77", "2025-01-15", "PRIZ", "epNotificationEF2020")

    def test_provenance_fields(self, config, query_service, archives):
        downloader = FakeDownloader({url: [fetched(archive)] for url, archive in zip(URLS, archives)})
        tender = make_coordinator(config, query_service, downloader).search("77", "2025-01-15").data.tenders[1]

        assert tender["source_file"] == "notice_1.xml"
        assert tender["archive_url"] == URLS[1]
        assert "processed_at" in tender
        assert "archive_index" not in tender

    def test_failed_archive_is_counted_and_skipped(self, config, query_service, archives):
        downloader = FakeDownloader({
            URLS[0]: [fetched(archives[0])],
            URLS[1]: [http_failure()],
            URLS[2]: [fetched(archives[2])],
        })
        outcome = make_coordinator(config, query_service, downloader).search("77", "2025-01-15").data

        assert outcome.total_tenders == 2
        assert outcome.archives_processed == 2
        assert outcome.archives_failed == 1
        assert len(outcome.failures) == 1
        failure = outcome.failures[0]
        assert failure.archive_index == 1
        assert failure.archive_url == URLS[1]
        assert failure.file_name is None

    def test_blocked_archive_does_not_halt_plain_search(self, config, query_service, archives):
        downloader = FakeDownloader({
            URLS[0]: [blocked()],
            URLS[1]: [fetched(archives[1])],
            URLS[2]: [fetched(archives[2])],
        })
        outcome = make_coordinator(config, query_service, downloader).search("77", "2025-01-15").data

        assert outcome.archives_failed == 1
        assert outcome.failures[0].category == ErrorCategory.BLOCKED.value
        assert outcome.total_tenders == 2

    def test_undecodable_archive_is_counted(self, config, query_service, archives):
        downloader = FakeDownloader({
            URLS[0]: [fetched(b"<html>not an archive</html>")],
            URLS[1]: [fetched(archives[1])],
            URLS[2]: [fetched(b"PK\x03\x04broken")],
        })
        outcome = make_coordinator(config, query_service, downloader).search("77", "2025-01-15").data

        assert outcome.archives_failed == 2
        assert outcome.archives_processed == 1
        assert outcome.total_tenders == 1

    def test_query_failure_is_fatal(self, config, query_service):
        query_service.get_docs_by_region.return_value = Result.fail(QueryError("SOAP Fault: Invalid token"))
        downloader = FakeDownloader({})
        result = make_coordinator(config, query_service, downloader).search("77", "2025-01-15")

        assert result.is_failure
        assert isinstance(result.error, QueryError)
        assert downloader.calls == []

    def test_no_archives(self, config, query_service):
        query_service.get_docs_by_region.return_value = Result.ok([])
        outcome = make_coordinator(config, query_service, FakeDownloader({})).search("77", "2025-01-15").data

        assert outcome.total_archives == 0
        assert outcome.tenders == []


class TestFileLevelHandling:
    """Files inside an archive are filtered, parsed and failures recorded."""

    def test_mixed_archive(self, config, query_service, make_gzip_zip, make_tender_xml, contract_xml):
        archive = make_gzip_zip({
            "notice_ok.XML": make_tender_xml("0000000000000000042"),
            "notice_broken.xml": "<export><unclosed>",
            "contract.xml": contract_xml,
            "no_number.xml": "<export><notification><purchaseNumber> </purchaseNumber></notification></export>",
            "readme.txt": "not xml",
        })
        query_service.get_docs_by_region.return_value = Result.ok([URLS[0]])
        downloader = FakeDownloader({URLS[0]: [fetched(archive)]})

        outcome = make_coordinator(config, query_service, downloader).search("77", "2025-01-15").data

        assert [tender["reestr_number"] for tender in outcome.tenders] == ["0000000000000000042"]
        assert outcome.total_files == 5
        assert outcome.files_failed == 1
        assert outcome.archives_processed == 1
        assert outcome.failures[0].file_name == "notice_broken.xml"
        assert outcome.failures[0].category == ErrorCategory.PARTIAL_DATA.value

    def test_unexpected_decode_error_does_not_stop_other_archives(self, config, query_service, archives):
        class TruncatingExtractor(ArchiveExtractor):
            def extract(self, content):
                if content == b"PK\x03\x04truncated":
                    raise EOFError("truncated entry")
                return super().extract(content)

        query_service.get_docs_by_region.return_value = Result.ok(URLS[:2])
        coordinator = TenderSearchCoordinator(
            config,
            query_service=query_service,
            downloader=FakeDownloader({
                URLS[0]: [fetched(b"PK\x03\x04truncated")],
                URLS[1]: [fetched(archives[1])],
            }),
            extractor=TruncatingExtractor(),
        )

        outcome = coordinator.search("77", "2025-01-15").data

        assert outcome.archives_failed == 1
        assert outcome.archives_processed == 1
        assert outcome.total_tenders == 1
        assert outcome.failures[0].archive_url == URLS[0]
        assert outcome.failures[0].category == ErrorCategory.FATAL.value
        assert "truncated entry" in outcome.failures[0].error

    def test_unexpected_parser_error_is_recorded(self, config, query_service, archives):
        parser = Mock()
        parser.parse.side_effect = RuntimeError("boom")
        query_service.get_docs_by_region.return_value = Result.ok([URLS[0]])
        coordinator = TenderSearchCoordinator(
            config,
            query_service=query_service,
            downloader=FakeDownloader({URLS[0]: [fetched(archives[0])]}),
            parser=parser,
        )

        outcome = coordinator.search("77", "2025-01-15").data

        assert outcome.files_failed == 1
        assert outcome.failures[0].error == "boom"


class TestSearchResumable:
    """Halting with a checkpoint on a block and resuming from it."""

    def test_block_halts_with_checkpoint(self, config, query_service, archives):
        downloader = FakeDownloader({
            URLS[0]: [fetched(archives[0])],
            URLS[1]: [blocked()],
            URLS[2]: [fetched(archives[2])],
        })
        result = make_coordinator(config, query_service, downloader).search_resumable("77", "2025-01-15")

        assert result.is_failure
        assert isinstance(result.error, ArchiveBlockedError)
        assert result.metadata["retry_after_seconds"] == 600
        assert downloader.calls == URLS[:2]

        checkpoint = result.data
        assert isinstance(checkpoint, ResumeCheckpoint)
        assert checkpoint.blocked_url == URLS[1]
        assert checkpoint.retry_after_seconds == 600
        state = checkpoint.state
        assert result.metadata["resume_state"] is state
        assert state.next_archive_index == 1
        assert state.archives_processed == 1
        assert [tender["reestr_number"] for tender in state.tenders] == ["0000000000000000000"]
        assert state.tenders[0]["archive_index"] == 0

    def test_resume_continues_without_new_query(self, config, query_service, archives):
        first = FakeDownloader({
            URLS[0]: [fetched(archives[0])],
            URLS[1]: [blocked()],
            URLS[2]: [fetched(archives[2])],
        })
        checkpoint = make_coordinator(config, query_service, first).search_resumable("77", "2025-01-15").data

        second = FakeDownloader({url: [fetched(archive)] for url, archive in zip(URLS, archives)})
        result = make_coordinator(config, query_service, second).search_resumable(
            "77", "2025-01-15", resume_state=checkpoint.state
        )

        assert result.is_success
        assert query_service.get_docs_by_region.call_count == 1
        assert second.calls == URLS[1:]
        outcome = result.data
        assert [tender["reestr_number"] for tender in outcome.tenders] == [
            "0000000000000000000", "0000000000000000001", "0000000000000000002",
        ]
        assert [tender["archive_index"] for tender in outcome.tenders] == [0, 1, 2]
        assert outcome.archives_processed == 3
        assert outcome.total_files == 3

    def test_resume_does_not_modify_passed_state(self, config, query_service, archives):
        state = AcquisitionState(archive_urls=[ArchiveHandle(url) for url in URLS], next_archive_index=2)
        downloader = FakeDownloader({URLS[2]: [fetched(archives[2])]})

        make_coordinator(config, query_service, downloader).search_resumable("77", "2025-01-15", resume_state=state)

        assert state.next_archive_index == 2
        assert state.tenders == []

    def test_state_survives_dict_round_trip(self, config, query_service, archives):
        downloader = FakeDownloader({URLS[0]: [blocked()]})
        checkpoint = make_coordinator(config, query_service, downloader).search_resumable("77", "2025-01-15").data

        restored = AcquisitionState.from_dict(checkpoint.to_dict()["resume_state"])

        assert restored.archive_urls == [ArchiveHandle(url) for url in URLS]
        assert restored.next_archive_index == 0

    def test_other_failures_do_not_halt(self, config, query_service, archives):
        downloader = FakeDownloader({
            URLS[0]: [http_failure(500)],
            URLS[1]: [fetched(archives[1])],
            URLS[2]: [fetched(b"garbage")],
        })
        result = make_coordinator(config, query_service, downloader).search_resumable("77", "2025-01-15")

        assert result.is_success
        assert result.data.archives_failed == 2
        assert result.data.total_tenders == 1

    def test_resume_index_out_of_range(self, config, query_service):
        state = AcquisitionState(archive_urls=[ArchiveHandle(URLS[0])], next_archive_index=5)
        result = make_coordinator(config, query_service, FakeDownloader({})).search_resumable(
            "77", "2025-01-15", resume_state=state
        )

        assert isinstance(result.error, ConfigurationError)

    def test_negative_resume_index_is_rejected(self, config, query_service):
        state = AcquisitionState(archive_urls=[ArchiveHandle(url) for url in URLS[:2]], next_archive_index=-1)
        downloader = FakeDownloader({})

        result = make_coordinator(config, query_service, downloader).search_resumable(
            "77", "2025-01-15", resume_state=state
        )

        assert isinstance(result.error, ConfigurationError)
        assert downloader.calls == []


class TestSearchEnhanced:

    def test_attachments_are_merged(self, config, query_service, make_gzip_zip, tender_xml):
        query_service.get_docs_by_region.return_value = Result.ok([URLS[0]])
        downloader = FakeDownloader({URLS[0]: [fetched(make_gzip_zip({"notice.xml": tender_xml}))]})

        tender = make_coordinator(config, query_service, downloader).search_enhanced("77", "2025-01-15").data.tenders[0]

        assert tender["attachments_count"] == 2
        assert tender["attachments"][0]["file_name"] == "document1.pdf"

    def test_attachments_disabled(self, config, query_service, make_gzip_zip, tender_xml):
        query_service.get_docs_by_region.return_value = Result.ok([URLS[0]])
        downloader = FakeDownloader({URLS[0]: [fetched(make_gzip_zip({"notice.xml": tender_xml}))]})

        tender = make_coordinator(config, query_service, downloader).search_enhanced(
            "77", "2025-01-15", include_attachments=False
        ).data.tenders[0]

        assert "attachments" not in tender


class TestSearchAll:

    def test_stamps_subsystem_and_collects_errors(self, config, query_service, archives):
        def by_subsystem(org_region, exact_date, subsystem_type, document_type):
            if subsystem_type == "RGK":
                return Result.fail(QueryError("HTTP ошибка: 500"))
            return Result.ok([URLS[0]])

        query_service.get_docs_by_region.side_effect = by_subsystem
        downloader = FakeDownloader({URLS[0]: [fetched(archives[0])]})

        result = make_coordinator(config, query_service, downloader).search_all(
            "77", "2025-01-15", subsystems=["PRIZ", "RGK", "RPGZ"], document_types={"RPGZ": "TENDER_PLAN"}
        )

        assert result.is_success
        outcome = result.data
        assert [tender["subsystem_type"] for tender in outcome.tenders] == ["PRIZ", "RPGZ"]
        assert outcome.tenders[0]["document_type_used"] == "epNotificationEF2020"
        assert outcome.tenders[1]["document_type_used"] == "TENDER_PLAN"
        assert outcome.tenders[0]["subsystem_description"]
        assert outcome.total_archives == 2
        assert result.metadata["subsystems"] == ["PRIZ", "RGK", "RPGZ"]
        errors = result.metadata["subsystem_errors"]
        assert [error["subsystem_type"] for error in errors] == ["RGK"]
        assert errors[0]["error"] == "HTTP ошибка: 500"


class TestDelegates:

    def test_download_archive_data(self, config, query_service, make_gzip_zip):
        downloader = FakeDownloader({URLS[0]: [fetched(make_gzip_zip({"a.xml": "<a/>"}))]})
        result = make_coordinator(config, query_service, downloader).download_archive_data(URLS[0])

        assert result.is_success
        assert list(result.data) == ["a.xml"]
        assert result.metadata["format"] == "gzip+zip"

    def test_parse_and_attachments(self, config, query_service, tender_xml):
        coordinator = make_coordinator(config, query_service, FakeDownloader({}))

        assert coordinator.parse_xml_document(tender_xml).data.content["reestr_number"] == "0123456789012345678"
        assert coordinator.extract_attachments_from_xml(tender_xml).metadata["total_count"] == 2

    def test_reestr_lookup(self, config, query_service):
        query_service.get_docs_by_reestr_number.return_value = Result.ok([URLS[0]])
        result = make_coordinator(config, query_service, FakeDownloader({})).get_docs_by_reestr_number("0373")

        assert result.data == [URLS[0]]
        query_service.get_docs_by_reestr_number.assert_called_once_with("0373", "PRIZ")
