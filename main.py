"""
MODULE: main
RESPONSIBILITY: Command-line entry point for tender acquisition.
ALLOWED: argparse, json, pathlib, config, services.tender_search.
FORBIDDEN: Acquisition logic (delegated to the coordinator).
ERRORS: ConfigurationError and failed results are reported with a non-zero exit code.

Получение тендеров ЕИС из командной строки.

Примеры:
    python main.py search --region 77 --date 2025-01-15
    python main.py search --region 77 --date 2025-01-15 --resumable --state-file state.json
    python main.py search --region 77 --date 2025-01-15 --attachments
    python main.py search --region 77 --date 2025-01-15 --all
    python main.py reestr 0373200592025000025
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from config.settings import load_config
from core.document_types import DEFAULT_DOCUMENT_TYPE, DEFAULT_SUBSYSTEM
from core.exceptions import ConfigurationError
from core.models import AcquisitionState
from core.result import Result
from services.tender_search import TenderSearchCoordinator
from utils.logger_config import configure_file_logging, get_logger

logger = get_logger()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BLOCKED = 2


def dump_json(data: Any, output: Optional[Path]) -> None:
    """Печатает или сохраняет данные в JSON (даты - строками)."""
    text = json.dumps(data, ensure_ascii=False, indent=2, default=str)
    if output:
        output.write_text(text, encoding="utf-8")
        logger.info(f"Результат сохранён в {output}")
    else:
        print(text)


def load_resume_state(state_file: Path) -> Optional[AcquisitionState]:
    """Состояние из файла контрольной точки или None, если файла нет."""
    if not state_file.exists():
        return None
    with state_file.open("r", encoding="utf-8") as file:
        data = json.load(file)
    return AcquisitionState.from_dict(data.get("resume_state", data))


def run_search(coordinator: TenderSearchCoordinator, args: argparse.Namespace) -> int:
    if args.all:
        result = coordinator.search_all(args.region, args.date)
    elif args.resumable:
        resume_state = load_resume_state(args.state_file) if args.state_file else None
        result = coordinator.search_resumable(
            args.region, args.date, args.subsystem, args.doc_type, resume_state=resume_state
        )
    elif args.attachments:
        result = coordinator.search_enhanced(args.region, args.date, args.subsystem, args.doc_type)
    else:
        result = coordinator.search(args.region, args.date, args.subsystem, args.doc_type)

    return report(result, args)


def report(result: Result, args: argparse.Namespace) -> int:
    if result.is_success:
        if getattr(args, "state_file", None) and args.state_file.exists():
            args.state_file.unlink()
            logger.info(f"Обработка завершена, файл состояния {args.state_file} удалён")
        data = result.data.to_dict() if hasattr(result.data, "to_dict") else result.data
        dump_json(data, args.output)
        return EXIT_OK

    checkpoint = result.data
    if checkpoint is not None and getattr(args, "state_file", None):
        dump_json(checkpoint.to_dict(), args.state_file)
        logger.warning(
            f"Скачивание заблокировано. Повторите запуск с --state-file {args.state_file} "
            f"через {checkpoint.retry_after_seconds} сек"
        )
        return EXIT_BLOCKED

    logger.error(f"Ошибка: {result.error_message}")
    dump_json({"error": result.error.to_dict(), "metadata": result.metadata}, None)
    return EXIT_FAILED


def run_reestr(coordinator: TenderSearchCoordinator, args: argparse.Namespace) -> int:
    result = coordinator.get_docs_by_reestr_number(args.reestr_number, args.subsystem)
    if result.is_failure:
        logger.error(f"Ошибка: {result.error_message}")
        return EXIT_FAILED
    dump_json({"archive_urls": result.data, "metadata": result.metadata}, args.output)
    return EXIT_OK


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Получение тендеров из архивов ЕИС.")
    parser.add_argument("--env-file", default=None, help="Путь к .env файлу с настройками.")
    parser.add_argument("--log-dir", type=Path, default=None, help="Каталог для файловых логов.")
    parser.add_argument("--output", type=Path, default=None, help="Файл для результата (по умолчанию stdout).")

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Поиск тендеров по региону и дате.")
    search_parser.add_argument("--region", required=True, help="Код региона заказчика.")
    search_parser.add_argument("--date", required=True, help="Дата в формате ГГГГ-ММ-ДД.")
    search_parser.add_argument("--subsystem", default=DEFAULT_SUBSYSTEM, help="Подсистема ЕИС.")
    search_parser.add_argument("--doc-type", default=DEFAULT_DOCUMENT_TYPE, help="Тип документа 44-ФЗ.")
    mode = search_parser.add_mutually_exclusive_group()
    mode.add_argument("--resumable", action="store_true", help="Останавливаться при блокировке с контрольной точкой.")
    mode.add_argument("--attachments", action="store_true", help="Добавить сведения о вложениях.")
    mode.add_argument("--all", action="store_true", help="Искать по всем основным подсистемам.")
    search_parser.add_argument("--state-file", type=Path, default=None, help="Файл контрольной точки.")

    reestr_parser = subparsers.add_parser("reestr", help="Ссылки на архивы по реестровому номеру.")
    reestr_parser.add_argument("reestr_number", help="Реестровый номер закупки.")
    reestr_parser.add_argument("--subsystem", default=DEFAULT_SUBSYSTEM, help="Подсистема ЕИС.")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.log_dir:
        configure_file_logging(args.log_dir)

    try:
        config = load_config(args.env_file)
        if args.command == "search" and args.resumable:
            # Без автоожидания блокировка сразу даёт контрольную точку
            config = config.with_overrides(auto_wait_on_block=False)
        config.validate()
        coordinator = TenderSearchCoordinator(config)
    except ConfigurationError as error:
        logger.error(f"Ошибка конфигурации: {error.message}")
        return EXIT_FAILED

    if args.command == "search":
        return run_search(coordinator, args)
    return run_reestr(coordinator, args)


if __name__ == "__main__":
    sys.exit(main())
