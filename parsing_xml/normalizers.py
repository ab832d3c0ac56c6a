"""
Приведение текстовых значений XML к типам: даты, суммы, количества, флаги.

Все функции возвращают None, если значение не удалось распознать.
"""

import re
from datetime import datetime
from typing import Optional, Union

# Форматы дат, которые встречаются в выгрузках ЕИС, в порядке проверки
DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d%z",
    "%Y-%m-%d",
    "%d.%m.%Y",
    "%d/%m/%Y",
)

_EMBEDDED_DATE = re.compile(
    r"(?<![0-9])(?:([0-9]{4})-([0-9]{2})-([0-9]{2})|([0-9]{2})\.([0-9]{2})\.([0-9]{4}))(?![0-9])"
)
_PRICE_JUNK = re.compile(r"[^0-9.,\s]")
_WHITESPACE = re.compile(r"\s+")
_PRICE_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?")

_TRUE_VALUES = ("true", "1")
_FALSE_VALUES = ("false", "0")


def extract_date_from_text(text: Optional[str]) -> Optional[datetime]:
    """
    Распознаёт дату в тексте.

    Сначала проверяются строгие форматы целиком, затем ISO 8601 в любом виде
    (с долями секунд, со смещением), затем ищется первая корректная дата
    ДД.ММ.ГГГГ или ГГГГ-ММ-ДД внутри произвольного текста.
    """
    if not text:
        return None
    value = text.strip()
    if not value:
        return None

    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(value, date_format)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass

    for match in _EMBEDDED_DATE.finditer(value):
        if match.group(1):
            year, month, day = match.group(1), match.group(2), match.group(3)
        else:
            day, month, year = match.group(4), match.group(5), match.group(6)
        try:
            return datetime(int(year), int(month), int(day))
        except ValueError:
            # 31.02.2025 и подобное - ищем дальше
            continue
    return None


def extract_price_from_text(text: Optional[str]) -> Optional[str]:
    """
    Нормализует денежную сумму: "1 500 000,50" -> "1500000.50".

    Удаляется всё, кроме цифр, точки и запятой; запятая заменяется точкой.
    Результат должен иметь вид "цифры" или "цифры.цифры".
    """
    if not text:
        return None
    cleaned = _WHITESPACE.sub("", _PRICE_JUNK.sub("", text))
    if not cleaned:
        return None
    normalized = cleaned.replace(",", ".")
    if _PRICE_PATTERN.fullmatch(normalized):
        return normalized
    return None


def parse_quantity(text: Optional[str]) -> Optional[Union[int, float]]:
    """Количество: целое, если дробной части нет, иначе float."""
    normalized = extract_price_from_text(text)
    if normalized is None:
        return None
    value = float(normalized)
    return int(value) if value.is_integer() else value


def parse_float(text: Optional[str]) -> Optional[float]:
    normalized = extract_price_from_text(text)
    return float(normalized) if normalized is not None else None


def parse_int(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    value = text.strip()
    return int(value) if value.isdigit() else None


def parse_bool(text: Optional[str]) -> Optional[bool]:
    if not text:
        return None
    value = text.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None
