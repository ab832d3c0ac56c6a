"""
MODULE: parsing_xml.xpath_lookup
RESPONSIBILITY: Namespace-tolerant XPath lookups over lxml trees.
ALLOWED: lxml, logging.
FORBIDDEN: Knowledge of concrete document fields.
ERRORS: None (XPath errors on a candidate are logged and skipped).

Поиск значений по цепочке альтернативных XPath.

Документы ЕИС приходят с разными префиксами пространств имён (ns2, ns4,
ns5...), а иногда без них. Поэтому каждое поле описывается упорядоченным
списком выражений: сначала с префиксами, потом без них, потом через
local-name(). Побеждает первое выражение, давшее непустой текст.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from lxml import etree

from utils.logger_config import get_logger

logger = get_logger()


def collect_namespaces(root: etree._Element) -> Dict[str, str]:
    """
    Собирает все объявленные в документе пространства имён: префикс -> URI.

    Пространство по умолчанию (без префикса) в XPath не регистрируется:
    такие элементы находят варианты с local-name().
    При повторном объявлении префикса побеждает последнее.
    """
    namespaces: Dict[str, str] = {}
    for element in root.iter(tag=etree.Element):
        for prefix, uri in element.nsmap.items():
            if prefix is not None:
                namespaces[prefix] = uri
    return namespaces


def _strip_prefix(step: str) -> str:
    return step.split(":", 1)[1] if ":" in step else step


def _qualify(step: str, ns: str) -> str:
    return step if ":" in step else f"{ns}:{step}"


def field_paths(*paths: str, ns: str = "ns5", axis: str = "//") -> Tuple[str, ...]:
    """
    Строит цепочку кандидатов для поля.

    Каждый путь вида "commonInfo/purchaseNumber" (шаги могут иметь явный
    префикс, например "placingWay/ns2:name") превращается в три варианта:
    с префиксом ns у шагов без префикса, без префиксов и через local-name().

    >>> field_paths("purchaseNumber")
    ('//ns5:purchaseNumber', '//purchaseNumber', "//*[local-name()='purchaseNumber']")

    Args:
        paths: Пути от самого точного к самому общему
        ns: Префикс для шагов без явного префикса
        axis: Начало выражения: "//" (весь документ), ".//" (потомки узла)
              или "" (дочерние элементы узла)
    """
    qualified = []
    bare = []
    local = []
    for path in paths:
        steps = path.split("/")
        qualified.append(axis + "/".join(_qualify(step, ns) for step in steps))
        bare.append(axis + "/".join(_strip_prefix(step) for step in steps))
        local.append(axis + "/".join(
            f"*[local-name()='{_strip_prefix(step)}']" for step in steps
        ))
    return tuple(dict.fromkeys(qualified + bare + local))


def node_text(item) -> Optional[str]:
    """Текст узла (вместе с потомками) или строкового результата XPath, без пробелов по краям."""
    if item is None:
        return None
    if isinstance(item, (str, bytes)):
        text = item.decode("utf-8", errors="replace") if isinstance(item, bytes) else str(item)
    else:
        text = "".join(item.itertext())
    text = text.strip()
    return text or None


def _evaluate(context: etree._Element, xpath: str, namespaces: Dict[str, str]) -> List:
    try:
        found = context.xpath(xpath, namespaces=namespaces)
    except etree.XPathError as error:
        # Обычно это необъявленный в документе префикс
        logger.debug(f"XPath ошибка для '{xpath}': {error}")
        return []
    if isinstance(found, list):
        return found
    return [found] if found not in (None, "", False) else []


def find_text(
    context: etree._Element,
    candidates: Sequence[str],
    namespaces: Dict[str, str],
) -> Optional[str]:
    """
    Возвращает первый непустой текст по цепочке XPath-кандидатов.

    Для каждого кандидата берётся первый найденный узел; если его текст
    пуст, проверяется следующий кандидат.
    """
    for xpath in candidates:
        found = _evaluate(context, xpath, namespaces)
        if not found:
            continue
        text = node_text(found[0])
        if text:
            return text
    return None


def find_nodes(
    context: etree._Element,
    candidates: Iterable[str],
    namespaces: Dict[str, str],
) -> List[etree._Element]:
    """Узлы первого кандидата, который нашёл хотя бы один элемент."""
    for xpath in candidates:
        nodes = [item for item in _evaluate(context, xpath, namespaces) if isinstance(item, etree._Element)]
        if nodes:
            return nodes
    return []


def find_all_nodes(
    context: etree._Element,
    patterns: Iterable[str],
    namespaces: Dict[str, str],
) -> List[etree._Element]:
    """
    Узлы всех шаблонов подряд. Узел, подходящий под несколько шаблонов,
    попадает в результат несколько раз.
    """
    nodes: List[etree._Element] = []
    for xpath in patterns:
        nodes.extend(item for item in _evaluate(context, xpath, namespaces) if isinstance(item, etree._Element))
    return nodes
