# services/ledger_timeline/timeline/extractor.py

"""
Извлечение полей из одного сырого события реестра.

Часть полей приходит явно, часть восстанавливается только из текстового
описания (detail), например:
    "Vendor submitted Scope 3 data for DC-North. Upstream emissions: 387 tons CO2e"

Ни одна функция модуля не бросает исключений: отсутствие данных
превращается в значения по умолчанию (DC-Unknown, 0, None).
"""

import math
import re
from typing import Any, Optional, Tuple

from schemas import RawEvent, TxProvenance, TxReference, TX_REFERENCE_FIELDS

UNKNOWN_FACILITY_ID = "DC-Unknown"
FACILITY_PREFIX = "DC-"

# DC-<слово> внутри описания (ASCII, как \w в JS)
FACILITY_PATTERN = re.compile(r"DC-(\w+)", re.ASCII)
# всё, что не может входить в идентификатор площадки
FACILITY_JUNK = re.compile(r"[^A-Za-z0-9-]")
# число (возможно с разделителями разрядов) перед "tons"
EMISSIONS_PATTERN = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*tons", re.IGNORECASE)

# Приоритет ссылок: ledger-chain > side-chain > content-store > proof
TX_PRIORITY = (
    TxProvenance.LEDGER_CHAIN,
    TxProvenance.SIDE_CHAIN,
    TxProvenance.CONTENT_STORE,
    TxProvenance.PROOF,
)

PERIOD_CANONICAL = re.compile(r"^\d{4}-Q[1-4]$")
PERIOD_QUARTER = re.compile(r"(?:Q([1-4])\s*(\d{4})|(\d{4})\s*Q([1-4]))", re.IGNORECASE)
PERIOD_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def as_text(value: Any) -> Optional[str]:
    """Приводит значение к непустой строке, иначе None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def extract_facility(raw: RawEvent) -> str:
    """
    Определяет дата-центр события.

    Порядок:
      1) явное поле facility_id / datacenter,
      2) токен DC-<слово> в описании,
      3) первый токен описания, начинающийся с DC-, очищенный от лишних символов,
      4) DC-Unknown.
    """
    explicit = as_text(raw.facility_id)
    if explicit:
        return explicit

    description = as_text(raw.description)
    if description is None:
        return UNKNOWN_FACILITY_ID

    match = FACILITY_PATTERN.search(description)
    if match:
        return f"{FACILITY_PREFIX}{match.group(1)}"

    for token in description.split():
        if token.startswith(FACILITY_PREFIX):
            cleaned = FACILITY_JUNK.sub("", token)
            # голый префикс без имени площадки не считаем совпадением
            if cleaned != FACILITY_PREFIX:
                return cleaned

    return UNKNOWN_FACILITY_ID


def extract_emissions(raw: RawEvent) -> float:
    """Ищет в описании "<число> tons"; запятые-разделители отбрасываются. Иначе 0."""
    description = as_text(raw.description)
    if description is None:
        return 0.0

    match = EMISSIONS_PATTERN.search(description)
    if not match:
        return 0.0

    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return 0.0
    # слишком длинная строка цифр даёт inf
    return value if math.isfinite(value) else 0.0


def extract_tx_reference(raw: RawEvent) -> Optional[TxReference]:
    """Первая непустая ссылка на транзакцию по фиксированному приоритету."""
    for provenance in TX_PRIORITY:
        tx_id = as_text(getattr(raw, TX_REFERENCE_FIELDS[provenance]))
        if tx_id:
            return TxReference(provenance=provenance, id=tx_id)
    return None


def extract_fields(raw: RawEvent) -> Tuple[str, float, Optional[TxReference]]:
    return extract_facility(raw), extract_emissions(raw), extract_tx_reference(raw)


def normalize_period(value: Any) -> Optional[str]:
    """
    Приводит отчётный период к виду YYYY-Qn.

    "2025-Q1" -> "2025-Q1", "Q1 2025" / "2025 Q1" -> "2025-Q1", "2025-03" -> "2025-Q1".
    Нераспознанная строка возвращается как есть.
    """
    period = as_text(value)
    if period is None:
        return None

    if PERIOD_CANONICAL.match(period):
        return period

    match = PERIOD_QUARTER.search(period)
    if match:
        quarter = match.group(1) or match.group(4)
        year = match.group(2) or match.group(3)
        return f"{year}-Q{quarter}"

    match = PERIOD_MONTH.match(period)
    if match:
        month = int(match.group(2))
        if 1 <= month <= 12:
            return f"{match.group(1)}-Q{(month + 2) // 3}"

    return period
