# services/ledger_timeline/timeline/normalizer.py

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from schemas import NormalizedEvent, RawEvent
from timeline.extractor import (
    UNKNOWN_FACILITY_ID,
    as_text,
    extract_fields,
    normalize_period,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_datetime_adapter = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Разбирает время события: ISO-строка, число (epoch) или datetime.
    Наивное время считаем UTC. Возвращает None, если разобрать не удалось.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = _datetime_adapter.validate_python(value)
    except (ValidationError, ValueError, TypeError, OverflowError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _coerce_raw(item: Union[RawEvent, Mapping, Any]) -> RawEvent:
    if isinstance(item, RawEvent):
        return item
    if isinstance(item, Mapping):
        # нестроковые ключи pydantic не принимает, полей с такими именами нет
        fields = {k: v for k, v in item.items() if isinstance(k, str)}
        if len(fields) != len(item):
            logger.debug(f"🧽 Dropped {len(item) - len(fields)} non-string keys from raw event")
        try:
            return RawEvent.model_validate(fields)
        except ValidationError as e:
            logger.warning(f"⚠️ Raw event rejected ({e.error_count()} errors), using empty record")
            return RawEvent()
    logger.warning(f"⚠️ Unsupported raw event shape: {type(item).__name__}, using empty record")
    return RawEvent()


def normalize_event(item: Union[RawEvent, Mapping]) -> NormalizedEvent:
    """
    Нормализует одно сырое событие.

    Время: timestamp -> created_at -> epoch 0.
    Площадка, выбросы и ссылка на транзакцию берутся из extractor.
    """
    raw = _coerce_raw(item)
    facility_id, emissions, tx_ref = extract_fields(raw)

    timestamp = parse_timestamp(raw.timestamp)
    if timestamp is None:
        timestamp = parse_timestamp(raw.created_at)
    if timestamp is None:
        logger.debug(f"🕳 Event id={raw.id}: no parseable timestamp, falling back to epoch 0")
        timestamp = EPOCH

    if facility_id == UNKNOWN_FACILITY_ID:
        logger.debug(f"🕳 Event id={raw.id}: facility not resolved, using {UNKNOWN_FACILITY_ID}")

    return NormalizedEvent(
        id=as_text(raw.id),
        kind=as_text(raw.kind),
        timestamp=timestamp,
        facility_id=facility_id,
        emissions=emissions,
        tx_ref=tx_ref,
        description=as_text(raw.description),
        period=normalize_period(raw.period),
    )


def normalize(raw_events: Iterable[Union[RawEvent, Mapping]]) -> List[NormalizedEvent]:
    """
    Нормализует пачку событий: та же длина и порядок, каждое событие
    обрабатывается независимо от остальных.
    """
    items = [normalize_event(item) for item in raw_events]
    logger.debug(f"🧹 Normalized {len(items)} ledger events")
    return items
