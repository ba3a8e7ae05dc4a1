# services/ledger_timeline/timeline/pipeline.py

"""
Сборка таймлайнов для слоя отрисовки.

raw events -> normalize -> group -> order (по группе) -> окно курсора
           -> цвета маркеров и метрики (по окну и по всей группе).
"""

import random
from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger

from schemas import (
    FacilityTimeline,
    NormalizedEvent,
    RawEvent,
    TimelineEntry,
)
from timeline.aggregator import aggregate
from timeline.colors import kind_color, pick_colors
from timeline.grouper import group
from timeline.normalizer import normalize
from timeline.pagination import DEFAULT_INITIAL, DEFAULT_STEP, WindowCursor, order_events

DEFAULT_DETAIL = "Blockchain event"
TX_HEAD = 20
TX_TAIL = 10


def describe_kind(kind: Optional[str]) -> str:
    """CERTIFICATE_ISSUED -> "CERTIFICATE ISSUED"."""
    return (kind or "UNKNOWN").replace("_", " ")


def shorten_tx_id(tx_id: Optional[str]) -> Optional[str]:
    """Длинные хэши показываем как первые 20 символов ... последние 10."""
    if not tx_id:
        return None
    if len(tx_id) <= TX_HEAD + TX_TAIL:
        return tx_id
    return f"{tx_id[:TX_HEAD]}...{tx_id[-TX_TAIL:]}"


def events_label(count: int) -> str:
    return f"{count} blockchain event{'' if count == 1 else 's'}"


def build_entries(
    window: Sequence[NormalizedEvent],
    palette: Sequence[str],
    rng: Optional[random.Random] = None,
) -> List[TimelineEntry]:
    colors = pick_colors(len(window), palette, rng)
    entries = []
    for idx, event in enumerate(window):
        entries.append(
            TimelineEntry(
                event=event,
                color=colors[idx] if idx < len(colors) else None,
                kind_color=kind_color(event.kind),
                label=describe_kind(event.kind),
                detail=event.description or DEFAULT_DETAIL,
                tx_display=shorten_tx_id(event.tx_ref.id) if event.tx_ref else None,
            )
        )
    return entries


def build_facility_timeline(
    facility_id: str,
    events: Sequence[NormalizedEvent],
    *,
    threshold: float,
    palette: Sequence[str],
    initial: int = DEFAULT_INITIAL,
    step: int = DEFAULT_STEP,
    window_size: Optional[int] = None,
    is_registered: bool = False,
    rng: Optional[random.Random] = None,
) -> FacilityTimeline:
    ordered = order_events(events)
    cursor = WindowCursor.start(len(ordered), initial=initial, step=step)
    if window_size is not None:
        cursor = cursor.resume(window_size)
    window = cursor.window(ordered)

    return FacilityTimeline(
        facility_id=facility_id,
        is_registered=is_registered,
        total_count=len(ordered),
        events_label=events_label(len(ordered)),
        cursor=cursor.to_out(),
        has_more=cursor.has_more,
        entries=build_entries(window, palette, rng),
        window_metrics=aggregate(window, threshold),
        facility_metrics=aggregate(ordered, threshold),
    )


def build_timelines(
    raw_events: Iterable[Union[RawEvent, Mapping]],
    known_facilities: Iterable[str],
    *,
    threshold: float,
    palette: Sequence[str],
    initial: int = DEFAULT_INITIAL,
    step: int = DEFAULT_STEP,
    window_sizes: Optional[Dict[str, int]] = None,
    rng: Optional[random.Random] = None,
) -> List[FacilityTimeline]:
    """
    Полный проход движка по снимку сырых событий.
    Курсоры окон хранит вызывающая сторона и передаёт через window_sizes.
    """
    known = list(known_facilities)
    window_sizes = window_sizes or {}
    rng = rng or random.Random()

    normalized = normalize(raw_events)
    groups = group(normalized, known)
    registered = {facility_id.strip() for facility_id in known if isinstance(facility_id, str)}

    timelines = [
        build_facility_timeline(
            facility_id,
            events,
            threshold=threshold,
            palette=palette,
            initial=initial,
            step=step,
            window_size=window_sizes.get(facility_id),
            is_registered=facility_id in registered,
            rng=rng,
        )
        for facility_id, events in groups.items()
    ]

    logger.info(
        f"🧱 Built {len(timelines)} facility timelines from {len(normalized)} events "
        f"(threshold={threshold})"
    )
    return timelines
