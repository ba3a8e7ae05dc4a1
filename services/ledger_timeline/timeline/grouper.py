# services/ledger_timeline/timeline/grouper.py

import re
from typing import Dict, Iterable, List

from loguru import logger

from schemas import NormalizedEvent
from timeline.extractor import FACILITY_PREFIX

_NON_ALNUM = re.compile(r"[^0-9a-z]")


def facility_key(facility_id: str) -> str:
    """
    Ключ сравнения площадок: без регистра, без префикса DC-, только буквы и цифры.
    "DC-North", "dc-north" и "North" дают один и тот же ключ.
    """
    key = facility_id.strip().lower()
    if key.startswith(FACILITY_PREFIX.lower()):
        key = key[len(FACILITY_PREFIX):]
    return _NON_ALNUM.sub("", key)


def group(
    events: Iterable[NormalizedEvent],
    known_facilities: Iterable[str],
) -> Dict[str, List[NormalizedEvent]]:
    """
    Разбивает события по площадкам.

    Два источника ключей:
      - реестр known_facilities: каноническое написание, группы создаются
        даже без событий, порядок как в реестре;
      - площадки, выведенные normalizer-ом из текста, добавляются по мере
        появления.
    Если выведенный id совпадает с площадкой из реестра по facility_key,
    побеждает имя из реестра, а событие копируется с каноническим id.
    """
    groups: Dict[str, List[NormalizedEvent]] = {}
    canonical: Dict[str, str] = {}

    for facility_id in known_facilities:
        facility_id = facility_id.strip() if isinstance(facility_id, str) else ""
        if not facility_id or facility_id in groups:
            continue
        groups[facility_id] = []
        key = facility_key(facility_id)
        if key:
            canonical.setdefault(key, facility_id)

    registered = len(groups)
    remapped = 0

    for event in events:
        target = event.facility_id
        if target not in groups:
            known = canonical.get(facility_key(target) or None)
            if known is not None:
                target = known
        if target != event.facility_id:
            event = event.model_copy(update={"facility_id": target})
            remapped += 1
        groups.setdefault(target, []).append(event)

    logger.debug(
        f"🗂 Grouped events into {len(groups)} facilities "
        f"(registered={registered}, synthesized={len(groups) - registered}, remapped={remapped})"
    )
    return groups
