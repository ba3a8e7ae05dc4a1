# services/ledger_timeline/timeline/colors.py

"""
Цвета маркеров таймлайна.

Соседние события в окне не должны совпадать по цвету. Следующий индекс
выбирается сдвигом (prev + 1 + r) % n, где r ∈ [0, n - 2]: один бросок на
событие и гарантированно другой индекс при n > 1. При n == 1 всем событиям
достаётся единственный цвет. Повторяющиеся цвета палитры схлопываются.
"""

import random
from typing import Dict, List, Optional, Sequence

from loguru import logger

from schemas import LedgerEventKind, NormalizedEvent

DEFAULT_KIND_COLOR = "#0a0a0a"

KIND_COLORS: Dict[str, str] = {
    LedgerEventKind.CERTIFICATE_ISSUED.value: "#00f0ff",
    LedgerEventKind.REPORT_FROZEN.value: "#ff0055",
    LedgerEventKind.EMISSIONS_UPLOADED.value: "#fcee0a",
    LedgerEventKind.ZK_PROOF_VERIFIED.value: "#00f0ff",
}


def generate_palette(size: int = 100, saturation: int = 70, lightness: int = 60) -> List[str]:
    """Равномерно распределённые по кругу оттенки hsl()."""
    return [
        f"hsl({(i * 360) // size}, {saturation}%, {lightness}%)"
        for i in range(max(0, size))
    ]


def kind_color(kind: Optional[str]) -> str:
    return KIND_COLORS.get(kind or "", DEFAULT_KIND_COLOR)


def pick_colors(
    count: int,
    palette: Sequence[str],
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Цвета для count подряд идущих событий, соседние различаются при len(palette) > 1."""
    palette = list(dict.fromkeys(palette))
    n = len(palette)
    if n == 0:
        if count:
            logger.warning("⚠️ Empty palette, timeline markers left without colors")
        return []
    if n == 1:
        return [palette[0]] * count

    rng = rng or random.Random()
    colors: List[str] = []
    prev = -1
    for _ in range(count):
        if prev < 0:
            idx = rng.randrange(n)
        else:
            idx = (prev + 1 + rng.randrange(n - 1)) % n
        colors.append(palette[idx])
        prev = idx
    return colors


def assign_colors(
    window: Sequence[NormalizedEvent],
    palette: Sequence[str],
    rng: Optional[random.Random] = None,
) -> Dict[str, str]:
    """
    Назначает цвет каждому событию окна.

    Ключ: id события. Если id нет или он уже встречался в окне, ключом
    становится позиция "#<idx>" (с доп. "#" при совпадении), порядок ключей
    совпадает с окном, записей ровно len(window).
    Пересчитывается заново на каждое изменение окна, стабильность между
    пересчётами не гарантируется.
    """
    colors = pick_colors(len(window), palette, rng)
    assigned: Dict[str, str] = {}
    for idx, (event, color) in enumerate(zip(window, colors)):
        key = event.id
        if key is None or key in assigned:
            key = f"#{idx}"
            while key in assigned:
                key = f"#{key}"
        assigned[key] = color
    return assigned
