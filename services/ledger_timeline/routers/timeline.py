# services/ledger_timeline/routers/timeline.py

import random

from fastapi import APIRouter, HTTPException

from config import settings
from schemas import (
    AdvanceRequest,
    NormalizeRequest,
    NormalizeResponse,
    TimelineConfigOut,
    TimelineRequest,
    TimelineResponse,
    WindowCursorOut,
)
from timeline.colors import generate_palette
from timeline.normalizer import normalize
from timeline.pagination import WindowCursor
from timeline.pipeline import build_timelines
from utils.logging import setup_logging

logger = setup_logging()

router = APIRouter(prefix="/api/v1/timeline", tags=["timeline"])


def current_palette() -> list[str]:
    """Палитра маркеров из настроек сервиса."""
    return generate_palette(
        size=settings.PALETTE_SIZE,
        saturation=settings.PALETTE_SATURATION,
        lightness=settings.PALETTE_LIGHTNESS,
    )


# ---------- Служебные эндпойнты ----------


@router.get("/config", response_model=TimelineConfigOut)
async def get_config():
    """Текущие параметры палитры, пагинации и порога выбросов."""
    return TimelineConfigOut(
        known_facilities=settings.KNOWN_FACILITIES,
        window_initial=settings.WINDOW_INITIAL,
        window_step=settings.WINDOW_STEP,
        emissions_threshold=settings.EMISSIONS_THRESHOLD,
        palette=current_palette(),
    )


# ---------- Основные эндпойнты ----------


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize_events(req: NormalizeRequest):
    """
    Нормализует пачку сырых событий реестра.
    Плохие записи не роняют запрос, а получают значения по умолчанию.
    """
    items = normalize(req.events)
    logger.info(f"🧹 Normalized {len(items)} ledger events via API")
    return NormalizeResponse(items=items, count=len(items))


@router.post("/build", response_model=TimelineResponse)
async def build(req: TimelineRequest):
    """
    Строит таймлайны по площадкам:
      - нормализация и группировка событий (реестр + площадки из текста),
      - сортировка и окно по курсору клиента (window_sizes),
      - цвета маркеров и метрики выбросов/баланса.
    """
    threshold = req.threshold if req.threshold is not None else settings.EMISSIONS_THRESHOLD
    known = req.known_facilities if req.known_facilities is not None else settings.KNOWN_FACILITIES
    rng = random.Random(req.seed) if req.seed is not None else random.Random()

    logger.info(
        f"📊 Timeline build requested: events={len(req.events)}, "
        f"known_facilities={len(known)}, threshold={threshold}"
    )

    facilities = build_timelines(
        req.events,
        known,
        threshold=threshold,
        palette=current_palette(),
        initial=settings.WINDOW_INITIAL,
        step=settings.WINDOW_STEP,
        window_sizes=req.window_sizes,
        rng=rng,
    )

    return TimelineResponse(
        facilities=facilities,
        count=len(facilities),
        threshold=threshold,
    )


@router.post("/advance", response_model=WindowCursorOut)
async def advance(req: AdvanceRequest):
    """Показывает следующую порцию событий: возвращает продвинутый курсор."""
    if req.window_size > req.total_count:
        raise HTTPException(status_code=400, detail="window_size must be <= total_count")

    start = WindowCursor.start(
        req.total_count,
        initial=req.initial if req.initial is not None else settings.WINDOW_INITIAL,
        step=req.step if req.step is not None else settings.WINDOW_STEP,
    )
    # окно меньше стартового: клиент ещё не видел первую порцию
    if req.window_size < start.size:
        logger.debug(f"➡️ Window {req.window_size} below start, answering with {start.size} of {start.total}")
        return start.to_out()

    cursor = start.resume(req.window_size)
    advanced = cursor.advance()

    logger.debug(f"➡️ Window advanced: {cursor.size} -> {advanced.size} of {advanced.total}")
    return advanced.to_out()
