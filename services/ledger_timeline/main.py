# services/ledger_timeline/main.py

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from utils.logging import setup_logging
from config import settings
from routers import timeline as timeline_router


# --- Логирование ---
logger = setup_logging()

# --- Приложение FastAPI ---
app = FastAPI(
    title=settings.SERVICE_NAME,
    version=settings.VERSION,
    description=(
        "Ledger Timeline Service — нормализация событий реестра аудита, "
        "таймлайны по дата-центрам, цвета маркеров и кредитный баланс выбросов."
    ),
)

# --- Метрики Prometheus ---
Instrumentator().instrument(app).expose(app, include_in_schema=False)


# --- События приложения ---
@app.on_event("startup")
def startup_event():
    """Сервис без собственного хранилища: при старте только фиксируем конфигурацию."""
    logger.info(
        f"🧱 ledger_timeline started: known_facilities={len(settings.KNOWN_FACILITIES)}, "
        f"window={settings.WINDOW_INITIAL}+{settings.WINDOW_STEP}, "
        f"threshold={settings.EMISSIONS_THRESHOLD}"
    )


# --- Health & readiness ---
@app.get("/health", tags=["system"])
async def health():
    return {"status": "ok", "service": "ledger_timeline"}


@app.get("/ready", tags=["system"])
async def ready():
    return {"status": "ready"}


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Ledger Timeline Service is operational"}


# --- Маршруты доменной логики (таймлайн реестра) ---
app.include_router(timeline_router.router)
