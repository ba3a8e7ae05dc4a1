from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ------------------------------------------------------------
#  СПРАВОЧНИКИ
# ------------------------------------------------------------

class LedgerEventKind(str, Enum):
    """Типы событий реестра, которые пишет ledger-коллаборатор."""
    EMISSIONS_UPLOADED = "EMISSIONS_UPLOADED"
    REPORT_FROZEN = "REPORT_FROZEN"
    CERTIFICATE_ISSUED = "CERTIFICATE_ISSUED"
    ZK_PROOF_VERIFIED = "ZK_PROOF_VERIFIED"
    ORCHESTRATOR_COMPLETED = "ORCHESTRATOR_COMPLETED"
    ORCHESTRATOR_TX = "ORCHESTRATOR_TX"


class TxProvenance(str, Enum):
    """Источник подтверждающей ссылки на транзакцию."""
    LEDGER_CHAIN = "cardano"
    SIDE_CHAIN = "hydra"
    CONTENT_STORE = "ipfs"
    PROOF = "proof"


# ------------------------------------------------------------
#  СОБЫТИЯ
# ------------------------------------------------------------

class RawEvent(BaseModel):
    """
    Сырое событие из журнала аудита.

    Форма записи не гарантирована: любое поле может отсутствовать или иметь
    неожиданный тип, поэтому все поля имеют тип Any, а разбор делает normalizer.
    Принимаются как camelCase-ключи ledger-коллаборатора, так и snake_case.
    """
    model_config = ConfigDict(extra="allow")

    id: Any = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    kind: Any = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    timestamp: Any = None
    created_at: Any = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt"),
    )
    facility_id: Any = Field(
        default=None,
        validation_alias=AliasChoices("facility_id", "facilityId", "datacenter"),
    )
    description: Any = Field(
        default=None,
        validation_alias=AliasChoices("description", "detail"),
    )
    period: Any = None

    # Ссылки на транзакции в порядке приоритета
    cardano_tx_hash: Any = Field(
        default=None,
        validation_alias=AliasChoices("cardano_tx_hash", "cardanoTxHash"),
    )
    hydra_tx_id: Any = Field(
        default=None,
        validation_alias=AliasChoices("hydra_tx_id", "hydraTxId"),
    )
    report_hash: Any = Field(
        default=None,
        validation_alias=AliasChoices("report_hash", "reportHash"),
    )
    proof_hash: Any = Field(
        default=None,
        validation_alias=AliasChoices("proof_hash", "proofHash"),
    )


class TxReference(BaseModel):
    """Ссылка на внешнее подтверждение: (источник, идентификатор)."""
    model_config = ConfigDict(frozen=True)

    provenance: TxProvenance
    id: str


# Поле RawEvent для каждого источника ссылки
TX_REFERENCE_FIELDS: Dict[TxProvenance, str] = {
    TxProvenance.LEDGER_CHAIN: "cardano_tx_hash",
    TxProvenance.SIDE_CHAIN: "hydra_tx_id",
    TxProvenance.CONTENT_STORE: "report_hash",
    TxProvenance.PROOF: "proof_hash",
}


class NormalizedEvent(BaseModel):
    """
    Нормализованное событие реестра.
    Неизменяемо: группировка и окна строятся поверх, не трогая сами события.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="ID исходного события")
    kind: Optional[str] = Field(default=None, description="Тип события (LedgerEventKind или неизвестная строка)")
    timestamp: datetime = Field(description="Время события в UTC, epoch 0 если не распознано")
    facility_id: str = Field(description="Идентификатор дата-центра")
    emissions: float = Field(default=0.0, ge=0, description="Выбросы, т CO2e")
    tx_ref: Optional[TxReference] = Field(default=None, description="Ссылка на транзакцию")
    description: Optional[str] = Field(default=None, description="Текстовое описание события")
    period: Optional[str] = Field(default=None, description="Отчётный период в формате YYYY-Qn")

    def to_raw(self) -> Dict[str, Any]:
        """Оборачивает событие обратно в форму RawEvent (для повторной нормализации)."""
        raw: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
            "facility_id": self.facility_id,
            "description": self.description,
            "period": self.period,
        }
        if self.tx_ref is not None:
            raw[TX_REFERENCE_FIELDS[self.tx_ref.provenance]] = self.tx_ref.id
        return raw


# ------------------------------------------------------------
#  АГРЕГАТЫ И ТАЙМЛАЙН
# ------------------------------------------------------------

class AggregateMetrics(BaseModel):
    """Суммарные выбросы и кредитный баланс относительно порога."""
    total_emissions: float = Field(description="Сумма выбросов по окну, т CO2e")
    credit_balance: float = Field(description="threshold - total_emissions; отрицательный означает дефицит")
    is_surplus: bool = Field(description="credit_balance >= 0")
    threshold: float = Field(description="Порог, относительно которого считался баланс")


class TimelineEntry(BaseModel):
    """Одно событие в видимом окне, готовое к отрисовке."""
    event: NormalizedEvent
    color: Optional[str] = Field(default=None, description="Цвет маркера, отличный от соседнего")
    kind_color: str = Field(description="Акцентный цвет типа события")
    label: str = Field(description="Подпись типа события")
    detail: str = Field(description="Описание для отображения")
    tx_display: Optional[str] = Field(default=None, description="Сокращённый идентификатор транзакции")


class WindowCursorOut(BaseModel):
    """Состояние пагинации окна, которое клиент хранит у себя."""
    initial: int
    step: int
    total: int
    size: int
    is_terminal: bool


class FacilityTimeline(BaseModel):
    """
    Таймлайн одного дата-центра: видимое окно событий, цвета, метрики.
    Главный DTO для слоя отрисовки.
    """
    facility_id: str
    is_registered: bool = Field(description="Площадка есть в реестре (а не выведена из текста)")
    total_count: int = Field(description="Всего событий по площадке")
    events_label: str
    cursor: WindowCursorOut
    has_more: bool
    entries: List[TimelineEntry]
    window_metrics: AggregateMetrics = Field(description="Метрики по видимому окну")
    facility_metrics: AggregateMetrics = Field(description="Метрики по всем событиям площадки")


# ------------------------------------------------------------
#  ЗАПРОСЫ / ОТВЕТЫ API
# ------------------------------------------------------------

class NormalizeRequest(BaseModel):
    events: List[RawEvent] = Field(default_factory=list)


class NormalizeResponse(BaseModel):
    items: List[NormalizedEvent]
    count: int


class TimelineRequest(BaseModel):
    """
    Параметры построения таймлайнов.
    Если known_facilities или threshold не заданы, берём из конфигурации.
    """
    events: List[RawEvent] = Field(default_factory=list)
    known_facilities: Optional[List[str]] = Field(
        default=None,
        description="Реестр известных площадок; пустые площадки тоже попадут в ответ",
    )
    window_sizes: Dict[str, int] = Field(
        default_factory=dict,
        description="Текущий размер окна по площадкам (состояние курсора на стороне клиента)",
    )
    threshold: Optional[float] = Field(default=None, description="Порог выбросов для баланса")
    seed: Optional[int] = Field(default=None, description="Seed для воспроизводимых цветов")


class TimelineResponse(BaseModel):
    facilities: List[FacilityTimeline]
    count: int
    threshold: float


class AdvanceRequest(BaseModel):
    window_size: int = Field(ge=0, description="Текущий размер окна")
    total_count: int = Field(ge=0, description="Всего событий в группе")
    initial: Optional[int] = Field(default=None, ge=0)
    step: Optional[int] = Field(default=None, ge=1)


class TimelineConfigOut(BaseModel):
    known_facilities: List[str]
    window_initial: int
    window_step: int
    emissions_threshold: float
    palette: List[str]
