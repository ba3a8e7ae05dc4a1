# services/ledger_timeline/timeline/pagination.py

from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemas import NormalizedEvent, WindowCursorOut

DEFAULT_INITIAL = 20
DEFAULT_STEP = 20


def order_events(events: Sequence[NormalizedEvent]) -> List[NormalizedEvent]:
    """
    Сортирует события группы: сначала самые свежие.
    sorted() стабилен и при reverse=True, поэтому равные timestamp
    сохраняют входной порядок.
    """
    return sorted(events, key=lambda e: e.timestamp, reverse=True)


class WindowCursor(BaseModel):
    """
    Курсор видимого окна одной группы.

    Значение неизменяемо: переходы (advance/rebase/resume) возвращают новый
    курсор. size только растёт шагами step и никогда не превышает total.
    """
    model_config = ConfigDict(frozen=True)

    initial: int = Field(default=DEFAULT_INITIAL, ge=0)
    step: int = Field(default=DEFAULT_STEP, ge=1)
    total: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _size_within_total(self) -> "WindowCursor":
        if self.size > self.total:
            raise ValueError(f"size ({self.size}) must be <= total ({self.total})")
        return self

    @classmethod
    def start(cls, total: int, initial: int = DEFAULT_INITIAL, step: int = DEFAULT_STEP) -> "WindowCursor":
        total = max(0, total)
        return cls(initial=initial, step=step, total=total, size=min(initial, total))

    @property
    def start_size(self) -> int:
        return min(self.initial, self.total)

    @property
    def is_terminal(self) -> bool:
        return self.size >= self.total

    @property
    def has_more(self) -> bool:
        return not self.is_terminal

    def advance(self) -> "WindowCursor":
        """Показать ещё step событий. В терминальном состоянии no-op."""
        if self.is_terminal:
            return self
        return self.model_copy(update={"size": min(self.size + self.step, self.total)})

    def resume(self, size: int) -> "WindowCursor":
        """Восстанавливает размер окна, который хранил клиент."""
        size = max(self.start_size, min(size, self.total))
        return self.model_copy(update={"size": size})

    def rebase(self, total: int) -> "WindowCursor":
        """
        Пересчёт после изменения данных группы.
        Окно не сжимается ниже стартового и не выходит за новый total.
        """
        total = max(0, total)
        size = min(max(self.size, min(self.initial, total)), total)
        return self.model_copy(update={"total": total, "size": size})

    def window(self, ordered: Sequence[NormalizedEvent]) -> List[NormalizedEvent]:
        """DisplayWindow: префикс отсортированной последовательности длины size."""
        return list(ordered[: self.size])

    def to_out(self) -> WindowCursorOut:
        return WindowCursorOut(
            initial=self.initial,
            step=self.step,
            total=self.total,
            size=self.size,
            is_terminal=self.is_terminal,
        )
