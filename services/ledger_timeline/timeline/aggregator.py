# services/ledger_timeline/timeline/aggregator.py

import math
from typing import Iterable

from schemas import AggregateMetrics, NormalizedEvent


def aggregate(window: Iterable[NormalizedEvent], threshold: float) -> AggregateMetrics:
    """
    Суммарные выбросы по окну и кредитный баланс:
        credit_balance = threshold - total_emissions,
        is_surplus = credit_balance >= 0.
    Пустое окно даёт total_emissions = 0.
    """
    total = math.fsum(event.emissions for event in window)
    balance = threshold - total
    return AggregateMetrics(
        total_emissions=total,
        credit_balance=balance,
        is_surplus=balance >= 0,
        threshold=threshold,
    )
