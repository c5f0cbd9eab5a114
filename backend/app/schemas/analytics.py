"""
Schemas Pydantic per le statistiche per periodo
Progetto: Budget Manager (Gestionale Preventivi)
"""

import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class AnalyticsPeriod(str, Enum):
    """Granularità dei periodi di aggregazione."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class PeriodBucket(BaseModel):
    """
    Metriche di un periodo allineato al calendario.

    Attributes:
        label: Etichetta del periodo (dipende dal locale)
        period_start: Inizio del periodo (incluso)
        period_end: Fine del periodo (inclusa)
        count: Numero di preventivi creati nel periodo
        total: Somma dei totali
        average: total / count, 0 se il periodo è vuoto
    """
    label: str
    period_start: datetime.datetime
    period_end: datetime.datetime
    count: int = 0
    total: Decimal = Decimal("0")
    average: Decimal = Decimal("0")


class AnalyticsSummary(BaseModel):
    """Totali sull'intera finestra di analisi."""
    count: int = 0
    total: Decimal = Decimal("0")
    average: Decimal = Decimal("0")


class AnalyticsReport(BaseModel):
    """
    Report completo per la dashboard statistiche.

    Attributes:
        period: Granularità richiesta
        window_start: Inizio della finestra di analisi
        window_end: Fine della finestra (istante della richiesta)
        buckets: Periodi ordinati cronologicamente
        summary: Totali della finestra
        status_breakdown: Numero di preventivi per stato
    """
    period: AnalyticsPeriod
    window_start: datetime.datetime
    window_end: datetime.datetime
    buckets: list[PeriodBucket]
    summary: AnalyticsSummary
    status_breakdown: dict[str, int] = Field(default_factory=dict)
