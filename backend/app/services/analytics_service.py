"""
Service Layer per le statistiche per periodo
Progetto: Budget Manager (Gestionale Preventivi)

Raggruppa i preventivi in periodi allineati al calendario (giorno,
settimana, mese, anno) su una finestra retrospettiva fissa e calcola
conteggio, somma e media per periodo. Sola lettura: nessun preventivo
viene modificato.

Finestre:
    day   → ultimi 30 giorni
    week  → ultime 12 settimane
    month → ultimi 12 mesi
    year  → ultimi 5 anni
"""

import calendar
import datetime
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Protocol, Union
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BusinessValidationError
from app.models import Budget
from app.models.mixins import as_utc, utc_now
from app.schemas.analytics import (
    AnalyticsPeriod,
    AnalyticsReport,
    AnalyticsSummary,
    PeriodBucket,
)
from app.schemas.budget import BudgetStatus

# Logger per questo modulo
logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

MONTH_ABBREVIATIONS: dict[str, tuple[str, ...]] = {
    "pt-BR": ("jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"),
    "en-US": ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"),
}


class Aggregatable(Protocol):
    created_at: datetime.datetime
    total: Decimal


# -------------------------------------------------------------------
# Aritmetica del calendario
# -------------------------------------------------------------------

def shift_months(value: datetime.datetime, months: int) -> datetime.datetime:
    """Sposta una data di N mesi, limitando il giorno alla fine del mese (31/03 - 1 mese → 28/02)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def window_start(period: Union[AnalyticsPeriod, str], now: datetime.datetime) -> datetime.datetime:
    """
    Inizio della finestra retrospettiva per la granularità indicata.

    Args:
        period: day | week | month | year
        now: Fine della finestra

    Returns:
        datetime: Stesso fuso orario di `now`
    """
    period = _parse_period(period)
    if period is AnalyticsPeriod.DAY:
        return now - datetime.timedelta(days=30)
    if period is AnalyticsPeriod.WEEK:
        return now - datetime.timedelta(weeks=12)
    if period is AnalyticsPeriod.MONTH:
        return shift_months(now, -12)
    return shift_months(now, -60)


def period_floor(day: datetime.date, period: AnalyticsPeriod, week_start: int) -> datetime.date:
    """Primo giorno del periodo che contiene `day`."""
    if period is AnalyticsPeriod.DAY:
        return day
    if period is AnalyticsPeriod.WEEK:
        return day - datetime.timedelta(days=(day.weekday() - week_start) % 7)
    if period is AnalyticsPeriod.MONTH:
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def next_period(start: datetime.date, period: AnalyticsPeriod) -> datetime.date:
    """Primo giorno del periodo successivo."""
    if period is AnalyticsPeriod.DAY:
        return start + datetime.timedelta(days=1)
    if period is AnalyticsPeriod.WEEK:
        return start + datetime.timedelta(weeks=1)
    if period is AnalyticsPeriod.MONTH:
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)
    return start.replace(year=start.year + 1)


def format_label(start: datetime.date, period: AnalyticsPeriod, locale: str) -> str:
    """
    Etichetta di un periodo, derivata solo dalla sua data di inizio.

    day/week → "dd/MM", month → "mmm/yy" (es. "out/25"), year → "yyyy".
    """
    if period in (AnalyticsPeriod.DAY, AnalyticsPeriod.WEEK):
        return start.strftime("%d/%m")
    if period is AnalyticsPeriod.MONTH:
        months = MONTH_ABBREVIATIONS.get(locale, MONTH_ABBREVIATIONS["pt-BR"])
        return f"{months[start.month - 1]}/{start.strftime('%y')}"
    return start.strftime("%Y")


def _parse_period(period: Union[AnalyticsPeriod, str]) -> AnalyticsPeriod:
    try:
        return AnalyticsPeriod(period)
    except ValueError:
        raise BusinessValidationError(f"Periodo non valido: {period}")


def _local_midnight(day: datetime.date, tz: ZoneInfo) -> datetime.datetime:
    return datetime.datetime.combine(day, datetime.time.min, tzinfo=tz)


def _average(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return Decimal("0")
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


# -------------------------------------------------------------------
# Aggregazione (funzione pura)
# -------------------------------------------------------------------

def aggregate(
    budgets: Iterable[Aggregatable],
    period: Union[AnalyticsPeriod, str],
    now: datetime.datetime,
    tz: Optional[ZoneInfo] = None,
    week_start: Optional[int] = None,
    locale: Optional[str] = None,
) -> list[PeriodBucket]:
    """
    Raggruppa i preventivi per periodo.

    Genera tutti i periodi allineati al calendario che coprono
    [window_start, now], anche se vuoti, e assegna ogni preventivo
    creato nella finestra al solo periodo che contiene la sua data
    di creazione. I preventivi fuori finestra sono ignorati.

    Args:
        budgets: Oggetti con created_at e total
        period: day | week | month | year
        now: Fine della finestra
        tz: Fuso orario dei confini (default: settings.analytics_timezone)
        week_start: Primo giorno della settimana, 0 = lunedì (default da settings)
        locale: Locale delle etichette (default da settings)

    Returns:
        list[PeriodBucket]: Periodi in ordine cronologico
    """
    period = _parse_period(period)
    tz = tz or settings.tzinfo
    week_start = settings.analytics_week_start if week_start is None else week_start
    locale = locale or settings.analytics_locale

    end = as_utc(now).astimezone(tz)
    start = window_start(period, end)

    # Periodi: chiave = primo giorno del periodo
    buckets: dict[datetime.date, PeriodBucket] = {}
    day = period_floor(start.date(), period, week_start)
    while day <= end.date():
        following = next_period(day, period)
        buckets[day] = PeriodBucket(
            label=format_label(day, period, locale),
            period_start=_local_midnight(day, tz),
            period_end=_local_midnight(following, tz) - datetime.timedelta(microseconds=1),
        )
        day = following

    for budget in budgets:
        created = as_utc(budget.created_at).astimezone(tz)
        if created < start or created > end:
            continue
        bucket = buckets[period_floor(created.date(), period, week_start)]
        bucket.count += 1
        bucket.total += Decimal(str(budget.total))

    for bucket in buckets.values():
        bucket.average = _average(bucket.total, bucket.count)

    return list(buckets.values())


def summarize(budgets: Iterable[Aggregatable]) -> AnalyticsSummary:
    """Conteggio, somma e media su tutti i preventivi forniti."""
    count = 0
    total = Decimal("0")
    for budget in budgets:
        count += 1
        total += Decimal(str(budget.total))
    return AnalyticsSummary(count=count, total=total, average=_average(total, count))


class AnalyticsService:
    """
    Service per il report statistico dei preventivi.

    Esegue una sola lettura limitata alla finestra del periodo
    e delega il calcolo alle funzioni pure del modulo.
    """

    async def get_budgets_in_window(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> list[Budget]:
        """
        Preventivi attivi creati in [start, end], in ordine crescente di creazione.
        """
        query = (
            select(Budget)
            .where(
                Budget.owner_id == owner_id,
                Budget.deleted_at.is_(None),
                Budget.created_at >= as_utc(start),
                Budget.created_at <= as_utc(end),
            )
            .order_by(Budget.created_at.asc())
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_report(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        period: Union[AnalyticsPeriod, str] = AnalyticsPeriod.MONTH,
        now: Optional[datetime.datetime] = None,
    ) -> AnalyticsReport:
        """
        Report per periodo dei preventivi dell'utente.

        Args:
            db: Sessione database
            owner_id: UUID dell'utente
            period: Granularità
            now: Fine della finestra (default: istante corrente)

        Returns:
            AnalyticsReport: Periodi, riepilogo e distribuzione per stato
        """
        period = _parse_period(period)
        end = as_utc(now or utc_now()).astimezone(settings.tzinfo)
        start = window_start(period, end)

        budgets = await self.get_budgets_in_window(db, owner_id, start, end)

        breakdown = {status.value: 0 for status in BudgetStatus}
        for budget in budgets:
            breakdown[budget.status] = breakdown.get(budget.status, 0) + 1

        logger.debug(
            "Report %s per utente %s: %d preventivi nella finestra",
            period.value, owner_id, len(budgets),
        )

        return AnalyticsReport(
            period=period,
            window_start=start,
            window_end=end,
            buckets=aggregate(budgets, period, end),
            summary=summarize(budgets),
            status_breakdown=breakdown,
        )
