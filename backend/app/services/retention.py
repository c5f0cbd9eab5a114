"""
Finestra di conservazione del cestino
Progetto: Budget Manager (Gestionale Preventivi)

Calcoli di sola lettura sulla permanenza nel cestino. L'eliminazione
definitiva resta un'azione esplicita dell'utente: nessun processo
elimina automaticamente i preventivi scaduti.
"""

import datetime
import math
from typing import Optional

from app.core.config import settings
from app.models.mixins import as_utc, utc_now

SECONDS_PER_DAY = 86400


def retention_deadline(
    deleted_at: datetime.datetime,
    retention_days: Optional[int] = None,
) -> datetime.datetime:
    """Istante dal quale il preventivo nel cestino è eliminabile."""
    if retention_days is None:
        retention_days = settings.retention_days
    return as_utc(deleted_at) + datetime.timedelta(days=retention_days)


def days_remaining(
    deleted_at: datetime.datetime,
    now: Optional[datetime.datetime] = None,
    retention_days: Optional[int] = None,
) -> int:
    """
    Giorni residui di permanenza nel cestino.

    ceil((deleted_at + retention - now) / 1 giorno). Valori <= 0 indicano
    che il preventivo può essere eliminato definitivamente.

    Examples:
        deleted_at = now - 29 giorni → 1
        deleted_at = now - 31 giorni → -1
    """
    if now is None:
        now = utc_now()
    remaining = retention_deadline(deleted_at, retention_days) - as_utc(now)
    return math.ceil(remaining.total_seconds() / SECONDS_PER_DAY)


def is_purge_eligible(
    deleted_at: Optional[datetime.datetime],
    now: Optional[datetime.datetime] = None,
    retention_days: Optional[int] = None,
) -> bool:
    """True se il preventivo è nel cestino e la finestra di conservazione è trascorsa."""
    if deleted_at is None:
        return False
    return days_remaining(deleted_at, now, retention_days) <= 0
