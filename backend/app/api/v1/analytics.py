"""
Router FastAPI per le statistiche
Progetto: Budget Manager (Gestionale Preventivi)

Endpoint di sola lettura per la dashboard statistiche per periodo.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentUserId
from app.schemas.analytics import AnalyticsPeriod, AnalyticsReport
from app.services.analytics_service import AnalyticsService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/analytics",
    tags=["Statistiche"],
)


def get_analytics_service() -> AnalyticsService:
    """Dependency per ottenere un'istanza dell'AnalyticsService."""
    return AnalyticsService()


@router.get(
    "/",
    name="statistiche_periodo",
    summary="Statistiche per periodo",
    description="Raggruppa i preventivi attivi per giorno (30 giorni), settimana (12 settimane), "
               "mese (12 mesi) o anno (5 anni) con conteggio, somma e media.",
    response_model=AnalyticsReport,
    status_code=status.HTTP_200_OK,
)
async def get_analytics(
    owner_id: CurrentUserId,
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH, description="Granularità"),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsReport:
    """
    Report per periodo dei preventivi dell'utente.

    Args:
        owner_id: Utente corrente
        period: day | week | month | year
        db: Sessione database
        service: Istanza del service

    Returns:
        AnalyticsReport: Periodi, riepilogo e distribuzione per stato
    """
    return await service.get_report(db, owner_id, period)
