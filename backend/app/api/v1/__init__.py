"""
API v1 Routes
Progetto: Budget Manager (Gestionale Preventivi)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from app.api.v1 import analytics, budgets, profile

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(budgets.router)
api_v1_router.include_router(analytics.router)
api_v1_router.include_router(profile.router)

# Esportazione
__all__ = ["api_v1_router"]
