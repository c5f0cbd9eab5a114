"""
Router FastAPI per il Profilo aziendale
Progetto: Budget Manager (Gestionale Preventivi)

Il profilo fornisce i dati dell'emittente per il documento stampabile.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit, get_db
from app.core.deps import CurrentUserId
from app.schemas.profile import ProfileRead, ProfileUpdate
from app.services.profile_service import ProfileService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/profile",
    tags=["Profilo"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_profile_service() -> ProfileService:
    """
    Dependency per ottenere un'istanza del ProfileService.

    Permette di sostituire il service nei test.
    """
    return ProfileService()


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "/",
    name="profilo_leggi",
    summary="Profilo utente",
    description="Recupera il profilo dell'utente corrente, creandolo vuoto al primo accesso.",
    response_model=ProfileRead,
    status_code=status.HTTP_200_OK,
)
async def get_profile(
    owner_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileRead:
    """Profilo dell'utente corrente."""
    profile = await service.get_or_create(db, owner_id)
    await commit(db)
    return ProfileRead.model_validate(profile)


@router.put(
    "/",
    name="profilo_aggiorna",
    summary="Aggiorna profilo",
    description="Aggiorna i campi forniti del profilo. Il logo è indicato tramite URL: "
               "il file è gestito dallo storage esterno.",
    response_model=ProfileRead,
    status_code=status.HTTP_200_OK,
)
async def update_profile(
    owner_id: CurrentUserId,
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileRead:
    """
    Aggiorna il profilo dell'utente corrente.

    Args:
        owner_id: Utente corrente
        data: Campi da aggiornare
        db: Sessione database
        service: Istanza del service

    Returns:
        ProfileRead: Il profilo aggiornato
    """
    profile = await service.update(db, owner_id, data)
    await commit(db)
    return ProfileRead.model_validate(profile)
