"""
Service Layer per il Profilo aziendale
Progetto: Budget Manager (Gestionale Preventivi)
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PersistenceError
from app.models import Profile
from app.schemas.profile import ProfileUpdate

# Logger per questo modulo
logger = logging.getLogger(__name__)


class ProfileService:
    """
    Service per il profilo dell'utente.

    Il profilo viene creato vuoto al primo accesso.
    """

    async def get_or_create(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
    ) -> Profile:
        """
        Recupera il profilo dell'utente, creandolo se non esiste.

        Args:
            db: Sessione database
            owner_id: UUID dell'utente

        Returns:
            Profile: Il profilo dell'utente
        """
        result = await db.execute(select(Profile).where(Profile.owner_id == owner_id))
        profile = result.scalar_one_or_none()
        if profile is not None:
            return profile

        profile = Profile(owner_id=owner_id)
        db.add(profile)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione profilo: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise PersistenceError("Errore del database durante la creazione del profilo")

        logger.info("Creato profilo per utente %s", owner_id)
        return profile

    async def update(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        data: ProfileUpdate,
    ) -> Profile:
        """
        Aggiorna i campi forniti del profilo.

        Args:
            db: Sessione database
            owner_id: UUID dell'utente
            data: Campi da aggiornare (solo quelli impostati)

        Returns:
            Profile: Il profilo aggiornato
        """
        profile = await self.get_or_create(db, owner_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento profilo: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise PersistenceError("Errore del database durante l'aggiornamento del profilo")

        logger.info("Aggiornato profilo utente %s", owner_id)
        return profile
