"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Budget Manager (Gestionale Preventivi)

Definisce engine, session factory e dependency injection per FastAPI.
"""

import logging
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import ConflictError, PersistenceError

# Logger per questo modulo
logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Opzioni dell'engine in base al driver.

    SQLite (usato in sviluppo/test) non supporta le opzioni di pool.
    """
    if make_url(database_url).drivername.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,  # Log query in modalità debug
    **_engine_options(settings.database_url),
)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Crea una sessione database per ogni richiesta e la chiude
    automaticamente al termine. Ogni richiesta corrisponde a una
    transazione: il router esegue un solo commit a fine operazione.

    Yields:
        AsyncSession: Sessione database async
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def commit(db: AsyncSession) -> None:
    """
    Esegue il commit della transazione della richiesta.

    Gli errori di storage vengono tradotti come nel flush dei servizi,
    così il client riceve 409/503 invece di un errore generico.

    Raises:
        ConflictError: Se un preventivo è stato modificato da un'altra sessione
        PersistenceError: Per qualsiasi altro errore del database
    """
    try:
        await db.commit()
    except StaleDataError as e:
        logger.warning("Scrittura concorrente durante il commit: %s", e)
        await db.rollback()
        raise ConflictError(
            "Il preventivo è stato modificato da un'altra sessione. Ricarica e riprova."
        )
    except SQLAlchemyError as e:
        logger.error("Errore SQLAlchemy durante il commit: %s - %s", e.__class__.__name__, e)
        await db.rollback()
        raise PersistenceError("Errore del database durante il salvataggio")


async def init_db() -> None:
    """
    Inizializza la connessione al database.

    Esegue un test di connessione per verificare
    che il database sia raggiungibile.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def close_db() -> None:
    """
    Chiude le connessioni al database.

    Da chiamare durante lo shutdown dell'applicazione.
    """
    await engine.dispose()
    logger.info("Connessioni database chiuse")
