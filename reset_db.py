"""
Reset del database dei preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Elimina e ricrea tutte le tabelle (preventivi, voci, profili).
In produzione il reset viene rifiutato se non si passa --force.

Uso:
    python reset_db.py [--force]
"""

import argparse
import asyncio
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare app.*
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend"))

from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings
from app.core.database import engine
from app.models import Base


async def reset(db_engine: AsyncEngine) -> list[str]:
    """
    Elimina e ricrea lo schema sull'engine indicato.

    Returns:
        Nomi delle tabelle create, in ordine alfabetico
    """
    print(f"Connessione al database ({db_engine.url.render_as_string(hide_password=True)})...")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    tables = sorted(Base.metadata.tables)
    print(f"Ricreate {len(tables)} tabelle: {', '.join(tables)}")
    return tables


async def _run() -> None:
    try:
        await reset(engine)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Elimina e ricrea le tabelle dei preventivi")
    parser.add_argument("--force", action="store_true", help="Consente il reset anche in produzione")
    args = parser.parse_args(argv)

    if settings.is_production and not args.force:
        print("Ambiente di produzione: reset rifiutato (usa --force per confermare)", file=sys.stderr)
        return 1

    asyncio.run(_run())
    print("Database preventivi resettato con successo!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
