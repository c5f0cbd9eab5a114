"""
Pytest configuration and fixtures for the Budget Manager tests.

I service vengono testati su un database SQLite in memoria (aiosqlite)
creato per ogni test; i test API usano httpx.AsyncClient con la
dependency get_db sostituita e token JWT reali.
"""

import os

# Le impostazioni vengono lette all'import di app.core.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "testing")

import datetime
import uuid
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import create_access_token
from app.main import app
from app.models import Base, Budget, BudgetItem
from app.schemas.budget import BudgetCreate, PaymentMethod


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    return db


# ============================================================
# Fixtures per database SQLite in memoria
# ============================================================


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Sessione su un database SQLite in memoria con tutte le tabelle."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


# ============================================================
# Fixtures per utenti e dati
# ============================================================


@pytest.fixture
def owner_id() -> uuid.UUID:
    """UUID dell'utente corrente."""
    return uuid.uuid4()


@pytest.fixture
def other_owner_id() -> uuid.UUID:
    """UUID di un secondo utente."""
    return uuid.uuid4()


@pytest.fixture
def budget_create_data() -> BudgetCreate:
    """Dati validi per la creazione di un preventivo."""
    return BudgetCreate(
        client_name="Maria Souza",
        client_tax_id="12345678901",
        client_address="Rua das Flores 100",
        client_postal_code="01310-100",
        client_phone="11987654321",
        payment_method=PaymentMethod.PIX,
    )


@pytest.fixture
def budget_payload() -> dict:
    """Payload JSON per la creazione di un preventivo via API."""
    return {
        "client_name": "Maria Souza",
        "client_tax_id": "12345678901",
        "client_address": "Rua das Flores 100",
        "client_postal_code": "01310-100",
        "client_phone": "11987654321",
        "payment_method": "pix",
    }


def make_budget(owner_id: uuid.UUID, **kwargs) -> Budget:
    """Costruisce un Budget persistibile con valori di default."""
    values = {
        "owner_id": owner_id,
        "client_name": "Maria Souza",
        "client_tax_id": "12345678901",
        "client_address": "Rua das Flores 100",
        "client_phone": "11987654321",
        "payment_method": "pix",
        "freight": Decimal("0"),
        "total": Decimal("0"),
        "status": "draft",
    }
    values.update(kwargs)
    return Budget(**values)


def make_item(budget: Budget, **kwargs) -> BudgetItem:
    """Costruisce una voce per il preventivo indicato."""
    values = {
        "budget_id": budget.id,
        "owner_id": budget.owner_id,
        "description": "Serviço",
        "quantity": 1,
        "unit_price": Decimal("0"),
        "discount_value": Decimal("0"),
        "discount_kind": "percentage",
        "total": Decimal("0"),
    }
    values.update(kwargs)
    return BudgetItem(**values)


@pytest.fixture
def fixed_now() -> datetime.datetime:
    """Istante di riferimento: 15/10/2025 12:00 a São Paulo."""
    return datetime.datetime(2025, 10, 15, 15, 0, tzinfo=datetime.timezone.utc)


# ============================================================
# Fixtures per il client HTTP
# ============================================================


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Client HTTP sull'app con la sessione di test."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(owner_id: uuid.UUID) -> dict[str, str]:
    """Header Authorization per l'utente corrente."""
    return {"Authorization": f"Bearer {create_access_token(str(owner_id))}"}


@pytest.fixture
def other_auth_headers(other_owner_id: uuid.UUID) -> dict[str, str]:
    """Header Authorization per il secondo utente."""
    return {"Authorization": f"Bearer {create_access_token(str(other_owner_id))}"}
