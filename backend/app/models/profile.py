"""
Modello SQLAlchemy per il Profilo aziendale
Progetto: Budget Manager (Gestionale Preventivi)

Dati dell'emittente stampati sui documenti dei preventivi.
"""

from __future__ import annotations
import uuid
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class Profile(Base, UUIDMixin, TimestampMixin):
    """
    Profilo dell'utente (uno per proprietario).

    Il logo è conservato da un blob store esterno: qui si salva solo l'URL.

    Attributes:
        owner_id: UUID dell'utente, univoco
        full_name: Ragione sociale o nome
        tax_id: CPF/CNPJ o partita IVA
        phone: Telefono
        email: Email di contatto
        address: Indirizzo
        logo_url: URL pubblico del logo
    """

    __tablename__ = "profiles"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        index=True,
        doc="UUID dell'utente proprietario",
    )

    full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tax_id: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<Profile(owner_id={self.owner_id}, full_name={self.full_name})>"
