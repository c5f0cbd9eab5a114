"""
Modelli SQLAlchemy per i Preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Contiene:
- Budget: Preventivo per un cliente
- BudgetItem: Voci del preventivo
"""


from __future__ import annotations
import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin


# Gli stati sono definiti in app.schemas.budget.BudgetStatus
# I tipi di sconto sono definiti in app.schemas.budget.DiscountKind


class Budget(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per i preventivi (budgets).

    Il totale è un valore denormalizzato: viene ricalcolato e salvato
    nella stessa transazione di ogni modifica alle voci o al trasporto.

    Attributes:
        id: UUID primary key, generato automaticamente
        owner_id: UUID dell'utente proprietario
        client_name: Nome del cliente
        client_tax_id: Codice fiscale / CPF / CNPJ del cliente
        client_address: Indirizzo del cliente
        client_postal_code: CAP del cliente
        client_phone: Telefono del cliente
        payment_method: Metodo di pagamento concordato
        freight: Costo di trasporto (>= 0)
        notes: Note libere
        total: freight + somma dei totali delle voci
        status: Stato corrente (draft, sent, approved)
        deleted_at: Data/ora di spostamento nel cestino
        version: Contatore per il rilevamento di scritture concorrenti

    States (State Machine):
        draft → sent → approved → draft (ciclico)
    """

    __tablename__ = "budgets"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        doc="UUID dell'utente proprietario",
    )

    # ------------------------------------------------------------
    # Dati Cliente
    # ------------------------------------------------------------
    client_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Nome del cliente",
    )

    client_tax_id: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        doc="Identificativo fiscale del cliente",
    )

    client_address: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
        doc="Indirizzo del cliente",
    )

    client_postal_code: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        doc="CAP del cliente",
    )

    client_phone: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        doc="Telefono del cliente",
    )

    # ------------------------------------------------------------
    # Dati Preventivo
    # ------------------------------------------------------------
    payment_method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Metodo di pagamento",
    )

    freight: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Costo di trasporto",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Note libere",
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Totale preventivo (trasporto + voci)",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="draft",
        doc="Stato corrente del preventivo",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Versione del record, incrementata a ogni scrittura",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    items: Mapped[List["BudgetItem"]] = relationship(
        "BudgetItem",
        back_populates="budget",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
        order_by="BudgetItem.created_at",
        doc="Voci del preventivo",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        # Indice composto per le liste (proprietario + cestino + data creazione)
        Index("ix_budgets_owner_deleted_created", "owner_id", "deleted_at", "created_at"),
        CheckConstraint(
            "status IN ('draft', 'sent', 'approved')",
            name="ck_budgets_status",
        ),
        CheckConstraint("freight >= 0", name="ck_budgets_freight"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Budget(id={self.id}, status={self.status}, total={self.total})>"


class BudgetItem(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le voci di preventivo.

    Attributes:
        id: UUID primary key, generato automaticamente
        budget_id: UUID del preventivo padre
        owner_id: UUID dell'utente proprietario (uguale a quello del preventivo)
        description: Descrizione della voce
        quantity: Quantità (intero >= 1)
        unit_price: Prezzo unitario (>= 0)
        discount_value: Valore dello sconto (>= 0)
        discount_kind: percentage (percentuale del subtotale) o fixed (importo)
        total: quantity * unit_price - sconto
    """

    __tablename__ = "budget_items"

    budget_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("budgets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID del preventivo padre",
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        doc="UUID dell'utente proprietario",
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        doc="Descrizione della voce",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Quantità",
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Prezzo unitario",
    )

    discount_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Valore dello sconto",
    )

    discount_kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="percentage",
        doc="Tipo di sconto: percentage o fixed",
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Totale della voce",
    )

    budget: Mapped["Budget"] = relationship(
        "Budget",
        back_populates="items",
        doc="Preventivo padre",
    )

    __table_args__ = (
        CheckConstraint(
            "discount_kind IN ('percentage', 'fixed')",
            name="ck_budget_items_discount_kind",
        ),
        CheckConstraint("quantity >= 1", name="ck_budget_items_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_budget_items_unit_price"),
        CheckConstraint("discount_value >= 0", name="ck_budget_items_discount_value"),
    )

    def __repr__(self) -> str:
        return f"<BudgetItem(id={self.id}, description={self.description[:30]}, total={self.total})>"
