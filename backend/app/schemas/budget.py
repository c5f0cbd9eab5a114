"""
Schemas Pydantic per i Preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Definisce gli schemi di validazione e serializzazione per l'API.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from app.schemas.profile import ProfileRead
from app.services.retention import days_remaining, is_purge_eligible

# Limiti delle colonne: Numeric(12, 2) per gli importi, Integer per le quantità
MAX_AMOUNT = Decimal("10000000000")
MAX_QUANTITY = 2_147_483_647


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class BudgetStatus(str, Enum):
    """Enum che definisce i possibili stati di un preventivo."""
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"


class DiscountKind(str, Enum):
    """Tipo di sconto applicato a una voce."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethod(str, Enum):
    """Metodi di pagamento accettati."""
    CASH = "cash"
    PIX = "pix"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BOLETO = "boleto"


class RecordScope(str, Enum):
    """Insieme di preventivi da elencare: attivi o nel cestino."""
    ACTIVE = "active"
    TRASHED = "trashed"


class SortOrder(str, Enum):
    """Ordinamento per data di creazione."""
    DESC = "desc"
    ASC = "asc"


# -------------------------------------------------------------------
# Funzioni di validazione standalone
# -------------------------------------------------------------------

def normalize_text_field(v: Optional[str]) -> Optional[str]:
    """
    Rimuove gli spazi iniziali e finali.

    Args:
        v: Testo in input

    Returns:
        Testo normalizzato (None resta None)
    """
    if v is None:
        return v
    return v.strip()


def strip_if_text(v):
    """Rimuove gli spazi prima della validazione di lunghezza."""
    if isinstance(v, str):
        return v.strip()
    return v


def validate_item_subtotal(quantity: Optional[int], unit_price: Optional[Decimal]) -> None:
    """
    Verifica che quantità × prezzo unitario resti sotto MAX_AMOUNT.

    Raises:
        ValueError: Se il subtotale non è rappresentabile come importo
    """
    if quantity is None or unit_price is None:
        return
    if quantity * unit_price >= MAX_AMOUNT:
        raise ValueError(
            f"Il subtotale della voce (quantità × prezzo unitario) deve essere inferiore a {MAX_AMOUNT}"
        )


def validate_total_range(
    min_total: Optional[Decimal], max_total: Optional[Decimal]
) -> None:
    """
    Valida un intervallo di importi.

    Raises:
        ValueError: Se il minimo supera il massimo
    """
    if min_total is not None and max_total is not None and min_total > max_total:
        raise ValueError("L'importo minimo non può superare l'importo massimo")


# -------------------------------------------------------------------
# Schemas per BudgetItem (voci di preventivo)
# -------------------------------------------------------------------

class BudgetItemBase(BaseModel):
    """
    Schema base per le voci di preventivo.

    Attributes:
        description: Descrizione della voce
        quantity: Quantità (intero >= 1)
        unit_price: Prezzo unitario (>= 0)
        discount_value: Valore dello sconto (>= 0)
        discount_kind: percentage o fixed
    """
    description: str = Field(..., min_length=1, max_length=500, description="Descrizione della voce")
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY, description="Quantità")
    unit_price: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), max_digits=12, decimal_places=2, description="Prezzo unitario")
    discount_value: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), max_digits=12, decimal_places=2, description="Valore dello sconto")
    discount_kind: DiscountKind = Field(default=DiscountKind.PERCENTAGE, description="Tipo di sconto")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        v = normalize_text_field(v)
        if not v:
            raise ValueError("La descrizione non può essere vuota")
        return v


class BudgetItemCreate(BudgetItemBase):
    """Schema per la creazione di una voce di preventivo."""

    @model_validator(mode="after")
    def validate_subtotal(self) -> "BudgetItemCreate":
        validate_item_subtotal(self.quantity, self.unit_price)
        return self


class BudgetItemUpdate(BaseModel):
    """
    Schema per l'aggiornamento di una voce di preventivo.

    Tutti i campi sono opzionali per permettere aggiornamenti parziali.
    Il subtotale viene controllato qui solo se quantità e prezzo sono
    entrambi presenti; la combinazione con i valori salvati è
    verificata dal servizio.
    """
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    quantity: Optional[int] = Field(None, ge=1, le=MAX_QUANTITY)
    unit_price: Optional[Decimal] = Field(None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    discount_value: Optional[Decimal] = Field(None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    discount_kind: Optional[DiscountKind] = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        v = strip_if_text(v)
        if v == "":
            raise ValueError("La descrizione non può essere vuota")
        return v

    @model_validator(mode="after")
    def validate_subtotal(self) -> "BudgetItemUpdate":
        validate_item_subtotal(self.quantity, self.unit_price)
        return self


class BudgetItemRead(BudgetItemBase):
    """Schema per la lettura di una voce di preventivo."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    budget_id: uuid.UUID
    total: Decimal
    created_at: datetime.datetime
    updated_at: datetime.datetime


# -------------------------------------------------------------------
# Schemas per Budget (preventivi)
# -------------------------------------------------------------------

class BudgetBase(BaseModel):
    """
    Schema base per i preventivi.

    Attributes:
        client_name: Nome del cliente (min 3 caratteri)
        client_tax_id: CPF/CNPJ del cliente (11-14 caratteri)
        client_address: Indirizzo (min 5 caratteri)
        client_postal_code: CAP (8-9 caratteri)
        client_phone: Telefono (min 10 caratteri)
        payment_method: Metodo di pagamento
        freight: Costo di trasporto
        notes: Note libere
    """
    client_name: str = Field(..., min_length=3, max_length=200, description="Nome del cliente")
    client_tax_id: str = Field(..., min_length=11, max_length=14, description="CPF/CNPJ del cliente")
    client_address: str = Field(..., min_length=5, max_length=300, description="Indirizzo del cliente")
    client_postal_code: Optional[str] = Field(None, min_length=8, max_length=9, description="CAP")
    client_phone: str = Field(..., min_length=10, max_length=30, description="Telefono del cliente")
    payment_method: PaymentMethod = Field(..., description="Metodo di pagamento")
    freight: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), max_digits=12, decimal_places=2, description="Costo di trasporto")
    notes: Optional[str] = Field(None, max_length=5000, description="Note libere")

    @field_validator("client_name", "client_tax_id", "client_address", "client_phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return strip_if_text(v)


class BudgetCreate(BudgetBase):
    """
    Schema per la creazione di un preventivo.

    Lo stato iniziale è sempre 'draft' e il totale parte dal trasporto.
    """
    pass


class BudgetUpdate(BaseModel):
    """
    Schema per l'aggiornamento di un preventivo.

    Tutti i campi sono opzionali per permettere aggiornamenti parziali.
    Lo status NON può essere cambiato tramite questo endpoint (usare toggle).
    Se version è indicato e non coincide con quello salvato, l'update
    viene rifiutato con un conflitto.
    """
    client_name: Optional[str] = Field(None, min_length=3, max_length=200)
    client_tax_id: Optional[str] = Field(None, min_length=11, max_length=14)
    client_address: Optional[str] = Field(None, min_length=5, max_length=300)
    client_postal_code: Optional[str] = Field(None, min_length=8, max_length=9)
    client_phone: Optional[str] = Field(None, min_length=10, max_length=30)
    payment_method: Optional[PaymentMethod] = None
    freight: Optional[Decimal] = Field(None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=5000)
    version: Optional[int] = Field(None, ge=1, description="Versione letta dal client")

    @field_validator(
        "client_name", "client_tax_id", "client_address", "client_postal_code", "client_phone",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v):
        return strip_if_text(v)


class BudgetRead(BudgetBase):
    """
    Schema per la lettura di un preventivo.

    Include stato, totale, versione, timestamp e i giorni residui
    di permanenza nel cestino.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    status: BudgetStatus
    total: Decimal
    version: int
    deleted_at: Optional[datetime.datetime]
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @computed_field
    @property
    def days_remaining(self) -> Optional[int]:
        """Giorni prima che il preventivo nel cestino sia eliminabile (None se attivo)."""
        if self.deleted_at is None:
            return None
        return days_remaining(self.deleted_at)

    @computed_field
    @property
    def purge_eligible(self) -> bool:
        """True se la finestra di conservazione nel cestino è trascorsa."""
        return is_purge_eligible(self.deleted_at)


class BudgetDetail(BudgetRead):
    """Preventivo con le sue voci."""
    items: list[BudgetItemRead] = Field(default_factory=list)


class BudgetDocument(BaseModel):
    """
    Dati passati al componente esterno di generazione documenti.

    Attributes:
        budget: Preventivo con voci
        profile: Profilo dell'emittente
    """
    budget: BudgetDetail
    profile: ProfileRead


# -------------------------------------------------------------------
# Filtri e lista paginata
# -------------------------------------------------------------------

class BudgetFilter(BaseModel):
    """
    Predicati di filtro condivisi da lista attivi e cestino.

    Attributes:
        scope: active (deleted_at NULL) o trashed (deleted_at valorizzato)
        search: Testo cercato su nome cliente e identificativo fiscale
        status: Stato del preventivo
        min_total / max_total: Intervallo di importo (inclusivo)
        created_from / created_to: Intervallo di creazione (inclusivo)
        order: Ordinamento per data di creazione
    """
    scope: RecordScope = RecordScope.ACTIVE
    search: Optional[str] = None
    status: Optional[BudgetStatus] = None
    min_total: Optional[Decimal] = None
    max_total: Optional[Decimal] = None
    created_from: Optional[datetime.datetime] = None
    created_to: Optional[datetime.datetime] = None
    order: SortOrder = SortOrder.DESC

    @field_validator("search")
    @classmethod
    def normalize_search(cls, v: Optional[str]) -> Optional[str]:
        v = normalize_text_field(v)
        return v or None

    @model_validator(mode="after")
    def validate_ranges(self) -> "BudgetFilter":
        validate_total_range(self.min_total, self.max_total)
        if self.created_from and self.created_to and self.created_from > self.created_to:
            raise ValueError("La data iniziale non può essere successiva a quella finale")
        return self


class BudgetList(BaseModel):
    """
    Schema per la risposta paginata dei preventivi.

    Attributes:
        items: Lista dei preventivi
        total: Numero totale di record
        page: Pagina corrente
        per_page: Record per pagina
        total_pages: Numero totale di pagine (calcolato automaticamente)
    """
    items: list[BudgetRead]
    total: int
    page: int
    per_page: int
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self) -> "BudgetList":
        """Calcola automaticamente il numero totale di pagine."""
        if self.per_page > 0:
            self.total_pages = (self.total + self.per_page - 1) // self.per_page
        return self
