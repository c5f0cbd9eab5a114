"""
Service Layer per i Preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Definisce la logica di business per la gestione dei preventivi:
- Voci e ricalcolo del totale nella stessa transazione
- Transizioni di stato (ciclo draft → sent → approved)
- Cestino (soft delete), ripristino ed eliminazione definitiva
- Rilevamento di scritture concorrenti tramite versione
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
)
from app.models import Budget, BudgetItem, Profile
from app.models.mixins import as_utc, utc_now
from app.schemas.budget import (
    BudgetCreate,
    BudgetFilter,
    BudgetItemCreate,
    BudgetItemUpdate,
    BudgetUpdate,
    MAX_AMOUNT,
    RecordScope,
    SortOrder,
)
from app.services.pricing import compute_item_total, recompute_budget_total, to_money
from app.services.profile_service import ProfileService
from app.services.status_machine import INITIAL_STATUS, cycle_for_mode, toggle_status

# Logger per questo modulo
logger = logging.getLogger(__name__)


def escape_like(term: str) -> str:
    """Rende letterali i caratteri jolly di LIKE (% e _) usando \\ come escape."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BudgetService:
    """
    Service per la gestione dei preventivi e delle loro voci.

    Tutti i metodi sono limitati ai record dell'utente indicato:
    un preventivo di un altro utente risulta inesistente.
    I metodi eseguono solo flush; il commit spetta al chiamante,
    così che ogni richiesta sia un'unica transazione.
    """

    def __init__(self, profile_service: Optional[ProfileService] = None) -> None:
        self.profile_service = profile_service or ProfileService()

    # -------------------------------------------------------------------
    # Helper interni
    # -------------------------------------------------------------------

    async def _flush(self, db: AsyncSession, action: str) -> None:
        """
        Esegue il flush traducendo gli errori di storage.

        Raises:
            ConflictError: Se il preventivo è stato modificato da un'altra sessione
            PersistenceError: Per qualsiasi altro errore del database
        """
        try:
            await db.flush()
        except StaleDataError as e:
            logger.warning("Scrittura concorrente durante %s: %s", action, e)
            await db.rollback()
            raise ConflictError(
                "Il preventivo è stato modificato da un'altra sessione. Ricarica e riprova."
            )
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy durante %s: %s - %s", action, e.__class__.__name__, e)
            await db.rollback()
            raise PersistenceError(f"Errore del database durante {action}")

    def _check_not_trashed(self, budget: Budget) -> None:
        """
        Verifica che il preventivo non sia nel cestino.

        Raises:
            BusinessValidationError: Se il preventivo è nel cestino
        """
        if budget.deleted_at is not None:
            raise BusinessValidationError(
                "Il preventivo è nel cestino: ripristinalo prima di modificarlo"
            )

    def _check_version(self, budget: Budget, expected: Optional[int]) -> None:
        """
        Confronta la versione letta dal client con quella salvata.

        Raises:
            ConflictError: Se le versioni non coincidono
        """
        if expected is not None and expected != budget.version:
            logger.warning(
                "Versione obsoleta per preventivo %s: attesa=%s, attuale=%s",
                budget.id, expected, budget.version,
            )
            raise ConflictError(
                "Il preventivo è stato modificato da un'altra sessione. Ricarica e riprova.",
                extra={"current_version": budget.version},
            )

    def _check_amount(self, value: Decimal, label: str) -> None:
        """
        Verifica che un importo sia rappresentabile in Numeric(12, 2).

        Raises:
            BusinessValidationError: Se |importo| >= MAX_AMOUNT
        """
        if abs(value) >= MAX_AMOUNT:
            raise BusinessValidationError(
                f"{label} deve essere inferiore a {MAX_AMOUNT} in valore assoluto",
                extra={"value": str(value)},
            )

    async def _check_projected_total(
        self,
        db: AsyncSession,
        budget: Budget,
        freight: Decimal,
        item_total: Optional[Decimal] = None,
        replaced_item_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Calcola il totale che il preventivo avrebbe dopo la modifica e ne verifica il limite.

        Nessun dato viene scritto: la modifica si applica solo se il controllo passa.
        """
        items = await self.list_items(db, budget.owner_id, budget.id)
        total = to_money(freight) + sum(
            (to_money(item.total) for item in items if item.id != replaced_item_id),
            Decimal("0"),
        )
        if item_total is not None:
            total += item_total
        self._check_amount(total, "Il totale del preventivo")

    # -------------------------------------------------------------------
    # Lettura
    # -------------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        filters: Optional[BudgetFilter] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[Budget], int]:
        """
        Recupera la lista paginata dei preventivi dell'utente.

        Lo stesso insieme di filtri vale per i preventivi attivi e per il cestino.

        Args:
            db: Sessione database
            owner_id: UUID dell'utente
            filters: Predicati di filtro (default: attivi, più recenti prima)
            page: Numero pagina (default 1)
            per_page: Elementi per pagina (default 10)

        Returns:
            Tuple di (lista preventivi, totale count)
        """
        filters = filters or BudgetFilter()
        conditions = [Budget.owner_id == owner_id]

        if filters.scope == RecordScope.TRASHED:
            conditions.append(Budget.deleted_at.is_not(None))
        else:
            conditions.append(Budget.deleted_at.is_(None))

        if filters.search:
            search_term = f"%{escape_like(filters.search)}%"
            conditions.append(
                or_(
                    Budget.client_name.ilike(search_term, escape="\\"),
                    Budget.client_tax_id.ilike(search_term, escape="\\"),
                )
            )

        if filters.status:
            conditions.append(Budget.status == filters.status.value)

        if filters.min_total is not None:
            conditions.append(Budget.total >= filters.min_total)

        if filters.max_total is not None:
            conditions.append(Budget.total <= filters.max_total)

        if filters.created_from is not None:
            conditions.append(Budget.created_at >= as_utc(filters.created_from))

        if filters.created_to is not None:
            conditions.append(Budget.created_at <= as_utc(filters.created_to))

        if filters.order == SortOrder.ASC:
            ordering = (Budget.created_at.asc(), Budget.id.asc())
        else:
            ordering = (Budget.created_at.desc(), Budget.id.desc())

        offset = (page - 1) * per_page
        query = (
            select(Budget)
            .where(and_(*conditions))
            .order_by(*ordering)
            .offset(offset)
            .limit(per_page)
        )
        result = await db.execute(query)
        budgets = list(result.scalars().all())

        count_query = select(func.count()).select_from(Budget).where(and_(*conditions))
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.debug(
            "Recuperati %d preventivi su %d totali (scope=%s, pagina %d)",
            len(budgets), total, filters.scope.value, page,
        )
        return budgets, total

    async def get_by_id(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> Budget:
        """
        Recupera un preventivo (attivo o nel cestino) tramite ID.

        Raises:
            NotFoundError: Se il preventivo non esiste o appartiene a un altro utente
        """
        result = await db.execute(
            select(Budget).where(Budget.id == budget_id, Budget.owner_id == owner_id)
        )
        budget = result.scalar_one_or_none()

        if budget is None:
            logger.warning("Preventivo non trovato: %s", budget_id)
            raise NotFoundError(f"Preventivo con ID {budget_id} non trovato")

        logger.debug("Recuperato preventivo: %s", budget_id)
        return budget

    async def list_items(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> list[BudgetItem]:
        """
        Voci correnti di un preventivo, in ordine di inserimento.
        """
        result = await db.execute(
            select(BudgetItem)
            .where(BudgetItem.budget_id == budget_id, BudgetItem.owner_id == owner_id)
            .order_by(BudgetItem.created_at.asc(), BudgetItem.id.asc())
        )
        return list(result.scalars().all())

    async def get_detail(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> tuple[Budget, list[BudgetItem]]:
        """
        Preventivo con le sue voci.

        Returns:
            Tuple di (preventivo, voci)
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        items = await self.list_items(db, owner_id, budget_id)
        return budget, items

    async def get_document_data(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> tuple[Budget, list[BudgetItem], Profile]:
        """
        Dati per il componente esterno di generazione del documento stampabile.

        Returns:
            Tuple di (preventivo, voci, profilo dell'emittente)
        """
        budget, items = await self.get_detail(db, owner_id, budget_id)
        profile = await self.profile_service.get_or_create(db, owner_id)
        return budget, items, profile

    # -------------------------------------------------------------------
    # Scrittura preventivo
    # -------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        data: BudgetCreate,
    ) -> Budget:
        """
        Crea un nuovo preventivo in stato 'draft' e senza voci.

        Il totale iniziale coincide con il trasporto (0 se non indicato).

        Args:
            db: Sessione database
            owner_id: UUID dell'utente proprietario
            data: Dati del cliente e del preventivo

        Returns:
            Budget: Il preventivo creato
        """
        budget = Budget(
            owner_id=owner_id,
            client_name=data.client_name,
            client_tax_id=data.client_tax_id,
            client_address=data.client_address,
            client_postal_code=data.client_postal_code,
            client_phone=data.client_phone,
            payment_method=data.payment_method.value,
            freight=data.freight,
            notes=data.notes,
            status=INITIAL_STATUS.value,
            total=recompute_budget_total([], data.freight),
        )
        db.add(budget)
        await self._flush(db, "la creazione del preventivo")

        logger.info("Creato preventivo %s per utente %s", budget.id, owner_id)
        return budget

    async def update(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
        data: BudgetUpdate,
    ) -> Budget:
        """
        Aggiorna i dati di un preventivo.

        NOTA: lo status non si modifica qui, usare toggle_status().
        Se cambia il trasporto il totale viene ricalcolato.

        Raises:
            NotFoundError: Se il preventivo non esiste
            BusinessValidationError: Se il preventivo è nel cestino o il totale supera il limite
            ConflictError: Se la versione indicata è obsoleta
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        self._check_not_trashed(budget)

        update_data = data.model_dump(exclude_unset=True)
        self._check_version(budget, update_data.pop("version", None))

        if update_data.get("freight") is not None:
            await self._check_projected_total(db, budget, update_data["freight"])

        for field, value in update_data.items():
            if field == "payment_method" and value is not None:
                value = value.value
            if value is None and field not in ("notes", "client_postal_code"):
                continue
            setattr(budget, field, value)

        if "freight" in update_data:
            await self._apply_total(db, budget)

        await self._flush(db, "l'aggiornamento del preventivo")

        logger.info("Aggiornato preventivo: %s", budget_id)
        return budget

    async def toggle_status(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> Budget:
        """
        Porta il preventivo allo stato successivo del ciclo configurato.

        Raises:
            NotFoundError: Se il preventivo non esiste
            BusinessValidationError: Se il preventivo è nel cestino o lo stato è invalido
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        self._check_not_trashed(budget)

        old_status = budget.status
        new_status = toggle_status(old_status, cycle_for_mode(settings.status_cycle_mode))
        budget.status = new_status.value

        await self._flush(db, "il cambio di stato")

        logger.info("Cambiato stato preventivo %s: %s -> %s", budget_id, old_status, new_status.value)
        return budget

    # -------------------------------------------------------------------
    # Ricalcolo totale
    # -------------------------------------------------------------------

    async def _apply_total(self, db: AsyncSession, budget: Budget) -> Decimal:
        """
        Ricalcola il totale dalle voci presenti nel database e lo assegna al preventivo.

        Va chiamato dopo il flush della modifica alla voce, nella stessa transazione.
        """
        items = await self.list_items(db, budget.owner_id, budget.id)
        total = recompute_budget_total(items, budget.freight)
        if total < 0:
            logger.warning("Totale negativo per preventivo %s: %s", budget.id, total)
        budget.total = total
        return total

    async def recompute_total(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> Budget:
        """
        Forza il ricalcolo e il salvataggio del totale di un preventivo.
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        await self._apply_total(db, budget)
        await self._flush(db, "il ricalcolo del totale")
        logger.info("Ricalcolato totale preventivo %s: %s", budget_id, budget.total)
        return budget

    # -------------------------------------------------------------------
    # Voci di preventivo
    # -------------------------------------------------------------------

    async def _get_item(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> BudgetItem:
        result = await db.execute(
            select(BudgetItem).where(BudgetItem.id == item_id, BudgetItem.owner_id == owner_id)
        )
        item = result.scalar_one_or_none()

        if item is None:
            raise NotFoundError(f"Voce con ID {item_id} non trovata")

        if item.budget_id != budget_id:
            raise NotFoundError(f"Voce {item_id} non trovata nel preventivo {budget_id}")

        return item

    async def add_item(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
        item_data: BudgetItemCreate,
    ) -> BudgetItem:
        """
        Aggiunge una voce e ricalcola il totale del preventivo.

        Voce e totale vengono scritti nella stessa transazione.

        Raises:
            NotFoundError: Se il preventivo non esiste
            BusinessValidationError: Se il preventivo è nel cestino o un importo supera il limite
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        self._check_not_trashed(budget)

        item_total = compute_item_total(
            item_data.quantity,
            item_data.unit_price,
            item_data.discount_value,
            item_data.discount_kind,
        )
        self._check_amount(item_total, "Il totale della voce")
        await self._check_projected_total(db, budget, budget.freight, item_total)

        item = BudgetItem(
            budget_id=budget.id,
            owner_id=owner_id,
            description=item_data.description,
            quantity=item_data.quantity,
            unit_price=item_data.unit_price,
            discount_value=item_data.discount_value,
            discount_kind=item_data.discount_kind.value,
            total=item_total,
        )
        db.add(item)
        await self._flush(db, "l'aggiunta della voce")

        await self._apply_total(db, budget)
        await self._flush(db, "il ricalcolo del totale")

        logger.info("Aggiunta voce %s al preventivo %s (totale %s)", item.id, budget_id, budget.total)
        return item

    async def update_item(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
        item_id: uuid.UUID,
        item_data: BudgetItemUpdate,
    ) -> BudgetItem:
        """
        Aggiorna una voce, ne ricalcola il totale e ricalcola il totale del preventivo.

        Raises:
            NotFoundError: Se la voce non esiste o non appartiene al preventivo
            BusinessValidationError: Se il preventivo è nel cestino o un importo supera il limite
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        self._check_not_trashed(budget)
        item = await self._get_item(db, owner_id, budget_id, item_id)

        changes = {}
        for field, value in item_data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if field == "discount_kind":
                value = value.value
            changes[field] = value

        merged = {
            field: changes.get(field, getattr(item, field))
            for field in ("quantity", "unit_price", "discount_value", "discount_kind")
        }
        if merged["quantity"] * merged["unit_price"] >= MAX_AMOUNT:
            raise BusinessValidationError(
                f"Il subtotale della voce (quantità × prezzo unitario) deve essere inferiore a {MAX_AMOUNT}"
            )
        item_total = compute_item_total(**merged)
        self._check_amount(item_total, "Il totale della voce")
        await self._check_projected_total(db, budget, budget.freight, item_total, item.id)

        for field, value in changes.items():
            setattr(item, field, value)
        item.total = item_total
        await self._flush(db, "l'aggiornamento della voce")

        await self._apply_total(db, budget)
        await self._flush(db, "il ricalcolo del totale")

        logger.info("Aggiornata voce %s (totale preventivo %s)", item_id, budget.total)
        return item

    async def remove_item(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> Budget:
        """
        Rimuove una voce e ricalcola il totale del preventivo.

        Returns:
            Budget: Il preventivo con il totale aggiornato

        Raises:
            NotFoundError: Se la voce non esiste o non appartiene al preventivo
            BusinessValidationError: Se il preventivo è nel cestino
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        self._check_not_trashed(budget)
        item = await self._get_item(db, owner_id, budget_id, item_id)

        await db.delete(item)
        await self._flush(db, "la rimozione della voce")

        await self._apply_total(db, budget)
        await self._flush(db, "il ricalcolo del totale")

        logger.info("Rimossa voce %s dal preventivo %s (totale %s)", item_id, budget_id, budget.total)
        return budget

    # -------------------------------------------------------------------
    # Cestino
    # -------------------------------------------------------------------

    async def soft_delete(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> Budget:
        """
        Sposta il preventivo nel cestino (deleted_at = ora).

        Raises:
            NotFoundError: Se il preventivo non esiste
            ConflictError: Se il preventivo è già nel cestino
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        if budget.deleted_at is not None:
            raise ConflictError("Il preventivo è già nel cestino")

        budget.deleted_at = utc_now()
        await self._flush(db, "lo spostamento nel cestino")

        logger.info("Preventivo %s spostato nel cestino", budget_id)
        return budget

    async def restore(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> Budget:
        """
        Ripristina un preventivo dal cestino (deleted_at = NULL).

        Raises:
            NotFoundError: Se il preventivo non esiste
            ConflictError: Se il preventivo non è nel cestino
        """
        budget = await self.get_by_id(db, owner_id, budget_id)
        if budget.deleted_at is None:
            raise ConflictError("Il preventivo non è nel cestino")

        budget.deleted_at = None
        await self._flush(db, "il ripristino del preventivo")

        logger.info("Preventivo %s ripristinato", budget_id)
        return budget

    async def purge(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        budget_id: uuid.UUID,
    ) -> None:
        """
        Elimina definitivamente il preventivo e le sue voci. Irreversibile.

        L'eliminazione è sempre un'azione esplicita: non è necessario che
        la finestra di conservazione sia trascorsa.

        Raises:
            NotFoundError: Se il preventivo non esiste
        """
        budget = await self.get_by_id(db, owner_id, budget_id)

        await db.execute(delete(BudgetItem).where(BudgetItem.budget_id == budget.id))
        await db.delete(budget)
        await self._flush(db, "l'eliminazione definitiva del preventivo")

        logger.info("Preventivo %s eliminato definitivamente", budget_id)
