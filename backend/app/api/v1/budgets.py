"""
Router FastAPI per i Preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Definisce gli endpoint API per la gestione dei preventivi: CRUD,
voci, cambio di stato, cestino e dati per il documento stampabile.
Ogni endpoint di scrittura esegue un solo commit a fine operazione.
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit, get_db
from app.core.deps import CurrentUserId
from app.core.exceptions import BusinessValidationError
from app.schemas.budget import (
    BudgetCreate,
    BudgetDetail,
    BudgetDocument,
    BudgetFilter,
    BudgetItemCreate,
    BudgetItemRead,
    BudgetItemUpdate,
    BudgetList,
    BudgetRead,
    BudgetStatus,
    BudgetUpdate,
    RecordScope,
    SortOrder,
)
from app.schemas.profile import ProfileRead
from app.services.budget_service import BudgetService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Istanza del service
budget_service = BudgetService()

# Router con prefix e tag
router = APIRouter(
    prefix="/budgets",
    tags=["Preventivi"],
)


def _build_filter(**values) -> BudgetFilter:
    """Costruisce il filtro traducendo gli errori di intervallo in errori di business."""
    try:
        return BudgetFilter(**values)
    except PydanticValidationError as e:
        raise BusinessValidationError(
            "Filtro non valido",
            extra={"errors": [err["msg"] for err in e.errors()]},
        )


async def _list(
    db: AsyncSession,
    owner_id: uuid.UUID,
    budget_filter: BudgetFilter,
    page: int,
    per_page: int,
) -> BudgetList:
    budgets, total = await budget_service.get_all(
        db=db,
        owner_id=owner_id,
        filters=budget_filter,
        page=page,
        per_page=per_page,
    )
    return BudgetList(
        items=[BudgetRead.model_validate(b) for b in budgets],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=0,  # calcolato automaticamente dal model_validator
    )


# -------------------------------------------------------------------
# Endpoints per Preventivi
# -------------------------------------------------------------------

@router.get(
    "/",
    name="preventivi_lista",
    summary="Lista preventivi",
    description="Recupera la lista paginata dei preventivi attivi con eventuali filtri.",
    response_model=BudgetList,
    status_code=status.HTTP_200_OK,
)
async def get_budgets(
    owner_id: CurrentUserId,
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(10, ge=1, le=100, description="Elementi per pagina"),
    search: Optional[str] = Query(None, description="Ricerca su nome cliente e identificativo fiscale"),
    status_filter: Optional[BudgetStatus] = Query(None, description="Filtro per stato"),
    min_total: Optional[Decimal] = Query(None, description="Totale minimo"),
    max_total: Optional[Decimal] = Query(None, description="Totale massimo"),
    created_from: Optional[datetime.datetime] = Query(None, description="Creati a partire da"),
    created_to: Optional[datetime.datetime] = Query(None, description="Creati fino a"),
    order: SortOrder = Query(SortOrder.DESC, description="Ordinamento per data di creazione"),
    db: AsyncSession = Depends(get_db),
) -> BudgetList:
    """
    Recupera la lista paginata dei preventivi attivi.

    Returns:
        BudgetList: Lista paginata con metadati
    """
    budget_filter = _build_filter(
        scope=RecordScope.ACTIVE,
        search=search,
        status=status_filter,
        min_total=min_total,
        max_total=max_total,
        created_from=created_from,
        created_to=created_to,
        order=order,
    )
    return await _list(db, owner_id, budget_filter, page, per_page)


@router.get(
    "/trash",
    name="preventivi_cestino",
    summary="Lista cestino",
    description="Recupera i preventivi nel cestino con gli stessi filtri della lista attivi. "
               "Ogni elemento riporta i giorni residui prima dell'eliminabilità.",
    response_model=BudgetList,
    status_code=status.HTTP_200_OK,
)
async def get_trashed_budgets(
    owner_id: CurrentUserId,
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(10, ge=1, le=100, description="Elementi per pagina"),
    search: Optional[str] = Query(None, description="Ricerca su nome cliente e identificativo fiscale"),
    status_filter: Optional[BudgetStatus] = Query(None, description="Filtro per stato"),
    min_total: Optional[Decimal] = Query(None, description="Totale minimo"),
    max_total: Optional[Decimal] = Query(None, description="Totale massimo"),
    created_from: Optional[datetime.datetime] = Query(None, description="Creati a partire da"),
    created_to: Optional[datetime.datetime] = Query(None, description="Creati fino a"),
    order: SortOrder = Query(SortOrder.DESC, description="Ordinamento per data di creazione"),
    db: AsyncSession = Depends(get_db),
) -> BudgetList:
    """Recupera la lista paginata del cestino."""
    budget_filter = _build_filter(
        scope=RecordScope.TRASHED,
        search=search,
        status=status_filter,
        min_total=min_total,
        max_total=max_total,
        created_from=created_from,
        created_to=created_to,
        order=order,
    )
    return await _list(db, owner_id, budget_filter, page, per_page)


@router.get(
    "/{budget_id}",
    name="preventivo_leggi",
    summary="Leggi preventivo",
    description="Recupera un preventivo (attivo o nel cestino).",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
async def get_budget(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """
    Recupera un preventivo.

    Raises:
        NotFoundError: Se il preventivo non esiste o appartiene a un altro utente
    """
    budget = await budget_service.get_by_id(db, owner_id, budget_id)
    return BudgetRead.model_validate(budget)


@router.get(
    "/{budget_id}/detail",
    name="preventivo_dettaglio",
    summary="Dettaglio preventivo",
    description="Recupera un preventivo con le sue voci.",
    response_model=BudgetDetail,
    status_code=status.HTTP_200_OK,
)
async def get_budget_detail(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> BudgetDetail:
    """Preventivo con le voci in ordine di inserimento."""
    budget, items = await budget_service.get_detail(db, owner_id, budget_id)
    detail = BudgetDetail.model_validate(budget)
    detail.items = [BudgetItemRead.model_validate(item) for item in items]
    return detail


@router.get(
    "/{budget_id}/document",
    name="preventivo_documento",
    summary="Dati documento preventivo",
    description="Restituisce preventivo, voci e profilo dell'emittente per la generazione "
               "del documento stampabile.",
    response_model=BudgetDocument,
    status_code=status.HTTP_200_OK,
)
async def get_budget_document(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> BudgetDocument:
    """Dati per il documento stampabile."""
    budget, items, profile = await budget_service.get_document_data(db, owner_id, budget_id)
    # Il profilo può essere stato creato ora
    await commit(db)

    detail = BudgetDetail.model_validate(budget)
    detail.items = [BudgetItemRead.model_validate(item) for item in items]
    return BudgetDocument(budget=detail, profile=ProfileRead.model_validate(profile))


@router.post(
    "/",
    name="preventivo_crea",
    summary="Crea preventivo",
    description="Crea un nuovo preventivo in stato 'draft' senza voci.",
    response_model=BudgetRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_budget(
    owner_id: CurrentUserId,
    data: BudgetCreate,
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """
    Crea un nuovo preventivo.

    Returns:
        BudgetRead: Il preventivo creato
    """
    budget = await budget_service.create(db, owner_id, data)
    await commit(db)
    return BudgetRead.model_validate(budget)


@router.put(
    "/{budget_id}",
    name="preventivo_aggiorna",
    summary="Aggiorna preventivo",
    description="Aggiorna i dati di un preventivo attivo. "
               "NOTA: per cambiare lo stato usare l'endpoint PATCH /status/toggle.",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
async def update_budget(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    data: BudgetUpdate = ...,
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """
    Aggiorna un preventivo.

    Raises:
        NotFoundError: Se il preventivo non esiste
        ConflictError: Se la versione indicata è obsoleta
    """
    budget = await budget_service.update(db, owner_id, budget_id, data)
    await commit(db)
    return BudgetRead.model_validate(budget)


@router.patch(
    "/{budget_id}/status/toggle",
    name="preventivo_cambia_stato",
    summary="Cambia stato preventivo",
    description="Porta il preventivo allo stato successivo del ciclo draft → sent → approved → draft.",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
async def toggle_budget_status(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """Avanza lo stato del preventivo."""
    budget = await budget_service.toggle_status(db, owner_id, budget_id)
    await commit(db)
    return BudgetRead.model_validate(budget)


# -------------------------------------------------------------------
# Cestino
# -------------------------------------------------------------------

@router.delete(
    "/{budget_id}",
    name="preventivo_cestina",
    summary="Sposta nel cestino",
    description="Sposta il preventivo nel cestino. Può essere ripristinato in seguito.",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
async def trash_budget(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """
    Sposta un preventivo nel cestino.

    Raises:
        NotFoundError: Se il preventivo non esiste
        ConflictError: Se è già nel cestino
    """
    budget = await budget_service.soft_delete(db, owner_id, budget_id)
    await commit(db)
    return BudgetRead.model_validate(budget)


@router.post(
    "/{budget_id}/restore",
    name="preventivo_ripristina",
    summary="Ripristina dal cestino",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
async def restore_budget(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """Ripristina un preventivo dal cestino."""
    budget = await budget_service.restore(db, owner_id, budget_id)
    await commit(db)
    return BudgetRead.model_validate(budget)


@router.delete(
    "/{budget_id}/purge",
    name="preventivo_elimina",
    summary="Elimina definitivamente",
    description="Elimina definitivamente il preventivo e le sue voci. Operazione irreversibile.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def purge_budget(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Elimina definitivamente un preventivo."""
    await budget_service.purge(db, owner_id, budget_id)
    await commit(db)


# -------------------------------------------------------------------
# Endpoints per Voci di preventivo (nested)
# -------------------------------------------------------------------

@router.get(
    "/{budget_id}/items",
    name="voci_lista",
    summary="Lista voci",
    response_model=list[BudgetItemRead],
    status_code=status.HTTP_200_OK,
)
async def get_budget_items(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    db: AsyncSession = Depends(get_db),
) -> list[BudgetItemRead]:
    """Voci del preventivo in ordine di inserimento."""
    _, items = await budget_service.get_detail(db, owner_id, budget_id)
    return [BudgetItemRead.model_validate(item) for item in items]


@router.post(
    "/{budget_id}/items",
    name="voce_aggiungi",
    summary="Aggiungi voce",
    description="Aggiunge una voce al preventivo e ricalcola il totale.",
    response_model=BudgetItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_budget_item(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    item_data: BudgetItemCreate = ...,
    db: AsyncSession = Depends(get_db),
) -> BudgetItemRead:
    """
    Aggiunge una voce a un preventivo.

    Raises:
        NotFoundError: Se il preventivo non esiste
        ValidationError: Se il preventivo è nel cestino
    """
    item = await budget_service.add_item(db, owner_id, budget_id, item_data)
    await commit(db)
    return BudgetItemRead.model_validate(item)


@router.put(
    "/{budget_id}/items/{item_id}",
    name="voce_aggiorna",
    summary="Aggiorna voce",
    description="Aggiorna una voce e ricalcola il totale del preventivo.",
    response_model=BudgetItemRead,
    status_code=status.HTTP_200_OK,
)
async def update_budget_item(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    item_id: uuid.UUID = Path(..., description="UUID della voce"),
    item_data: BudgetItemUpdate = ...,
    db: AsyncSession = Depends(get_db),
) -> BudgetItemRead:
    """
    Aggiorna una voce di preventivo.

    Raises:
        NotFoundError: Se la voce non esiste
    """
    item = await budget_service.update_item(db, owner_id, budget_id, item_id, item_data)
    await commit(db)
    return BudgetItemRead.model_validate(item)


@router.delete(
    "/{budget_id}/items/{item_id}",
    name="voce_elimina",
    summary="Elimina voce",
    description="Rimuove una voce e restituisce il preventivo con il totale aggiornato.",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
async def delete_budget_item(
    owner_id: CurrentUserId,
    budget_id: uuid.UUID = Path(..., description="UUID del preventivo"),
    item_id: uuid.UUID = Path(..., description="UUID della voce"),
    db: AsyncSession = Depends(get_db),
) -> BudgetRead:
    """Rimuove una voce di preventivo."""
    budget = await budget_service.remove_item(db, owner_id, budget_id, item_id)
    await commit(db)
    return BudgetRead.model_validate(budget)
