"""
Macchina a stati dei preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Il ciclo completo è draft → sent → approved → draft. La variante a due
stati (draft ↔ approved) è un sottoinsieme dello stesso ciclo: gli stati
non previsti vengono saltati.
"""

from typing import Sequence, Union

from app.core.exceptions import BusinessValidationError
from app.schemas.budget import BudgetStatus

STATUS_CYCLE: tuple[BudgetStatus, ...] = (
    BudgetStatus.DRAFT,
    BudgetStatus.SENT,
    BudgetStatus.APPROVED,
)

TWO_STATE_CYCLE: tuple[BudgetStatus, ...] = (
    BudgetStatus.DRAFT,
    BudgetStatus.APPROVED,
)

INITIAL_STATUS = BudgetStatus.DRAFT


def cycle_for_mode(mode: str) -> tuple[BudgetStatus, ...]:
    """Ciclo di stati per la modalità configurata (three_state | two_state)."""
    if mode == "two_state":
        return TWO_STATE_CYCLE
    return STATUS_CYCLE


def toggle_status(
    current: Union[BudgetStatus, str],
    cycle: Sequence[BudgetStatus] = STATUS_CYCLE,
) -> BudgetStatus:
    """
    Stato successivo nel ciclo.

    Si avanza lungo il ciclo completo fino al primo stato ammesso da
    `cycle`: con il ciclo a due stati, draft → approved e sent → approved.

    Args:
        current: Stato corrente
        cycle: Stati ammessi (sottoinsieme ordinato di STATUS_CYCLE)

    Returns:
        BudgetStatus: Nuovo stato

    Raises:
        BusinessValidationError: Se lo stato corrente non è riconosciuto
    """
    try:
        status = BudgetStatus(current)
    except ValueError:
        raise BusinessValidationError(f"Stato invalido: {current}")

    position = STATUS_CYCLE.index(status)
    for step in range(1, len(STATUS_CYCLE) + 1):
        candidate = STATUS_CYCLE[(position + step) % len(STATUS_CYCLE)]
        if candidate in cycle:
            return candidate
    raise BusinessValidationError("Ciclo di stati vuoto")
