"""
Calcolo importi dei preventivi
Progetto: Budget Manager (Gestionale Preventivi)

Funzioni pure per il totale di una voce e il totale di un preventivo.
I limiti sugli input (quantità >= 1, importi >= 0) sono verificati dagli
schemi prima di arrivare qui.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Union

from app.core.exceptions import BusinessValidationError
from app.schemas.budget import DiscountKind

# Logger per questo modulo
logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, str]


class HasTotal(Protocol):
    total: Decimal


def to_money(value: Number) -> Decimal:
    """Converte un importo in Decimal arrotondato al centesimo (ROUND_HALF_UP)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_discount_amount(
    subtotal: Decimal,
    discount_value: Decimal,
    discount_kind: Union[DiscountKind, str],
) -> Decimal:
    """
    Importo dello sconto su un subtotale.

    Args:
        subtotal: quantity * unit_price
        discount_value: Percentuale (0-100+) o importo fisso
        discount_kind: percentage o fixed

    Returns:
        Decimal: Importo da sottrarre (non limitato al subtotale)

    Raises:
        BusinessValidationError: Se il tipo di sconto non è riconosciuto
    """
    try:
        kind = DiscountKind(discount_kind)
    except ValueError:
        raise BusinessValidationError(f"Tipo di sconto non valido: {discount_kind}")

    if kind is DiscountKind.PERCENTAGE:
        return subtotal * discount_value / HUNDRED
    return discount_value


def compute_item_total(
    quantity: int,
    unit_price: Number,
    discount_value: Number = Decimal("0"),
    discount_kind: Union[DiscountKind, str] = DiscountKind.PERCENTAGE,
) -> Decimal:
    """
    Totale di una voce: quantity * unit_price - sconto.

    Nessun limite inferiore: uno sconto superiore al subtotale produce
    un totale negativo, che viene solo segnalato nel log.

    Examples:
        >>> compute_item_total(2, 100, 10, "percentage")
        Decimal('180.00')
        >>> compute_item_total(2, 100, 10, "fixed")
        Decimal('190.00')
    """
    subtotal = Decimal(quantity) * Decimal(str(unit_price))
    discount = compute_discount_amount(subtotal, Decimal(str(discount_value)), discount_kind)
    total = to_money(subtotal - discount)

    if total < 0:
        logger.warning(
            "Totale voce negativo: qty=%s, prezzo=%s, sconto=%s (%s) -> %s",
            quantity, unit_price, discount_value, discount_kind, total,
        )
    return total


def recompute_budget_total(items: Iterable[HasTotal], freight: Number = Decimal("0")) -> Decimal:
    """
    Totale di un preventivo: trasporto + somma dei totali delle voci.

    Ricalcolo completo sulle voci correnti, senza aggiornamenti incrementali.

    Args:
        items: Voci con attributo total
        freight: Costo di trasporto

    Returns:
        Decimal: Totale arrotondato al centesimo
    """
    total = to_money(freight)
    for item in items:
        total += Decimal(str(item.total))
    return to_money(total)
