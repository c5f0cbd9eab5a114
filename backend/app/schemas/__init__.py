"""
Schemas Pydantic per il progetto Budget Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from app.schemas import BudgetRead, ProfileRead, etc.

from app.schemas.token import TokenPayload
from app.schemas.profile import ProfileRead, ProfileUpdate
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
    DiscountKind,
    PaymentMethod,
    RecordScope,
    SortOrder,
)
from app.schemas.analytics import (
    AnalyticsPeriod,
    AnalyticsReport,
    AnalyticsSummary,
    PeriodBucket,
)

__all__ = [
    # Token
    "TokenPayload",
    # Profile
    "ProfileRead",
    "ProfileUpdate",
    # Budget
    "BudgetCreate",
    "BudgetDetail",
    "BudgetDocument",
    "BudgetFilter",
    "BudgetItemCreate",
    "BudgetItemRead",
    "BudgetItemUpdate",
    "BudgetList",
    "BudgetRead",
    "BudgetStatus",
    "BudgetUpdate",
    "DiscountKind",
    "PaymentMethod",
    "RecordScope",
    "SortOrder",
    # Analytics
    "AnalyticsPeriod",
    "AnalyticsReport",
    "AnalyticsSummary",
    "PeriodBucket",
]
