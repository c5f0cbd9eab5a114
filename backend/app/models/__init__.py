"""
Modelli Database SQLAlchemy
Progetto: Budget Manager (Gestionale Preventivi)

Import centralizzato di tutti i modelli per create_all e usage generico.
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from app.models.budget import Budget, BudgetItem
from app.models.profile import Profile

__all__ = [
    "Base",
    "Budget",
    "BudgetItem",
    "Profile",
]
