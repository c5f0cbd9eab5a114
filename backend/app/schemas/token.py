"""
Schemas Pydantic per i token JWT
Progetto: Budget Manager (Gestionale Preventivi)
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """
    Schema per il payload contenuto nei token JWT.

    Attributes:
        sub: Subject - ID dell'utente come stringa
        exp: Expiration - Data/ora di scadenza
        type: Tipo di token (solo "access" è accettato dalle API)
    """

    sub: str = Field(..., description="ID utente")
    exp: datetime = Field(..., description="Data/ora di scadenza")
    type: str = Field(default="access", description="Tipo di token")


# Export degli schemas
__all__ = [
    "TokenPayload",
]
