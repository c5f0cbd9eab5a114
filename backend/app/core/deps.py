"""
Dependency Injection per l'identità dell'utente
Progetto: Budget Manager (Gestionale Preventivi)

Il provider di identità è esterno: qui si estrae soltanto l'ID
dell'utente corrente dal bearer token.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.core.security import decode_token

# OAuth2 scheme - estrae il token dall'header Authorization
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/auth/token",
    auto_error=False,
)


async def get_current_user_id(
    token: Optional[str] = Depends(oauth2_scheme),
) -> UUID:
    """
    Dependency per ottenere l'ID dell'utente corrente dal token JWT.

    Args:
        token: Token JWT estratto dall'header Authorization

    Returns:
        UUID dell'utente proprietario dei preventivi

    Raises:
        HTTPException 401: Se il token manca, è invalido o scaduto
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token di autenticazione non fornito",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(token)

    if token_data.type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token non valido per questa operazione",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return UUID(token_data.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="ID utente invalido nel token",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type alias per uso comune
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


# Export
__all__ = [
    "get_current_user_id",
    "oauth2_scheme",
    "CurrentUserId",
]
