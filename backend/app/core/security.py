"""
Modulo di sicurezza per la verifica dei token JWT
Progetto: Budget Manager (Gestionale Preventivi)

L'autenticazione è gestita da un provider di identità esterno che firma
i token con la chiave condivisa; qui vengono solo emessi (per sviluppo/test)
e verificati.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.token import TokenPayload


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crea un token di accesso JWT.

    Args:
        user_id: ID dell'utente (diventa il claim "sub")
        expires_delta: Durata del token (default: access_token_expire_minutes)

    Returns:
        Token JWT codificato
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta

    payload = {
        "sub": user_id,
        "exp": expire,
        "type": "access",
    }

    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenPayload:
    """
    Decodifica e valida un token JWT.

    Args:
        token: Token JWT da decodificare

    Returns:
        TokenPayload con i dati del token

    Raises:
        HTTPException: Se il token è invalido o scaduto
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        token_data = TokenPayload(
            sub=payload.get("sub") or "",
            exp=payload.get("exp"),
            type=payload.get("type", "access"),
        )
    except (JWTError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token invalido o scaduto: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not token_data.sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalido: missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return token_data


# Export delle funzioni
__all__ = [
    "create_access_token",
    "decode_token",
]
