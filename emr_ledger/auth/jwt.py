"""
Gestión de JWT con RS256 (claves asimétricas).
El `sub` del token es el principal que firma cada operación del registro.
"""

from datetime import datetime, timedelta, timezone

import jwt

from emr_ledger.config import get_settings

settings = get_settings()


class TokenType:
    ACCESS = "access"


def create_access_token(principal: str, extra_claims: dict | None = None) -> str:
    """Crea un access token JWT RS256 (corta duración)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal,
        "type": TokenType.ACCESS,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(
        payload,
        settings.jwt_private_key,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_token(token: str) -> dict:
    """
    Decodifica y verifica un token JWT.
    Lanza jwt.InvalidTokenError si el token es inválido o expirado.
    """
    return jwt.decode(
        token,
        settings.jwt_public_key,
        algorithms=[settings.JWT_ALGORITHM],
    )


def decode_token_safe(token: str) -> dict | None:
    """Decodifica un token JWT sin lanzar excepciones."""
    try:
        return decode_token(token)
    except jwt.InvalidTokenError:
        return None
