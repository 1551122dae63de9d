"""
Dependencies de FastAPI para autenticación y contexto de la petición.
"""

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from emr_ledger.auth.jwt import TokenType, decode_token
from emr_ledger.core.exceptions import CredentialsException
from emr_ledger.services.access_policy import ConsentChecker, LedgerConsentChecker

# ── Security scheme ──────────────────────────────────
security = HTTPBearer()


# ── Principal actual ─────────────────────────────────
async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Decodifica el JWT del header Authorization y devuelve el principal (`sub`).
    No consulta roles: cada servicio verifica el rol que necesita.
    """
    try:
        payload = decode_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise CredentialsException("Token inválido o expirado")

    if payload.get("type", TokenType.ACCESS) != TokenType.ACCESS:
        raise CredentialsException("Tipo de token inválido")

    principal = payload.get("sub")
    if not principal:
        raise CredentialsException("Token sin principal")
    return principal


# ── Política de consentimiento ───────────────────────
def get_consent_checker() -> ConsentChecker:
    """Implementación por defecto: el ledger de consentimientos local."""
    return LedgerConsentChecker()


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
