"""
Excepciones del registro.

Cada tipo de error del núcleo es una HTTPException con un `code` estable.
Los servicios lanzan exactamente una de estas; la capa HTTP solo las serializa.
"""

from fastapi import HTTPException, status


class CredentialsException(HTTPException):
    """Error de credenciales inválidas (401)."""

    def __init__(self, detail: str = "Credenciales inválidas"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class RegistryException(HTTPException):
    """Base de los errores del registro: cada subclase fija status y code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "registry_error"
    default_detail: str = "Operación rechazada"

    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
        )


# ── Roles ────────────────────────────────────────────

class UnauthorizedException(RegistryException):
    """El principal no tiene el rol requerido (403)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"
    default_detail = "El principal no tiene el rol requerido"


class NotEligibleException(UnauthorizedException):
    """El principal no tiene PRACTITIONER para ser registrado como profesional."""

    code = "not_eligible"
    default_detail = "El principal no es elegible como profesional"


# ── Identidad del llamador ───────────────────────────

class ForbiddenException(RegistryException):
    """El llamador no es el principal específico requerido (403)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "No tiene permisos para realizar esta acción"


class InactiveFacilityException(ForbiddenException):
    code = "inactive_facility"
    default_detail = "El establecimiento está desactivado"


class InactivePractitionerException(ForbiddenException):
    code = "inactive_practitioner"
    default_detail = "El profesional está desactivado"


class InactiveIndividualException(ForbiddenException):
    code = "inactive_individual"
    default_detail = "El paciente está desactivado"


class AccessDeniedException(RegistryException):
    """Lectura rechazada por falta de consentimiento (403)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "access_denied"
    default_detail = "Sin permiso de acceso: solicite acceso al paciente"


# ── Existencia ───────────────────────────────────────

class NotFoundException(RegistryException):
    """Recurso no encontrado (404)."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, resource: str = "Recurso", detail: str | None = None):
        super().__init__(detail or f"{resource} no encontrado")


class AlreadyRegisteredException(RegistryException):
    """El principal ya tiene una entrada en el registro (409)."""

    status_code = status.HTTP_409_CONFLICT
    code = "already_registered"
    default_detail = "El principal ya está registrado"


# ── State machine de solicitudes ─────────────────────

class AlreadyPendingException(RegistryException):
    status_code = status.HTTP_409_CONFLICT
    code = "already_pending"
    default_detail = "Ya existe una solicitud pendiente para esta aseguradora"


class InvalidStateException(RegistryException):
    """Transición no permitida desde el estado actual (409)."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state"
    default_detail = "Transición de estado no permitida"


# ── Sistema ──────────────────────────────────────────

class SystemPausedException(RegistryException):
    """El sistema está pausado por el admin: no se aceptan escrituras (503)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "system_paused"
    default_detail = "El sistema está pausado"
