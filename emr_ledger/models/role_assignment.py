"""
Modelo RoleAssignment: Tabla principal → roles.

Un principal puede tener varios roles. Revocar un rol no borra la fila:
solo la marca inactiva (historial completo de asignaciones).
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from emr_ledger.database import Base, utcnow


class Role(str, enum.Enum):
    """Roles del registro. Determinan en qué registro puede inscribirse un principal."""
    ADMIN = "admin"
    FACILITY = "facility"
    PRACTITIONER = "practitioner"
    INDIVIDUAL = "individual"


class RoleAssignment(Base):
    __tablename__ = "role_assignments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    principal: Mapped[str] = mapped_column(String(66), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False)

    # ── Estado ───────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(default=True)
    granted_by: Mapped[str | None] = mapped_column(
        String(66), comment="Admin que otorgó el rol (null = génesis)"
    )
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("principal", "role", name="uq_role_assignment_principal_role"),
        Index("idx_role_assignment_role", "role", "is_active"),
    )

    def __repr__(self) -> str:
        state = "ACTIVE" if self.is_active else "REVOKED"
        return f"<RoleAssignment {self.principal} {self.role.value} [{state}]>"
