"""
Modelo AuditLog: Registro de auditoría INMUTABLE.
INSERT-only: cada operación que modifica el registro deja aquí su huella,
en la misma transacción que el cambio.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from emr_ledger.database import Base, utcnow


class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor: Mapped[str] = mapped_column(
        String(66), nullable=False, index=True,
        comment="Principal que ejecutó la operación"
    )

    # ── Datos del evento ─────────────────────────────
    entity: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True,
        comment="facility, practitioner, individual, medical_record, consent, review, role, system"
    )
    entity_id: Mapped[str] = mapped_column(
        String(140), nullable=False,
        comment="Clave del registro afectado"
    )
    action: Mapped[str] = mapped_column(
        String(30), nullable=False, index=True,
        comment="register, update, deactivate, grant, revoke, request, etc."
    )

    # ── Datos del cambio ─────────────────────────────
    old_data: Mapped[dict | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        comment="Snapshot antes del cambio"
    )
    new_data: Mapped[dict | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        comment="Snapshot después del cambio"
    )

    # ── Metadata de la request ───────────────────────
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(Text)

    # ── Timestamp inmutable ──────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_audit_entity", "entity", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} on {self.entity} {self.entity_id}>"
