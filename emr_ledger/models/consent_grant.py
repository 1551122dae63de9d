"""
Modelo ConsentGrant: Consentimiento de lectura otorgado por el paciente.

Una sola fila por (patient_id, grantee_id). Revocar pone is_active=False;
volver a otorgar reactiva la misma fila.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from emr_ledger.database import Base, utcnow


class ConsentGrant(Base):
    __tablename__ = "consent_grants"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(
        String(66), nullable=False, comment="Paciente dueño del consentimiento"
    )
    grantee_id: Mapped[str] = mapped_column(
        String(66), nullable=False, comment="Principal autorizado a leer"
    )

    # ── Estado ───────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(default=True)
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("patient_id", "grantee_id", name="uq_consent_patient_grantee"),
        Index("idx_consent_grantee", "grantee_id", "is_active"),
    )

    def __repr__(self) -> str:
        state = "ACTIVE" if self.is_active else "REVOKED"
        return f"<ConsentGrant {self.patient_id} → {self.grantee_id} [{state}]>"
