"""
Modelo Practitioner: Profesional registrado por un establecimiento.

Cada profesional pertenece a exactamente un establecimiento. name y
specialization solo los edita el propio profesional.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from emr_ledger.database import Base, utcnow


class Practitioner(Base):
    __tablename__ = "practitioners"

    id: Mapped[str] = mapped_column(
        String(66), primary_key=True, comment="Principal del profesional"
    )
    facility_id: Mapped[str] = mapped_column(
        String(66), ForeignKey("facilities.id"), nullable=False
    )
    license_number: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Número de colegiatura / licencia"
    )

    # ── Perfil (editable por el profesional) ─────────
    name: Mapped[str | None] = mapped_column(String(200))
    specialization: Mapped[str | None] = mapped_column(String(100))

    # ── Estado ───────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(default=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # ── Relaciones ───────────────────────────────────
    facility: Mapped["Facility"] = relationship(  # noqa: F821
        "Facility", back_populates="practitioners"
    )

    __table_args__ = (
        Index("idx_practitioner_facility", "facility_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Practitioner {self.id} ({self.license_number})>"
