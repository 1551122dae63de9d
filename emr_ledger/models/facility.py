"""
Modelo Facility: Establecimiento de salud auto-registrado.

La clave es el principal del establecimiento. Solo se bloquea el registro
duplicado por principal; registration_number puede repetirse.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from emr_ledger.database import Base, utcnow


class Facility(Base):
    __tablename__ = "facilities"

    id: Mapped[str] = mapped_column(
        String(66), primary_key=True, comment="Principal del establecimiento"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    registration_number: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
        comment="Número de registro sanitario (no único)"
    )

    # ── Contadores (se actualizan en la misma transacción) ──
    doctor_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    patient_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ── Estado ───────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(default=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # ── Relaciones ───────────────────────────────────
    practitioners: Mapped[list["Practitioner"]] = relationship(  # noqa: F821
        "Practitioner", back_populates="facility"
    )

    def __repr__(self) -> str:
        return f"<Facility {self.name} ({self.registration_number})>"
