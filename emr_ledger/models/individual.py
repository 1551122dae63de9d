"""
Modelo Individual: Paciente auto-registrado.
Solo el propio paciente puede desactivarse.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from emr_ledger.database import Base, utcnow


class Individual(Base):
    __tablename__ = "individuals"

    id: Mapped[str] = mapped_column(
        String(66), primary_key=True, comment="Principal del paciente"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Fecha tal como la declara el paciente"
    )
    blood_group: Mapped[str] = mapped_column(
        String(5), nullable=False, comment="A+, A-, B+, B-, O+, O-, AB+, AB-"
    )

    # ── Estado ───────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(default=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Individual {self.name}>"
