"""
Modelo ReviewApplication: Solicitud de revisión paciente → aseguradora.

Estados válidos y transiciones:
    none → pending
    pending → granted | rejected | cancelled
    granted | rejected | cancelled → pending   (nuevo ciclo, sobrescribe la fila)

Una sola fila por (patient_id, insurer_id): los ciclos anteriores no se conservan.
Los contadores agregados viven en ReviewTotals (una fila) y se actualizan en
la misma transacción que cada transición.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from emr_ledger.database import Base, utcnow


class ReviewStatus(str, enum.Enum):
    """Estados de una solicitud de revisión."""
    NONE = "none"
    PENDING = "pending"
    GRANTED = "granted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# ── Transiciones válidas de la state machine ─────────
VALID_TRANSITIONS: dict[ReviewStatus, list[ReviewStatus]] = {
    ReviewStatus.NONE: [ReviewStatus.PENDING],
    ReviewStatus.PENDING: [
        ReviewStatus.GRANTED,
        ReviewStatus.REJECTED,
        ReviewStatus.CANCELLED,
    ],
    # Terminales por ciclo: solo se puede abrir un ciclo nuevo
    ReviewStatus.GRANTED: [ReviewStatus.PENDING],
    ReviewStatus.REJECTED: [ReviewStatus.PENDING],
    ReviewStatus.CANCELLED: [ReviewStatus.PENDING],
}


def is_valid_transition(current: ReviewStatus, new: ReviewStatus) -> bool:
    """Verifica si una transición de estado es válida."""
    return new in VALID_TRANSITIONS.get(current, [])


class ReviewApplication(Base):
    __tablename__ = "review_applications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(String(66), nullable=False)
    insurer_id: Mapped[str] = mapped_column(String(66), nullable=False)

    status: Mapped[ReviewStatus] = mapped_column(
        Enum(ReviewStatus), nullable=False, default=ReviewStatus.NONE
    )
    reason: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # ── Timestamps ───────────────────────────────────
    requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("patient_id", "insurer_id", name="uq_review_patient_insurer"),
        Index("idx_review_insurer_status", "insurer_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<ReviewApplication {self.patient_id} → {self.insurer_id} [{self.status.value}]>"


class ReviewTotals(Base):
    """Contadores agregados de solicitudes. Fila única (id=1)."""

    __tablename__ = "review_totals"

    id: Mapped[int] = mapped_column(primary_key=True)
    pending: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    granted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rejected: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cancelled: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ReviewTotals P={self.pending} G={self.granted} "
            f"R={self.rejected} C={self.cancelled}>"
        )
