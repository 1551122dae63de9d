"""
Modelo MedicalRecord: Ledger de registros clínicos.

Append-only: no se borran filas. El contenido solo lo modifica el profesional
que lo creó mientras siga activo. El id es un entero monótono de todo el ledger.
external_doc_pointer es un puntero opaco al almacén de documentos externo.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from emr_ledger.database import Base, utcnow


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(
        String(66), nullable=False,
        comment="Principal del paciente (no se exige que esté registrado)"
    )
    doctor_id: Mapped[str] = mapped_column(
        String(66), ForeignKey("practitioners.id"), nullable=False
    )

    # ── Contenido clínico ────────────────────────────
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False)
    symptoms: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list,
        comment="Síntomas en el orden registrado"
    )
    prescription: Mapped[str] = mapped_column(Text, nullable=False, default="")
    treatment_plan: Mapped[str] = mapped_column(Text, nullable=False, default="")
    external_doc_pointer: Mapped[str] = mapped_column(
        String(255), nullable=False, default="",
        comment="Puntero opaco (p. ej. CID) al almacén de documentos"
    )

    # ── Estado ───────────────────────────────────────
    # Sin operación que lo modifique; se conserva por compatibilidad de datos.
    is_active: Mapped[bool] = mapped_column(default=True)

    # ── Timestamps ───────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # ── Relaciones ───────────────────────────────────
    doctor: Mapped["Practitioner"] = relationship("Practitioner")  # noqa: F821

    # ── Índices secundarios (por paciente y por doctor) ──
    __table_args__ = (
        Index("idx_record_patient", "patient_id", "id"),
        Index("idx_record_doctor", "doctor_id", "id"),
        Index("idx_record_doctor_patient", "doctor_id", "patient_id"),
    )

    def __repr__(self) -> str:
        return f"<MedicalRecord #{self.id} patient={self.patient_id} doctor={self.doctor_id}>"
