"""
Modelo SystemState: Interruptor global de pausa (fila única, id=1).
Mientras paused=True toda operación de escritura es rechazada.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from emr_ledger.database import Base, utcnow


class SystemState(Base):
    __tablename__ = "system_state"

    id: Mapped[int] = mapped_column(primary_key=True)
    paused: Mapped[bool] = mapped_column(default=False)
    changed_by: Mapped[str | None] = mapped_column(String(66))
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    def __repr__(self) -> str:
        return f"<SystemState {'PAUSED' if self.paused else 'RUNNING'}>"
