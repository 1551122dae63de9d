"""
Servicio de Audit Log: registra todas las operaciones de escritura.
INSERT-only, nunca se modifica ni elimina.
"""

from datetime import date, datetime
from enum import Enum
from math import ceil

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.models.audit_log import AuditLog


def _sanitize_for_json(data: dict | None) -> dict | None:
    """Convierte tipos no serializables (date, datetime, Enum) a strings."""
    if data is None:
        return None
    sanitized = {}
    for key, value in data.items():
        if isinstance(value, (date, datetime)):
            sanitized[key] = value.isoformat()
        elif isinstance(value, Enum):
            sanitized[key] = value.value
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_for_json(value)
        elif isinstance(value, (list, tuple)):
            sanitized[key] = [
                _sanitize_for_json(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value
    return sanitized


async def log_action(
    db: AsyncSession,
    *,
    actor: str,
    entity: str,
    entity_id: str,
    action: str,
    old_data: dict | None = None,
    new_data: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """Inserta un registro de auditoría inmutable."""
    entry = AuditLog(
        actor=actor,
        entity=entity,
        entity_id=str(entity_id),
        action=action,
        old_data=_sanitize_for_json(old_data),
        new_data=_sanitize_for_json(new_data),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    await db.flush()
    return entry


async def get_audit_logs(
    db: AsyncSession,
    *,
    page: int = 1,
    size: int = 15,
    action: str | None = None,
    entity: str | None = None,
    actor: str | None = None,
) -> dict:
    """Consulta paginada del audit log (más recientes primero)."""
    query = select(AuditLog)
    count_query = select(func.count(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)
        count_query = count_query.where(AuditLog.action == action)

    if entity:
        query = query.where(AuditLog.entity == entity)
        count_query = count_query.where(AuditLog.entity == entity)

    if actor:
        query = query.where(AuditLog.actor == actor)
        count_query = count_query.where(AuditLog.actor == actor)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    offset = (page - 1) * size
    query = query.order_by(AuditLog.id.desc()).offset(offset).limit(size)
    result = await db.execute(query)
    items = result.scalars().all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "size": size,
        "pages": ceil(total / size) if size > 0 else 1,
    }
