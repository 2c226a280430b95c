"""Route Storico operazioni / Audit log routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import require_operator
from null_backend.database import get_db
from null_backend.models.audit import AuditLog
from null_backend.models.user import User
from null_backend.schemas.common import envelope

router = APIRouter()


@router.get("")
async def list_audit_logs(
    entity_type: str | None = Query(default=None, alias="entityType"),
    entity_id: str | None = Query(default=None, alias="entityId"),
    action: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
):
    """Elenco dei log di audit / List audit logs (operatori / operators)."""
    query = select(AuditLog).order_by(AuditLog.id.desc())
    count_query = select(func.count(AuditLog.id))

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)
        count_query = count_query.where(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)
        count_query = count_query.where(AuditLog.entity_id == entity_id)
    if action:
        query = query.where(AuditLog.action == action)
        count_query = count_query.where(AuditLog.action == action)

    total = await db.scalar(count_query) or 0
    result = await db.execute(query.offset(offset).limit(limit))
    logs = result.scalars().all()

    return envelope(
        total=total,
        items=[
            {
                "id": log.id,
                "entityType": log.entity_type,
                "entityId": log.entity_id,
                "action": log.action,
                "changes": log.changes,
                "user": log.user,
                "ipAddress": log.ip_address,
                "timestamp": log.timestamp,
            }
            for log in logs
        ],
    )
