"""Storico operazioni amministrative / Admin operation audit trail."""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.database import async_session
from null_backend.models.audit import AuditLog

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Scrive AuditLog dopo il commit, senza mai fallire /
    Writes AuditLog rows after commit, never failing the caller."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session):
        self._session_factory = session_factory

    async def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        changes: dict | None = None,
        user: str | None = None,
        ip_address: str | None = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                session.add(AuditLog(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    action=action,
                    changes=json.dumps(changes, default=str) if changes is not None else None,
                    user=user,
                    ip_address=ip_address,
                    timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
                ))
                await session.commit()
        except Exception as e:
            logger.warning("Audit record %s %s:%s not written: %s", action, entity_type, entity_id, e)
