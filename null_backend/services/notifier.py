"""
Notifiche in-app / In-app notifications.
Pubblicate dopo il commit della transizione principale, in una sessione propria.
Un errore viene registrato nel log e mai propagato.

Published after the primary transition has committed, in their own session.
A failure is logged and never propagated.
"""

import logging
from collections.abc import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.database import async_session
from null_backend.models.locker import Locker
from null_backend.models.notification import Notification, NotificationKind
from null_backend.models.rental import Rental
from null_backend.models.user import User

logger = logging.getLogger(__name__)

# Operazione -> (titolo, verbo) / Operation -> (title, verb)
CELL_OPERATIONS = {
    "reserved": ("Cella prenotata", "prenotata"),
    "opened": ("Cella aperta", "aperta"),
    "closed": ("Cella chiusa", "chiusa"),
    "returned": ("Sessione terminata", "liberata"),
}


class Notifier:
    """Scrive record di notifica best-effort / Writes best-effort notification records."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session):
        self._session_factory = session_factory

    async def publish(
        self,
        user_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
        payload: dict | None = None,
    ) -> Notification | None:
        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
                if user is None or not user.wants_notification(kind.value):
                    return None
                notification = Notification(
                    user_id=user_id, kind=kind, title=title, message=message, payload=payload,
                )
                session.add(notification)
                await session.flush()
                notification.notification_code = f"NOT-{notification.id:03d}"
                await session.commit()
                return notification
        except Exception as e:
            logger.warning("Notification for user %s not recorded: %s", user_id, e)
            return None

    async def cell_operation(self, rental: Rental, operation: str) -> None:
        """Apertura/chiusura cella / Cell open or close."""
        title, verb = CELL_OPERATIONS[operation]
        cell_label = rental.cell.label if rental.cell else "La cella"
        locker_name = rental.locker.name if rental.locker else ""
        await self.publish(
            rental.user_id,
            NotificationKind.CELL_ACCESS,
            title,
            f"{cell_label} del locker {locker_name} è stata {verb}".strip(),
            {
                "lockerId": rental.locker.locker_code if rental.locker else None,
                "cellaId": rental.cell.cell_code if rental.cell else None,
                "noleggioId": rental.rental_code,
                "operation": operation,
            },
        )

    async def temporary_closure(self, locker: Locker, user_ids: Iterable[int]) -> None:
        """Chiusura temporanea per manutenzione / Temporary closure for maintenance."""
        eta = locker.maintenance_expected_end
        message = f"Il locker {locker.name} è temporaneamente chiuso per manutenzione"
        if locker.maintenance_reason:
            message += f": {locker.maintenance_reason}"
        for user_id in set(user_ids):
            await self.publish(
                user_id,
                NotificationKind.TEMPORARY_CLOSURE,
                "Chiusura temporanea",
                message,
                {
                    "lockerId": locker.locker_code,
                    "reason": locker.maintenance_reason,
                    "expectedEnd": eta.isoformat() if eta else None,
                },
            )


async def list_for_user(db: AsyncSession, user_id: int, unread_only: bool = False) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.id.desc()))
    return list(result.scalars().all())
