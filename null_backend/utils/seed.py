"""
Seed dell'operatore / Operator seeding.
Crea l'account admin al primo avvio se non esiste alcun utente.
Creates the admin account on first startup if no users exist.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.config import settings
from null_backend.models.user import User, UserRole
from null_backend.utils.auth import hash_password

logger = logging.getLogger(__name__)


async def seed_admin(session: AsyncSession) -> None:
    """Crea l'admin se non ci sono utenti / Create the admin if there are no users."""
    count = await session.scalar(select(func.count(User.id)))

    if count == 0:
        admin = User(
            username=settings.SEED_ADMIN_USERNAME,
            email=f"{settings.SEED_ADMIN_USERNAME}@null-lockers.app",
            full_name="Operatore NULL",
            hashed_password=hash_password(settings.SEED_ADMIN_PASSWORD),
            role=UserRole.ADMIN,
            is_active=True,
        )
        session.add(admin)
        await session.commit()
        logger.info("Admin account created: %s", settings.SEED_ADMIN_USERNAME)
    else:
        logger.info("%d existing user(s), seed skipped", count)
