"""
Dipendenze di autenticazione e autorizzazione / Authentication and authorization dependencies.
Iniettate nelle route via Depends().
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.database import get_db
from null_backend.errors import UnauthorizedError
from null_backend.models.user import User
from null_backend.services.audit_recorder import AuditRecorder
from null_backend.services.notifier import Notifier
from null_backend.services.payment_gateway import MockPaymentGateway
from null_backend.services.rental_ledger import RentalLedger
from null_backend.utils.auth import decode_token

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Estrae e valida l'utente dal JWT / Extract and validate user from JWT."""
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise UnauthorizedError("Invalid or expired token")

    user = await db.get(User, int(payload["sub"]))
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


async def require_operator(user: User = Depends(get_current_user)) -> User:
    """Solo operatori e admin / Operators and admins only."""
    if not user.is_operator:
        raise UnauthorizedError("operator or admin role required")
    return user


def client_ip(request: Request) -> str:
    """IP client (X-Forwarded-For dietro proxy) / Client IP (X-Forwarded-For behind proxy)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# Servizi sostituibili nei test con app.dependency_overrides /
# Services replaceable in tests through app.dependency_overrides

def get_notifier() -> Notifier:
    return Notifier()


def get_ledger(notifier: Notifier = Depends(get_notifier)) -> RentalLedger:
    return RentalLedger(notifier=notifier)


def get_payment_gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


def get_audit_recorder() -> AuditRecorder:
    return AuditRecorder()
