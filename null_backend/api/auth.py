"""
Route di autenticazione / Authentication routes.
Login, registrazione, refresh token, profilo utente.
"""

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import client_ip, get_current_user
from null_backend.config import settings
from null_backend.database import get_db
from null_backend.errors import UnauthorizedError, ValidationError
from null_backend.models.audit import AuditLog
from null_backend.models.user import User, UserRole
from null_backend.rate_limit import limiter
from null_backend.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserMe
from null_backend.schemas.common import envelope
from null_backend.utils.auth import create_access_token, create_refresh_token, decode_token, hash_password, verify_password

router = APIRouter()


def _tokens(user: User) -> dict:
    return TokenResponse(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    ).dump()


def _auth_event(action: str, entity_id: str, username: str, ip: str) -> AuditLog:
    return AuditLog(
        entity_type="auth", entity_id=entity_id, action=action,
        changes=json.dumps({"ip": ip}), user=username, ip_address=ip,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(request: Request, data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login con credenziali / Login with credentials."""
    result = await db.execute(select(User).where(User.username == data.username))
    user = result.scalar_one_or_none()
    ip = client_ip(request)

    if user is None or not verify_password(data.password, user.hashed_password):
        # Tentativo fallito / Failed attempt
        db.add(_auth_event("LOGIN_FAILED", "0", data.username, ip))
        await db.commit()
        raise UnauthorizedError("Invalid credentials")

    if not user.is_active:
        db.add(_auth_event("LOGIN_DISABLED", str(user.id), user.username, ip))
        await db.commit()
        raise UnauthorizedError("Account disabled")

    db.add(_auth_event("LOGIN", str(user.id), user.username, ip))
    return envelope(**_tokens(user), user=UserMe.model_validate(user).dump())


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REGISTER)
async def register(request: Request, data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Registrazione utente / User registration (stand-in for SPID/CIE)."""
    existing = await db.execute(
        select(User.id).where(or_(User.username == data.username, User.email == data.email))
    )
    if existing.first() is not None:
        raise ValidationError("Username or email already registered")

    user = User(
        username=data.username,
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        role=UserRole.USER,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    return envelope(**_tokens(user), user=UserMe.model_validate(user).dump())


@router.post("/refresh")
async def refresh(data: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Rinnova i token / Refresh tokens."""
    payload = decode_token(data.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise UnauthorizedError("Invalid refresh token")

    user = await db.get(User, int(payload["sub"]))
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return envelope(**_tokens(user))


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Profilo dell'utente connesso / Current user profile."""
    return envelope(user=UserMe.model_validate(user).dump())
