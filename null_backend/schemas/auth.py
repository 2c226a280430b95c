"""
Schemi di autenticazione / Authentication schemas.
Login, registrazione, token, profilo.
"""

from pydantic import EmailStr, Field

from null_backend.models.user import UserRole
from null_backend.schemas.common import CamelModel


class LoginRequest(CamelModel):
    """Richiesta di login / Login request."""
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=200)
    full_name: str | None = Field(default=None, max_length=200)


class RefreshRequest(CamelModel):
    refresh_token: str


class TokenResponse(CamelModel):
    """Risposta con token / Token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserMe(CamelModel):
    id: int
    username: str
    email: str
    full_name: str | None
    role: UserRole
    is_active: bool
    notification_prefs: dict | None = None
