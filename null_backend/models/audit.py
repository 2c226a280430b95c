"""Modello Storico operazioni / Audit log model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from null_backend.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # locker, cell, auth
    entity_id: Mapped[str] = mapped_column(String(30), nullable=False)  # LCK-001, CEL-001-2
    action: Mapped[str] = mapped_column(String(40), nullable=False)  # SET_STATUS, SET_MAINTENANCE...
    changes: Mapped[str | None] = mapped_column(Text)  # JSON delle modifiche
    user: Mapped[str | None] = mapped_column(String(100))
    ip_address: Mapped[str | None] = mapped_column(String(64))
    timestamp: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
