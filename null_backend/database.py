"""
Connessione al database / Database connection.
Supporta SQLite (dev) e PostgreSQL (prod) via SQLAlchemy 2.0 async.
"""

import enum
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from null_backend.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

# Configurazione motore / Engine configuration
_engine_kwargs: dict = {
    "echo": False,
}

# PostgreSQL : pool di connessioni / PostgreSQL: connection pooling
if not _is_sqlite:
    _engine_kwargs.update({
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    })

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Salva i valori minuscoli, non i nomi / Persist lowercase values, not member names."""
    return [member.value for member in enum_cls]


async def get_db() -> AsyncSession:
    """Dipendenza FastAPI per la sessione DB / FastAPI dependency for DB session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Crea le tabelle all'avvio / Create tables on startup."""
    # Registra tutti i modelli sul metadata / Register every model on the metadata
    import null_backend.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    # Aggiunge le colonne mancanti sulle tabelle esistenti /
    # Add missing columns on existing tables
    await _migrate_missing_columns()


async def _migrate_missing_columns():
    """Verifica e aggiunge le colonne mancanti / Check and add missing columns via ALTER TABLE.

    Supporta SQLite (PRAGMA) e PostgreSQL (information_schema).
    """
    async with engine.begin() as conn:
        for table in Base.metadata.sorted_tables:
            if _is_sqlite:
                result = await conn.execute(text(f"PRAGMA table_info('{table.name}')"))
                existing_cols = {row[1] for row in result.fetchall()}
            else:
                result = await conn.execute(text(
                    "SELECT column_name FROM information_schema.columns "
                    "WHERE table_name = :table_name AND table_schema = 'public'"
                ), {"table_name": table.name})
                existing_cols = {row[0] for row in result.fetchall()}

            for col in table.columns:
                if col.name in existing_cols:
                    continue
                col_type = col.type.compile(dialect=engine.dialect)
                col_type_str = str(col_type)

                if col_type_str == "BOOLEAN":
                    default = "DEFAULT FALSE" if not _is_sqlite else "DEFAULT 0"
                elif col_type_str in ("INTEGER", "BIGINT") or col_type_str.startswith(("NUMERIC", "FLOAT")):
                    default = "DEFAULT 0"
                else:
                    # Colonne nullable: nessun default / Nullable columns: no default
                    default = ""

                await conn.execute(text(
                    f'ALTER TABLE "{table.name}" ADD COLUMN "{col.name}" {col_type} {default}'
                ))
                logger.info("Added column %s.%s (%s)", table.name, col.name, col_type)
