"""
Configurazione dell'applicazione / Application configuration.
Utilizza pydantic-settings per leggere da .env o variabili d'ambiente.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "NULL Lockers"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api/v1"

    # Database - SQLite di default per lo sviluppo
    # Database - SQLite by default for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./null_lockers.db"

    # CORS - origini autorizzate / allowed origins
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000", "http://localhost:8081"]

    # JWT Authentication
    SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LOGIN: str = "5/minute"
    RATE_LIMIT_REGISTER: str = "3/minute"
    RATE_LIMIT_CELL_ACCESS: str = "30/minute"

    # Orari mostrati all'utente / Clock labels shown to users
    LOCAL_TIMEZONE: str = "Europe/Rome"

    # Foto (data URL base64) / Photos (base64 data URLs)
    UPLOAD_DIR: str = "./uploads"
    MAX_PHOTO_BYTES: int = 5 * 1024 * 1024

    # Pagamenti simulati / Mock payments
    MOCK_PAYMENT_LATENCY_SECONDS: float = 0.5

    # Ricerca per prossimita / Nearby search
    NEARBY_DEFAULT_RADIUS_M: int = 5000

    # Seed operatore / Operator seed
    SEED_ADMIN_USERNAME: str = "admin"
    SEED_ADMIN_PASSWORD: str = "admin"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
