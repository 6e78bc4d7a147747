# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_stockledger.db"

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Batches expiring within this many days raise EXPIRING_SOON alerts
    EXPIRY_WARNING_DAYS: int = 30

    # Invoice numbers look like INV-20250101-0001
    INVOICE_PREFIX: str = "INV"
    INVOICE_NUMBER_RETRIES: int = 3

    RECENT_SALES_LIMIT: int = 5

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
