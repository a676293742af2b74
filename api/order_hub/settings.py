# order_hub/settings.py
"""
Order Hub Settings.
"""
from __future__ import annotations
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # File Storage (logs)
    # =========================================================================
    DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "order-data"),
        validation_alias=AliasChoices("DATA_ROOT", "ORDER_HUB_DATA_ROOT"),
    )

    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "ORDER_HUB_LOG_LEVEL"))
    LOG_MAX_BYTES: int = 5_000_000
    LOG_BACKUP_COUNT: int = 3

    # =========================================================================
    # PostgreSQL Database
    # =========================================================================
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="order_hub", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Connection pool settings (ignored for SQLite)
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # Full async URL override, e.g. sqlite+aiosqlite:///./orders.db
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "ORDER_HUB_DATABASE_URL"),
    )
    DB_CREATE_SCHEMA: bool = Field(
        default=True,
        description="Run metadata.create_all() on startup"
    )

    # =========================================================================
    # Business defaults
    # =========================================================================
    DEFAULT_TAX_RATE: Decimal = Field(default=Decimal("20"))
    ORDER_NUMBER_PREFIX: str = "CMD"
    CLIENT_NUMBER_PREFIX: str = "CLI"
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
