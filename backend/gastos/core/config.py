"""
Application configuration and environment settings.
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Literal, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Gastos Compartidos"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./gastos.db"
    DB_ECHO: bool = False

    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Exchange Rate
    EXCHANGE_RATE_API_KEY: str = ""
    EXCHANGE_RATE_API_URL: str = "https://v6.exchangerate-api.com/v6"
    FX_TIMEOUT_SECONDS: float = 10.0
    FX_CACHE_TTL_SECONDS: int = 60 * 60  # 1 hour
    DEFAULT_BASE_CURRENCY: str = "ARS"

    @field_validator("DEFAULT_BASE_CURRENCY")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    # Balances
    # "group": total spend divided across every group member
    # "participants": each expense divided among its own participants
    SHARE_MODEL: Literal["group", "participants"] = "group"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
