"""
Application configuration and environment settings.
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Application
    APP_NAME: str = "Tripsettle"
    DEBUG: bool = False
    LOG_JSON: bool = True
    
    # Database
    DATABASE_URL: str = "sqlite:///./tripsettle.db"
    DB_ECHO: bool = False
    
    # JWT (tokens are issued elsewhere; we only verify them)
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    
    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:8080"]
    
    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v
    
    # Currency
    DEFAULT_BASE_CURRENCY: str = "KRW"
    
    # Exchange Rate
    FX_PROVIDER: str = "http"  # Options: "http" (ExchangeRate-API v6), "static"
    FX_API_URL: str = "https://v6.exchangerate-api.com/v6"
    FX_API_KEY: str = ""
    FX_TIMEOUT_SECONDS: float = 10.0
    FX_RATE_TTL_SECONDS: int = 3600
    
    @field_validator("FX_PROVIDER")
    @classmethod
    def validate_fx_provider(cls, v):
        """Only known provider kinds are accepted."""
        allowed = {"http", "static"}
        if v not in allowed:
            raise ValueError(f"Unsupported FX_PROVIDER '{v}'. Allowed: {sorted(allowed)}")
        return v
    
    # Settlement summary cache (display only, never authoritative)
    SETTLEMENT_CACHE_ENABLED: bool = True
    SETTLEMENT_CACHE_TTL_SECONDS: int = 60
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
