from pydantic_settings import BaseSettings
from typing import List, Any, Optional
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "HostelPay"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Remote document store
    # ==========================================
    # "" = not configured (local cache only), "memory://" = in-process store,
    # "redis://host:port/db" = Redis document store
    REMOTE_STORE_URL: str = ""
    REMOTE_STORE_NAMESPACE: str = "hostel"
    REMOTE_TIMEOUT_SECONDS: float = 15.0

    # ==========================================
    # Local cache
    # ==========================================
    LOCAL_CACHE_DIR: str = "./.hostel_cache"
    LOCAL_CACHE_PREFIX: str = "hostel-"
    SEED_SAMPLE_DATA: bool = True

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    BCRYPT_ROUNDS: int = 12  # 4 for tests (fast), 12 for prod

    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_EMAIL: str = "admin@hostel.com"

    # ==========================================
    # Monthly fee reset
    # ==========================================
    MONTHLY_RESET_ENABLED: bool = True
    MONTHLY_RESET_INTERVAL_MINUTES: int = 60
    FEE_COLLECTION_LAST_DAY: int = 10  # Collection window is 1st..N of the month
    HOSTEL_TIMEZONE: str = "UTC"

    # ==========================================
    # UPI payment simulation
    # ==========================================
    UPI_PROCESSING_DELAY_SECONDS: float = 2.0
    UPI_COMPLETION_DELAY_SECONDS: float = 3.0

    # ==========================================
    # Rate limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "5/minute"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Get CORS origins as a list"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def LOCAL_CACHE_PATH(self) -> Path:
        return Path(self.LOCAL_CACHE_DIR)

    @property
    def remote_configured(self) -> bool:
        return bool(self.REMOTE_STORE_URL.strip())

    def remote_backend(self) -> Optional[str]:
        """Name of the configured remote backend: 'memory', 'redis' or None"""
        url = self.REMOTE_STORE_URL.strip()
        if not url:
            return None
        if url.startswith("memory://"):
            return "memory"
        if url.startswith(("redis://", "rediss://", "unix://")):
            return "redis"
        raise ValueError(f"Unsupported REMOTE_STORE_URL scheme: {url}")


# Create settings instance
settings = Settings()
