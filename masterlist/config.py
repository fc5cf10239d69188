"""Application configuration"""
from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./masterlist.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # Control-plane key for the restriction flag endpoints (X-Admin-Key)
    ADMIN_API_KEY: str = "admin-secret-key-change-in-production"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["100/minute", "1000/hour"]
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    # JWT sessions
    JWT_PRIVATE_KEY: Optional[str] = None     # RSA-2048 PEM string; auto-generated on startup if absent
    JWT_ALGORITHM: str = "RS256"
    JWT_SESSION_EXPIRE_SECONDS: int = 28800   # 8 hours
    JWT_KEY_ID: Optional[str] = None

    # Masterlist numbering
    MASTERLIST_PREFIX: str = "ML-"
    MASTERLIST_PADDING: int = 3

    # Restriction flag defaults, used until a value is stored in site_flags
    MAINTENANCE_MODE: bool = False
    FIRST_TIME_RESTRICTION: bool = False

    # Redirect targets (sibling pages of the dashboard)
    LANDING_PAGE: str = "index"
    LOGIN_PAGE: str = "login"
    ADMINISTRATOR_HOME_PAGE: str = "user-management"
    MODERATOR_HOME_PAGE: str = "profile-settings"

    # Activity log reads
    LOG_QUERY_MAX_LIMIT: int = 1000
    LOG_DEFAULT_PAGE_SIZE: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.LOG_LEVEL == "WARNING" or self.LOG_LEVEL == "ERROR"


settings = Settings()
