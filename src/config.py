from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./kocrou.db"
    DB_ECHO: bool = False

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Application
    PROJECT_NAME: str = "Kocrou Transport Booking API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Business rules
    DEFAULT_COMPANY: str = "Kocrou Transport & Frères"
    MIN_TRIP_PRICE: int = 1000
    MIN_SEGMENT_PRICE: int = 200
    MIN_SEATS: int = 10
    MAX_SEATS: int = 60
    NOTIFICATIONS_LIMIT: int = 30
    ACTIVITY_LOG_LIMIT: int = 100

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
