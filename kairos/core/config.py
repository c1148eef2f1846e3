import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Kairos - Task Planner"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "kairos_db")
    DATABASE_URL: str | None = None

    # Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev_secret_key_change_me_in_prod")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 7 days

    # Push (Firebase Cloud Messaging)
    FIREBASE_CREDENTIALS: str = "firebase-service-account.json"
    FIREBASE_SERVICE_ACCOUNT: str | None = None

    # Google Calendar / Fit (tokens are stored on the user row)
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    CALENDAR_SYNC_DAYS_BACK: int = 14
    CALENDAR_SYNC_DAYS_AHEAD: int = 90
    HEALTH_SYNC_DAYS: int = 30

    # Reminders
    DEFAULT_TIMEZONE: str = "UTC"
    SCHEDULER_ENABLED: bool = True
    REMINDER_CHECK_INTERVAL_MINUTES: int = 1

    # Offline client
    OFFLINE_DB_URL: str = "sqlite+aiosqlite:///kairos_offline.db"
    OFFLINE_STARTUP_REPLAY_SECONDS: int = 5
    CONNECTIVITY_PROBE_SECONDS: int = 15

    model_config = SettingsConfigDict(env_file=os.path.join(os.path.dirname(__file__), "..", "..", ".env"), case_sensitive=True, extra="ignore")

    def __init__(self, **data):
        super().__init__(**data)
        if not self.DATABASE_URL:
             self.DATABASE_URL = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

settings = Settings()
