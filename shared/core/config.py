import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./rental.db")

    # Calendar days are evaluated in this zone (due dates, reminder days)
    APP_TIMEZONE: str = os.getenv("APP_TIMEZONE", "Asia/Bangkok")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # Payment notification sweep
    NOTIFICATION_SWEEP_ENABLED: bool = True
    NOTIFICATION_SWEEP_ON_STARTUP: bool = True
    NOTIFICATION_SWEEP_INTERVAL_MINUTES: int = 120
    NOTIFICATION_SWEEP_MAX_SECONDS: int = 600
    NOTIFICATION_SWEEP_USE_DB_LOCK: bool = False
    NOTIFICATION_SWEEP_LOCK_TTL_MINUTES: int = 30

    # Bring pending future obligations in line when lease amounts are edited
    REVISE_PENDING_ON_EDIT: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

RENTAL_DATABASE_URL = settings.DATABASE_URL
