import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pytz
from dotenv import load_dotenv
from pydantic_settings import BaseSettings


# Find .env even in frozen or packaged mode
POSSIBLE_ENV_PATHS = [
    Path(__file__).resolve().parent.parent / ".env",        # normal
    Path(sys.executable).resolve().parent / ".env",         # frozen exe
    Path.cwd() / ".env",                                   # runtime cwd
]

for env_path in POSSIBLE_ENV_PATHS:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        break


class Settings(BaseSettings):
    # Database
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: str = "5432"
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_NAME: str = "backoffice_db"

    # Full URL wins over the parts above (sqlite:// in tests)
    DATABASE_URL: Optional[str] = None

    # Account used when a staff reference cannot be resolved
    DEFAULT_ACCOUNT_USERNAME: str = "admin"

    # Day-scoped document ids are computed in this timezone
    TIMEZONE: str = "Africa/Lagos"

    # Logging
    LOG_FILE: Optional[str] = "backoffice.log"
    LOG_LEVEL: str = "INFO"
    LOG_ROTATION: str = "500 MB"

    # Server
    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 8000

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )


settings = Settings()


def business_today() -> date:
    """Current calendar date in the configured business timezone."""
    return datetime.now(pytz.timezone(settings.TIMEZONE)).date()
