from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from functools import lru_cache
import os

class Settings(BaseSettings):
    """Application settings loaded from .env (or custom env file)"""

    # Allow overriding env_file via GYM_APP_ENV_FILE environment variable
    model_config = SettingsConfigDict(  # type: ignore[misc]
        env_file=os.environ.get('GYM_APP_ENV_FILE', '.env'),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Paths
    DATA_ROOT: str = "data"  # Directory holding the store file
    DB_FILENAME: str = "gym_app.db"

    # Schema management
    MIGRATION_BACKUPS: bool = True  # Copy the store aside before pending migrations

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_CATEGORIES: str = ""
    LOG_FILE: str = ""

    @property
    def data_root(self) -> Path:
        return Path(self.DATA_ROOT)

    @property
    def db_path(self) -> Path:
        """Store file - always data_root/DB_FILENAME"""
        return self.data_root / self.DB_FILENAME

    @property
    def migration_backups(self) -> bool:
        return self.MIGRATION_BACKUPS

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL.upper()

    @property
    def log_categories(self) -> list[str]:
        if not self.LOG_CATEGORIES:
            return []
        return [cat.strip() for cat in self.LOG_CATEGORIES.split(',')]

    @property
    def log_file(self) -> Path | None:
        if not self.LOG_FILE:
            return None
        return Path(self.LOG_FILE)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
