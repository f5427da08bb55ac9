"""Configuration management for FileDrop."""

from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "filedrop"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Storage Configuration
    STORAGE_PATH: str = "./storage"
    MAX_STORAGE_SIZE_BYTES: int = 1 << 30  # 1 GiB across all entries
    MAX_FILE_SIZE_BYTES: int = 256 << 20  # 256 MiB per upload
    FILE_KEEPING_MINUTES: int = 10

    # Web Configuration
    WEB_HOST: str = "http://localhost:8080"  # Public base URL used in links
    HOST: str = "localhost"
    PORT: int = 8080

    # Chat Configuration
    CHAT_API_URL: str = ""  # Empty = notifications disabled
    CHAT_TOKEN: str = ""  # Required by the process entry point
    COMMAND_TOKEN: str = ""  # Empty = slot trigger accepts any caller
    NOTIFY_TIMEOUT: int = 5  # seconds

    @property
    def retention(self) -> timedelta:
        """Convert FILE_KEEPING_MINUTES to a timedelta."""
        return timedelta(minutes=self.FILE_KEEPING_MINUTES)

    @property
    def storage_root(self) -> Path:
        """Storage root as a Path."""
        return Path(self.STORAGE_PATH)

    @property
    def web_host(self) -> str:
        """WEB_HOST without a trailing slash."""
        return self.WEB_HOST.rstrip("/")


# Singleton settings instance
settings = Settings()
