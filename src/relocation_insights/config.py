"""
Application configuration using Pydantic Settings.

All settings are loaded from environment variables or .env file.
API keys are optional: a missing key makes the matching provider
fall back to static data instead of failing.
"""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STORAGE_BACKENDS = ("memory", "sql", "dynamodb")


class DatabaseSettings(BaseSettings):
    """Relational database connection settings."""

    url: str = "sqlite:///./data/relocation_insights.db"
    pool_size: int = 10
    max_overflow: int = 20

    model_config = SettingsConfigDict(env_prefix="DATABASE_")


class StorageSettings(BaseSettings):
    """Which repository backend serves location data."""

    backend: str = "memory"
    seed_on_startup: bool = True

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        value = (v or "memory").strip().lower()
        if value not in STORAGE_BACKENDS:
            raise ValueError(f"backend must be one of {', '.join(STORAGE_BACKENDS)}")
        return value


class DynamoDBSettings(BaseSettings):
    """DynamoDB connection settings (AWS or DynamoDB Local)."""

    use_dynamo_db: bool = False
    aws_region: str = "us-east-1"
    dynamodb_endpoint: str = "http://localhost:8000"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    dynamodb_table_prefix: str = "cbp_"

    model_config = SettingsConfigDict(env_prefix="")

    @property
    def has_credentials(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


class ProviderSettings(BaseSettings):
    """Third-party data provider credentials and HTTP behaviour."""

    census_api_key: Optional[str] = None
    noaa_api_key: Optional[str] = None
    rentcast_api_key: Optional[str] = None
    data_gov_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    provider_timeout: int = 10
    provider_max_retries: int = 1

    model_config = SettingsConfigDict(env_prefix="")


class APISettings(BaseSettings):
    """FastAPI server settings."""

    host: str = "0.0.0.0"
    port: int = 5000
    reload: bool = False
    cors_origins: list[str] = ["*"]
    static_dir: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="API_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    file: str = "logs/relocation_insights.log"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings — aggregates all sub-settings."""

    database: DatabaseSettings = DatabaseSettings()
    storage: StorageSettings = StorageSettings()
    dynamodb: DynamoDBSettings = DynamoDBSettings()
    providers: ProviderSettings = ProviderSettings()
    api: APISettings = APISettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def storage_backend(self) -> str:
        """USE_DYNAMO_DB wins over STORAGE_BACKEND, as the deploy scripts expect."""
        if self.dynamodb.use_dynamo_db:
            return "dynamodb"
        return self.storage.backend

    def setup(self) -> None:
        """Initialize application: create the log and SQLite data directories."""
        Path(self.logging.file).parent.mkdir(parents=True, exist_ok=True)
        if self.database.url.startswith("sqlite:///./"):
            db_path = Path(self.database.url.removeprefix("sqlite:///"))
            db_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance, import this in other modules
settings = Settings()
