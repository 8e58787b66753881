import json
from functools import lru_cache
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    # Storage backend selector: sql | file | s3 (r2 is accepted as an alias of s3)
    task_backend: str = Field("sql", validation_alias="TASK_BACKEND")
    task_collection: str = Field("tasks", validation_alias="TASK_COLLECTION")

    # SQL backend. DATABASE_URL wins over the individual parts when set.
    database_url: Optional[str] = Field(None, validation_alias="DATABASE_URL")
    database_driver: str = Field("sqlite", validation_alias="DATABASE_DRIVER")
    database_name: str = Field(
        "tasks", validation_alias=AliasChoices("DATABASE_NAME", "AZURE_DATABASE")
    )
    database_host: Optional[str] = Field(
        None, validation_alias=AliasChoices("DATABASE_HOST", "AZURE_DATABASE_HOST")
    )
    database_username: Optional[str] = Field(
        None, validation_alias=AliasChoices("DATABASE_USERNAME", "AZURE_DATABASE_USERNAME")
    )
    database_password: Optional[str] = Field(
        None, validation_alias=AliasChoices("DATABASE_PASSWORD", "AZURE_DATABASE_PASSWORD")
    )
    database_pool_size: int = Field(5, validation_alias="DATABASE_POOL_SIZE")
    database_timeout_sec: int = Field(60, validation_alias="DATABASE_TIMEOUT_SEC")

    # File backend
    data_root: str = Field("./data", validation_alias="DATA_ROOT")

    # Cloudflare R2 / S3 backend
    r2_endpoint: str = Field("", validation_alias="R2_ENDPOINT")
    r2_access_key: str = Field("", validation_alias="R2_ACCESS_KEY")
    r2_secret_key: str = Field("", validation_alias="R2_SECRET_KEY")
    r2_bucket_name: str = Field("", validation_alias="R2_BUCKET_NAME")

    log_level: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("APP_LOG_LEVEL", "UVICORN_LOG_LEVEL", "LOG_LEVEL"),
    )
    # JSON array or comma-separated list
    cors_allow_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["*"], validation_alias="CORS_ALLOW_ORIGINS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def split_origins(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    def sqlalchemy_url(self) -> str | URL:
        if self.database_url:
            return self.database_url
        if self.database_driver.startswith("sqlite"):
            return f"{self.database_driver}:///./{self.database_name}.db"
        return URL.create(
            drivername=self.database_driver,
            username=self.database_username or None,
            password=self.database_password or None,
            host=self.database_host or None,
            database=self.database_name,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
