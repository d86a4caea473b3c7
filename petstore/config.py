from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    service_name: str = "petstore"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    # An explicit URL wins over the discrete DB_* fields below.
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_username: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "petstore"
    pool_size: int = 20
    max_overflow: int = 10
    pool_pre_ping: bool = True
    statement_timeout_seconds: Optional[float] = None

    # Like toggle
    atomic_like_toggle: bool = True

    # Request checks
    client_id: str = Field(
        default="",
        validation_alias=AliasChoices("SBCNTR_CLIENT_ID_HEADER", "client_id"),
    )

    # Tracing
    enable_tracing: bool = Field(
        default=False,
        validation_alias=AliasChoices("SBCNTR_ENABLE_TRACING", "enable_tracing"),
    )
    otlp_endpoint: str = "http://localhost:4318/v1/traces"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_username}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def ssl_mode(self) -> str:
        # Local databases run without TLS
        return "disable" if self.db_host == "localhost" else "require"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
