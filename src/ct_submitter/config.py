"""
Configuration — typed, validated settings loaded from environment/.env/CLI.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Accept command-line flags when main() asks for them
  - Validate types and constraints at startup

Architecture: Only AppSettings is a BaseSettings instance. Sub-settings are plain
BaseModel classes populated by AppSettings via env_nested_delimiter="__", so the env
var DATABASE__DSN maps to database.dsn, LOG_SERVER__URL maps to log_server.url, etc.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ct_submitter.adapters.dry_run import DEFAULT_DELAY_SECONDS
from ct_submitter.adapters.http_client import DEFAULT_LOG_URL
from ct_submitter.source import DEFAULT_PAGE_SIZE
from ct_submitter.stats import DEFAULT_INTERVAL_SECONDS
from ct_submitter.workers import DEFAULT_WORKERS

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class DatabaseSettings(BaseModel):
    """
    PostgreSQL connection configuration for the chain store.

    Accepts either a full connection string via DATABASE__DSN or individual
    components (DATABASE__HOST, DATABASE__PORT, DATABASE__NAME, DATABASE__USERNAME,
    DATABASE__PASSWORD). The DSN takes priority when both are provided.
    """

    dsn: SecretStr | None = Field(
        default=None,
        description="Full PostgreSQL connection string (overrides individual fields)",
    )
    host: str | None = Field(default=None, description="PostgreSQL host")
    port: int = Field(default=5432, ge=1, le=65535, description="PostgreSQL port")
    name: str | None = Field(default=None, description="PostgreSQL database name")
    username: str | None = Field(default=None, description="PostgreSQL username")
    password: SecretStr | None = Field(default=None, description="PostgreSQL password")

    @model_validator(mode="after")
    def resolve_dsn(self) -> DatabaseSettings:
        """Build `dsn` from the components when no full DSN was given."""
        if self.dsn is not None:
            return self
        missing = [f for f, v in [
            ("DATABASE__HOST", self.host),
            ("DATABASE__NAME", self.name),
            ("DATABASE__USERNAME", self.username),
            ("DATABASE__PASSWORD", self.password),
        ] if not v]
        if missing:
            raise ValueError(
                "Set DATABASE__DSN or provide all of: "
                + ", ".join(missing)
            )
        dsn_value = (
            f"postgresql://{self.username}:{self.password.get_secret_value()}"  # type: ignore[union-attr]
            f"@{self.host}:{self.port}/{self.name}"
        )
        object.__setattr__(self, "dsn", SecretStr(dsn_value))
        return self

    def get_dsn(self) -> str:
        assert self.dsn is not None  # guaranteed by resolve_dsn validator
        return self.dsn.get_secret_value()


class LogServerSettings(BaseModel):
    """The CT log receiving the chains."""

    url: str = Field(default=DEFAULT_LOG_URL, description="add-chain endpoint URL")
    timeout_seconds: float = Field(default=60, gt=0, description="HTTP timeout per submission")

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Only http(s) endpoints make sense for add-chain."""
        if not value.startswith(("https://", "http://")):
            raise ValueError(f"Log URL must be http(s), got {value!r}")
        return value


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Command-line flags (only when main() parses them)
      2. Environment variables
      3. .env file
      4. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseSettings
    log_server: LogServerSettings = Field(default_factory=lambda: LogServerSettings())

    dry_run: bool = Field(default=False, description="Simulate submissions, never contact the log")
    dry_run_delay_seconds: float = Field(default=DEFAULT_DELAY_SECONDS, ge=0)
    initial_chain_id: int = Field(
        default=0, ge=0, description="Pagination offset to resume the chain listing from"
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    stats_interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, gt=0)
    batch_capacity: int = Field(default=100, ge=1)
    submission_capacity: int = Field(default=100_000, ge=1)
    log_level: str = Field(default="INFO")
