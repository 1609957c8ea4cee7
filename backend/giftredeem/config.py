"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Claim retry/timeout knobs bound every claim transaction

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://giftredeem:giftredeem@db:5432/giftredeem"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Claim transaction
    claim_max_retries: int = 3
    claim_retry_base_delay_ms: int = 20
    claim_retry_max_delay_ms: int = 500
    claim_transaction_timeout_seconds: float = 10.0
    # ADR: None keeps the driver default (read committed on PostgreSQL).
    # The conditional UPDATE + unique constraint are sufficient there;
    # set SERIALIZABLE to trade throughput for a stricter guarantee.
    claim_isolation_level: str | None = None

    # Authoring
    default_benefit_lifetime_days: int = 365
    max_codes_per_benefit: int = 10_000

    # API
    public_base_url: str | None = None
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
