"""Application settings and configuration.

This module defines all configuration options for the Rarity Checker service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Rarity Checker", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./rarity.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis configuration for nonces and sessions; empty keeps them in-process
    redis_url: str = Field(default="", alias="REDIS_URL")

    # Wallet authentication
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    nonce_ttl_seconds: int = Field(default=300, alias="NONCE_TTL_SECONDS")
    session_ttl_seconds: int = Field(default=60 * 60 * 24, alias="SESSION_TTL_SECONDS")

    # Chain and metadata source
    rpc_url: str | None = Field(default=None, alias="RPC_URL")
    contract_address: str | None = Field(default=None, alias="CONTRACT_ADDRESS")
    ipfs_gateway: str = Field(default="https://ipfs.io/ipfs/", alias="IPFS_GATEWAY")
    metadata_cache_dir: str | None = Field(default=None, alias="METADATA_CACHE_DIR")
    metadata_http_timeout_seconds: float = Field(
        default=15.0,
        alias="METADATA_HTTP_TIMEOUT_SECONDS",
    )
    metadata_fetch_concurrency: int = Field(default=5, alias="METADATA_FETCH_CONCURRENCY")

    # Daily points accrual
    accrual_enabled: bool = Field(default=True, alias="ACCRUAL_ENABLED")
    accrual_hour_utc: int = Field(default=0, ge=0, le=23, alias="ACCRUAL_HOUR_UTC")
    accrual_run_on_startup: bool = Field(default=False, alias="ACCRUAL_RUN_ON_STARTUP")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def chain_configured(self) -> bool:
        """Return True when both an RPC endpoint and a contract are configured."""
        return bool(self.rpc_url and self.contract_address)


settings = Settings()  # type: ignore[call-arg]
