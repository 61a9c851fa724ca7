"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import re

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.chains import CHAIN_REGISTRY, ChainConfig
from app.config.constants import (
    DEFAULT_PRICE_API_URL,
    EVENT_QUERY_BATCH_BLOCKS,
    INITIAL_LOOKBACK_BLOCKS,
    ORDER_SYNC_BATCH_BLOCKS,
    PRICE_API_TIMEOUT,
    PRICE_CACHE_TTL_SECONDS,
    PRICE_MIN_INTERVAL_SECONDS,
    RPC_CALL_TIMEOUT,
    RPC_MIN_INTERVAL_SECONDS,
)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Chain RPC endpoints (a chain is enabled when its URL is set)
    rpc_url: str | None = None  # Legacy single-chain URL, used for Base
    base_rpc_url: str | None = None
    lisk_rpc_url: str | None = None
    celo_rpc_url: str | None = None

    # Contract overrides (defaults live in the chain registry)
    base_contract_address: str | None = None
    lisk_contract_address: str | None = None
    celo_contract_address: str | None = None

    # RPC behaviour
    rpc_min_interval: float = Field(
        default=RPC_MIN_INTERVAL_SECONDS,
        ge=0,
        description="Minimum delay between two RPC calls (seconds)",
    )
    rpc_call_timeout: float = Field(
        default=RPC_CALL_TIMEOUT,
        gt=0,
        description="Timeout for a single RPC call (seconds)",
    )
    event_query_batch_blocks: int = Field(
        default=EVENT_QUERY_BATCH_BLOCKS,
        gt=0,
        description="Max blocks per eth_getLogs query",
    )

    # Order sync
    initial_lookback_blocks: int = Field(
        default=INITIAL_LOOKBACK_BLOCKS,
        ge=0,
        description="Blocks to look back on the very first order sync",
    )
    order_sync_batch_blocks: int = Field(
        default=ORDER_SYNC_BATCH_BLOCKS,
        gt=0,
        description="Blocks per order sync batch",
    )

    # Price feed
    price_api_url: str = DEFAULT_PRICE_API_URL
    price_api_timeout: float = Field(default=PRICE_API_TIMEOUT, gt=0)
    price_cache_ttl: float = Field(
        default=PRICE_CACHE_TTL_SECONDS,
        gt=0,
        description="Seconds a fetched price stays fresh",
    )
    price_min_interval: float = Field(
        default=PRICE_MIN_INTERVAL_SECONDS,
        ge=0,
        description="Minimum delay between two price API requests (seconds)",
    )
    local_currency: str = Field(
        default="ngn",
        description="Local fiat currency quoted next to USD",
    )
    token_table_path: str | None = Field(
        default=None,
        description="JSON file with token symbol rules and price feed ids",
    )

    # Schedule
    metrics_sync_interval_minutes: int = Field(default=60, gt=0)
    order_sync_interval_hours: int = Field(default=12, gt=0)
    volume_sync_interval_minutes: int = Field(default=15, gt=0)
    initial_sync_delay_seconds: int = Field(default=30, ge=0)
    run_initial_sync: bool = True

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3000, ge=1, le=65535)
    api_max_page_size: int = Field(default=100, gt=0)
    admin_api_token: str | None = Field(
        default=None,
        description="Bearer token for admin endpoints (disabled if unset)",
    )

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Only async drivers are usable by the engine."""
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "DATABASE_URL must use an async driver "
                "(postgresql+asyncpg:// or sqlite+aiosqlite://)"
            )
        return v

    @field_validator(
        "base_contract_address",
        "lisk_contract_address",
        "celo_contract_address",
    )
    @classmethod
    def validate_contract_address(cls, v: str | None) -> str | None:
        """Validate optional contract address overrides."""
        if v is None or v == "":
            return None
        if not _ADDRESS_RE.match(v):
            raise ValueError(f"Invalid contract address: {v}")
        return v

    @field_validator("local_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def set_rpc_defaults(self) -> "Settings":
        """Fall back to the legacy RPC_URL for Base."""
        if not self.base_rpc_url and self.rpc_url:
            self.base_rpc_url = self.rpc_url
        return self

    def get_chain_configs(self) -> list[ChainConfig]:
        """
        Get configs of all enabled chains.

        Returns:
            Chain configs with RPC URL set, in registry order
        """
        enabled = []
        for key, chain in CHAIN_REGISTRY.items():
            rpc_url = getattr(self, f"{key}_rpc_url", None)
            if not rpc_url:
                continue
            address = getattr(self, f"{key}_contract_address", None)
            enabled.append(chain.with_endpoint(rpc_url, address))
        return enabled


settings = Settings()

if not settings.get_chain_configs():
    logger.warning(
        "No chain RPC configured. Set at least one of: "
        "BASE_RPC_URL, LISK_RPC_URL, CELO_RPC_URL"
    )
