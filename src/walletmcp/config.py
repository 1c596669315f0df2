"""Application configuration using pydantic-settings.

Everything here is read once at startup and treated as read-only afterwards.
The signer key is optional; only swap simulation needs it.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UNISWAP_V3_SWAP_ROUTER = "0xE592427A0AEce92De3Edee1F18E0157C05861564"
UNISWAP_V3_QUOTER_V2 = "0x61fFE014bA17989E743c5F6cB21bF9697530B21e"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Node
    # ======================
    eth_rpc_url: str = Field(
        default="https://eth.llamarpc.com", description="Ethereum JSON-RPC URL"
    )
    default_chain_id: int = Field(default=1, description="EVM chain ID")
    rpc_timeout_seconds: float = Field(
        default=10.0, description="Timeout for a single node round-trip"
    )
    rpc_retry_backoff_seconds: float = Field(
        default=0.25, description="Pause before the single retry on transient failures"
    )

    # ======================
    # Signer
    # ======================
    private_key: Optional[SecretStr] = Field(
        default=None, description="Hex private key used only as swap sender/recipient"
    )

    # ======================
    # Pricing
    # ======================
    oracle_stale_after_seconds: int = Field(
        default=90000, description="Flag oracle rounds older than this (0 = disabled)"
    )
    token_defaults_path: Optional[str] = Field(
        default=None, description="Extra token defaults JSON layered over the bundled list"
    )

    # ======================
    # Uniswap V3
    # ======================
    uniswap_swap_router: str = Field(
        default=UNISWAP_V3_SWAP_ROUTER, description="SwapRouter address"
    )
    uniswap_quoter_v2: str = Field(
        default=UNISWAP_V3_QUOTER_V2, description="QuoterV2 address"
    )
    swap_deadline_seconds: int = Field(
        default=600, description="Deadline window added to the current time"
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="127.0.0.1", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    @field_validator("default_chain_id")
    @classmethod
    def _chain_id_nonzero(cls, value: int) -> int:
        return value or 1

    @property
    def has_signer(self) -> bool:
        """Check if a signer key is configured."""
        return bool(self.private_key and self.private_key.get_secret_value().strip())

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "chain_id": self.default_chain_id,
            "rpc": self._redact_url(self.eth_rpc_url),
            "rpc_timeout_seconds": self.rpc_timeout_seconds,
            "private_key": "***" if self.has_signer else "(not set)",
            "oracle_stale_after_seconds": self.oracle_stale_after_seconds,
            "uniswap": {
                "swap_router": self.uniswap_swap_router,
                "quoter_v2": self.uniswap_quoter_v2,
                "deadline_seconds": self.swap_deadline_seconds,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Hide credentials and API keys embedded in an RPC URL."""
        if "://" not in url:
            return url
        proto, rest = url.split("://", 1)
        if "@" in rest:
            rest = "***@" + rest.rsplit("@", 1)[1]
        host, sep, path = rest.partition("/")
        # Providers such as Infura and Alchemy put the key in the path
        if sep and path:
            return f"{proto}://{host}/***"
        return f"{proto}://{rest}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
