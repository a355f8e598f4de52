"""Application configuration using pydantic-settings.

All values are read once from the environment (or `.env`) when the settings
object is first created. List and dict settings accept JSON strings.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/swaprouter.db",
        description="Database connection URL (protocol fee configuration)",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    dry_run: bool = Field(
        default=True, description="Use simulated providers instead of live APIs"
    )

    # ======================
    # Admin
    # ======================
    admin_token: str = Field(default="", description="Admin API token for protected endpoints")

    # ======================
    # Token Registry
    # ======================
    token_registry_path: Optional[str] = Field(
        default=None, description="Path to the token registry JSON file"
    )

    # ======================
    # Providers
    # ======================
    uniswap_enabled: bool = Field(default=True, description="Enable the Uniswap provider")
    thirdweb_enabled: bool = Field(default=True, description="Enable the thirdweb bridge provider")
    multihop_enabled: bool = Field(default=True, description="Enable multi-hop route synthesis")

    uniswap_api_url: str = Field(
        default="https://trade-api.gateway.uniswap.org/v1",
        description="Uniswap Trading API base URL",
    )
    uniswap_api_key: str = Field(default="", description="Uniswap Trading API key")
    uniswap_max_retries: int = Field(default=3, description="Retries for 5xx/429 responses")

    thirdweb_api_url: str = Field(
        default="https://bridge.thirdweb.com/v1", description="thirdweb Bridge API base URL"
    )
    thirdweb_client_id: str = Field(default="", description="thirdweb client id")
    thirdweb_secret_key: str = Field(default="", description="thirdweb secret key")

    default_provider_timeout: float = Field(
        default=15.0, description="Per-attempt provider timeout in seconds (0 = none)"
    )
    provider_timeouts: dict[str, float] = Field(
        default_factory=dict,
        description='Per-provider timeout overrides, e.g. {"thirdweb": 25}',
    )

    # ======================
    # Routing
    # ======================
    default_slippage: float = Field(
        default=0.5, description="Default slippage tolerance in percent"
    )
    same_chain_priority: list[str] = Field(
        default_factory=lambda: [
            "uniswap-trading-api",
            "uniswap-smart-router",
            "uniswap",
            "thirdweb",
        ],
        description="Provider order for same-chain swaps",
    )
    cross_chain_priority: list[str] = Field(
        default_factory=lambda: ["thirdweb"],
        description="Provider order for cross-chain swaps",
    )
    provider_aliases: dict[str, list[str]] = Field(
        default_factory=lambda: {"uniswap": ["uniswap-smart-router", "uniswap-trading-api"]},
        description="Generic provider name -> ordered concrete provider names",
    )
    multihop_bridge_tokens: list[str] = Field(
        default_factory=lambda: ["native", "WETH", "USDC", "USDT"],
        description="Bridge token candidates for multi-hop routes, most liquid first",
    )
    quote_cache_ttl_seconds: int = Field(
        default=30, description="Quote cache TTL in seconds (0 = disabled)"
    )

    # ======================
    # Chain RPC Endpoints
    # ======================
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com", description="Ethereum RPC URL")
    optimism_rpc_url: str = Field(default="https://mainnet.optimism.io", description="Optimism RPC URL")
    bsc_rpc_url: str = Field(default="https://bsc-dataseed.binance.org", description="BSC RPC URL")
    polygon_rpc_url: str = Field(default="https://polygon-rpc.com", description="Polygon RPC URL")
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")
    arbitrum_rpc_url: str = Field(default="https://arb1.arbitrum.io/rpc", description="Arbitrum RPC URL")
    avax_rpc_url: str = Field(
        default="https://api.avax.network/ext/bc/C/rpc", description="Avalanche RPC URL"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_rpc_url(self, chain_id: int) -> str:
        """Get RPC URL for an EVM chain id."""
        rpc_map = {
            1: self.eth_rpc_url,
            10: self.optimism_rpc_url,
            56: self.bsc_rpc_url,
            137: self.polygon_rpc_url,
            8453: self.base_rpc_url,
            42161: self.arbitrum_rpc_url,
            43114: self.avax_rpc_url,
        }
        return rpc_map.get(chain_id, "")

    def get_provider_timeout(self, provider: str) -> Optional[float]:
        """Get the attempt timeout for a provider, None when disabled."""
        timeout = self.provider_timeouts.get(provider, self.default_provider_timeout)
        return timeout if timeout and timeout > 0 else None

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "token_registry_path": self.token_registry_path or "(default)",
            "providers": {
                "uniswap": {
                    "enabled": self.uniswap_enabled,
                    "api_url": self.uniswap_api_url,
                    "api_key": "***" if self.uniswap_api_key else "(not set)",
                },
                "thirdweb": {
                    "enabled": self.thirdweb_enabled,
                    "api_url": self.thirdweb_api_url,
                    "client_id": "***" if self.thirdweb_client_id else "(not set)",
                },
                "multihop": {"enabled": self.multihop_enabled},
            },
            "routing": {
                "same_chain_priority": self.same_chain_priority,
                "cross_chain_priority": self.cross_chain_priority,
                "bridge_tokens": self.multihop_bridge_tokens,
                "default_timeout": self.default_provider_timeout,
                "slippage": self.default_slippage,
                "quote_cache_ttl": self.quote_cache_ttl_seconds,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
