"""Protocol fee calculation."""

import logging
from typing import Optional

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.fees.models import (
    FEE_PROVIDERS,
    ProtocolFeeConfig,
    default_fee_percent,
    percentage_fee,
)
from swaprouter.fees.repository import ProtocolFeeRepository
from swaprouter.routing.aliases import canonical_provider_name

logger = logging.getLogger(__name__)

# Upper bound accepted from the admin endpoint
MAX_ADMIN_FEE_PERCENT = 10.0


class ProtocolFeeService:
    """Computes the protocol's cut of a swap amount.

    Provider names are collapsed to their canonical name before lookup, so
    "uniswap-trading-api" and "uniswap" share one configuration. Without an
    active configuration the default percentage applies. The repository is
    read on every call.
    """

    def __init__(
        self,
        repository: ProtocolFeeRepository,
        aliases: Optional[dict[str, list[str]]] = None,
    ):
        self.repository = repository
        self.aliases = aliases

    def canonical_provider_name(self, provider: str) -> str:
        return canonical_provider_name(provider, self.aliases)

    async def get_fee_config(self, provider: str) -> Optional[ProtocolFeeConfig]:
        """Stored configuration for a provider, or None (also on storage errors)."""
        canonical = self.canonical_provider_name(provider)
        try:
            return await self.repository.get_by_provider(canonical)
        except Exception as e:
            logger.error(f"Error getting fee config for {canonical}: {e}")
            return None

    async def calculate_fee(self, provider: str, amount: int) -> int:
        """Protocol fee in base units, within [0, amount]."""
        canonical = self.canonical_provider_name(provider)
        config = await self.get_fee_config(canonical)

        if config is None or not config.is_active:
            logger.debug(f"No active fee config for {canonical}, using default")
            return percentage_fee(amount, default_fee_percent(canonical))

        fee = config.calculate_fee(amount)
        logger.debug(f"Calculated fee for {canonical}: {fee} ({config.tax_in_percent}%)")
        return fee

    async def get_fee_percentage(self, provider: str) -> float:
        """Effective fee percentage for display."""
        canonical = self.canonical_provider_name(provider)
        config = await self.get_fee_config(canonical)
        if config is None or not config.is_active:
            return default_fee_percent(canonical)
        return config.tax_in_percent

    async def list_fee_configs(self) -> list[ProtocolFeeConfig]:
        """Active configurations plus defaults for unconfigured providers."""
        configs = await self.repository.get_all_active()
        configured = {c.provider for c in configs}
        configs.extend(ProtocolFeeConfig.default(p) for p in FEE_PROVIDERS if p not in configured)
        return configs

    async def set_fee_config(
        self,
        provider: str,
        tax_in_percent: float,
        tax_in_bips: Optional[int] = None,
        tax_in_eth: Optional[int] = None,
        is_active: bool = True,
    ) -> tuple[ProtocolFeeConfig, bool]:
        """Create or update a provider's fee. Returns (config, created).

        Raises:
            SwapError: INVALID_REQUEST for an unknown provider or a
                percentage outside 0..MAX_ADMIN_FEE_PERCENT
        """
        if not 0 <= tax_in_percent <= MAX_ADMIN_FEE_PERCENT:
            raise SwapError(
                SwapErrorCode.INVALID_REQUEST,
                f"Tax percentage must be between 0 and {MAX_ADMIN_FEE_PERCENT:g}. "
                f"Received: {tax_in_percent}",
                {"tax_in_percent": tax_in_percent},
            )

        config = ProtocolFeeConfig(
            provider=self.canonical_provider_name(provider),
            tax_in_percent=tax_in_percent,
            is_active=is_active,
            tax_in_bips=tax_in_bips,
            tax_in_eth=tax_in_eth,
        )
        created = await self.repository.save(config)

        logger.info(
            f"Protocol fee for {config.provider} {'created' if created else 'updated'} "
            f"to {config.tax_in_percent}% (active={config.is_active})"
        )
        return config, created
