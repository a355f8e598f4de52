"""Protocol fee configuration."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from swaprouter.errors import SwapError, SwapErrorCode

# Canonical providers a fee can be configured for
FEE_PROVIDERS = ("thirdweb", "uniswap")

DEFAULT_FEE_PERCENT = 0.5

# Default fee percentage per canonical provider
DEFAULT_FEE_CONFIGS: dict[str, float] = {
    "thirdweb": 0.5,
    "uniswap": 0.5,
}

# Percentage is scaled by 10^4 so that amount * scaled / 10^6 == amount * pct / 100
PERCENT_SCALE = 10_000
FEE_DIVISOR = 1_000_000


def percentage_fee(amount: int, percent: float) -> int:
    """Fee for a percentage of an integer amount, clamped to [0, amount]."""
    if amount <= 0:
        return 0
    scaled = round(percent * PERCENT_SCALE)
    fee = amount * scaled // FEE_DIVISOR
    return min(max(fee, 0), amount)


def default_fee_percent(provider: str) -> float:
    return DEFAULT_FEE_CONFIGS.get(provider, DEFAULT_FEE_PERCENT)


@dataclass
class ProtocolFeeConfig:
    """Fee configuration for one canonical provider."""

    provider: str
    tax_in_percent: float
    is_active: bool = True
    tax_in_bips: Optional[int] = None
    tax_in_eth: Optional[int] = None  # fixed fee in wei
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.provider not in FEE_PROVIDERS:
            raise SwapError(
                SwapErrorCode.INVALID_REQUEST,
                f"Invalid provider: {self.provider}. Must be one of: {', '.join(FEE_PROVIDERS)}",
                {"provider": self.provider},
            )
        if not 0 <= self.tax_in_percent <= 100:
            raise SwapError(
                SwapErrorCode.INVALID_REQUEST,
                f"Tax percentage must be between 0 and 100. Received: {self.tax_in_percent}",
                {"tax_in_percent": self.tax_in_percent},
            )

    def calculate_fee(self, amount: int) -> int:
        """Protocol fee for an amount in base units. Inactive configs charge nothing."""
        if not self.is_active:
            return 0
        return percentage_fee(amount, self.tax_in_percent)

    @classmethod
    def default(cls, provider: str) -> "ProtocolFeeConfig":
        return cls(provider=provider, tax_in_percent=default_fee_percent(provider))

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "tax_in_percent": self.tax_in_percent,
            "tax_in_bips": self.tax_in_bips,
            "tax_in_eth": str(self.tax_in_eth) if self.tax_in_eth is not None else None,
            "is_active": self.is_active,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
