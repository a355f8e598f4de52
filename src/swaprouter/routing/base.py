"""Abstract provider interface and swap domain types."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from swaprouter.errors import SwapError, SwapErrorCode, missing_params_error

logger = logging.getLogger(__name__)


def parse_int(value: Any) -> Optional[int]:
    """Parse a decimal or 0x-prefixed integer from an API payload, None when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class RouteParams:
    """Route description used for capability checks (no amounts)."""

    from_chain_id: int
    to_chain_id: int
    from_token: str
    to_token: str

    @property
    def is_same_chain(self) -> bool:
        return self.from_chain_id == self.to_chain_id


@dataclass(frozen=True)
class SwapRequest:
    """A requested swap, amounts in base units of the input token."""

    from_chain_id: int
    to_chain_id: int
    from_token: str
    to_token: str
    amount: int
    sender: str
    receiver: str

    def __post_init__(self):
        missing = [
            name
            for name in ("from_token", "to_token", "sender", "receiver")
            if not getattr(self, name)
        ]
        if missing:
            raise missing_params_error(missing)
        if self.from_chain_id <= 0 or self.to_chain_id <= 0:
            raise SwapError(
                SwapErrorCode.INVALID_CHAIN,
                f"Invalid chain ids: {self.from_chain_id} -> {self.to_chain_id}",
                {"from_chain_id": self.from_chain_id, "to_chain_id": self.to_chain_id},
            )
        if self.amount <= 0:
            raise SwapError(
                SwapErrorCode.INVALID_AMOUNT,
                "Swap amount must be greater than zero",
                {"amount": str(self.amount)},
            )

    @property
    def is_same_chain(self) -> bool:
        return self.from_chain_id == self.to_chain_id

    def route_params(self) -> RouteParams:
        return RouteParams(
            from_chain_id=self.from_chain_id,
            to_chain_id=self.to_chain_id,
            from_token=self.from_token,
            to_token=self.to_token,
        )

    def with_amount(self, amount: int) -> "SwapRequest":
        """Copy of this request with a different input amount."""
        return replace(self, amount=amount)

    def to_log_string(self) -> str:
        return (
            f"{self.amount} {self.from_token}@{self.from_chain_id} -> "
            f"{self.to_token}@{self.to_chain_id}"
        )


@dataclass(frozen=True)
class SwapQuote:
    """A quote returned by a provider. Amounts are integers in base units."""

    estimated_receive_amount: int
    bridge_fee: int
    gas_fee: int
    exchange_rate: float
    estimated_duration: int  # seconds
    expires_at: Optional[float] = None  # epoch seconds

    @property
    def total_fees(self) -> int:
        return self.bridge_fee + self.gas_fee

    @property
    def is_expired(self) -> bool:
        """Check if the quote has passed its provider-declared expiry."""
        return self.expires_at is not None and time.time() > self.expires_at


@dataclass
class Transaction:
    """An unsigned transaction to be signed and submitted by the user."""

    chain_id: int
    to: str
    data: str
    value: str = "0"  # decimal string, base units of the native coin
    gas_limit: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    action: Optional[str] = None  # "approval", "swap", "bridge", ...
    description: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "chain_id": self.chain_id,
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "gas_limit": str(self.gas_limit) if self.gas_limit is not None else None,
            "max_fee_per_gas": (
                str(self.max_fee_per_gas) if self.max_fee_per_gas is not None else None
            ),
            "max_priority_fee_per_gas": (
                str(self.max_priority_fee_per_gas)
                if self.max_priority_fee_per_gas is not None
                else None
            ),
            "action": self.action,
            "description": self.description,
        }


@dataclass
class PreparedSwap:
    """Ordered bundle of unsigned transactions for a swap."""

    transactions: list[Transaction]
    provider: str
    estimated_duration: int
    expires_at: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)


class TransactionStatus(str, Enum):
    """Status of a submitted swap transaction."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass
class ProviderSelectionResult:
    """A provider together with the quote it produced."""

    provider: "SwapProvider"
    quote: SwapQuote


class SwapProvider(ABC):
    """Abstract base class for swap providers.

    Implementations must report unsupported routes from supports_route()
    with False rather than raising, and must surface every failure of
    get_quote()/prepare_swap() as a SwapError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable provider identifier (e.g. "uniswap-trading-api")."""
        pass

    @abstractmethod
    async def supports_route(self, params: RouteParams) -> bool:
        """Check whether this provider can handle the route."""
        pass

    @abstractmethod
    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        """
        Get a swap quote.

        Raises:
            SwapError: normalized provider or network failure
        """
        pass

    @abstractmethod
    async def prepare_swap(self, request: SwapRequest) -> PreparedSwap:
        """
        Build the unsigned transaction bundle for a swap.

        A fresh quote is always fetched. An on-chain approval that can be
        prepared comes first in the bundle with action "approval".

        Raises:
            SwapError: APPROVAL_REQUIRED when the user must sign an
                off-chain approval first, otherwise a normalized failure
        """
        pass

    @abstractmethod
    async def monitor_transaction(self, tx_hash: str, chain_id: int) -> TransactionStatus:
        """Get the status of a previously submitted transaction."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
