"""Swap quote, prepare and status contracts.

Integer amounts in base units are carried as decimal strings so that
values beyond 2^53 survive JSON clients.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class SwapQuoteRequest(BaseModel):
    """Request for a best-provider swap quote."""

    from_chain_id: int = Field(..., description="Origin EVM chain ID")
    to_chain_id: int = Field(..., description="Destination EVM chain ID")
    from_token: str = Field(..., description="Input token: symbol, address or 'native'")
    to_token: str = Field(..., description="Output token: symbol, address or 'native'")
    amount: str = Field(..., description="Input amount in base units (decimal string)")
    sender: str = Field(..., description="Sender wallet address")
    receiver: Optional[str] = Field(None, description="Receiver address (defaults to sender)")


class SwapPrepareRequest(SwapQuoteRequest):
    """Request to prepare unsigned swap transactions."""

    provider: Optional[str] = Field(
        None, description="Preferred provider name; auto-selects when omitted"
    )


class SwapQuoteResponse(BaseModel):
    """Best-provider quote with the protocol fee."""

    success: bool = Field(default=True)
    provider: str = Field(..., description="Provider that produced the quote")
    from_chain_id: int
    to_chain_id: int
    from_token: str
    to_token: str
    amount: str = Field(..., description="Input amount in base units")
    estimated_receive_amount: str = Field(..., description="Expected output in base units")
    bridge_fee: str = Field(..., description="Bridge fee in base units")
    gas_fee: str = Field(..., description="Estimated gas fee in wei")
    total_fees: str = Field(..., description="Bridge fee plus gas fee")
    exchange_rate: float = Field(..., description="Output per input")
    estimated_duration: int = Field(..., description="Estimated completion time in seconds")
    expires_at: Optional[float] = Field(None, description="Quote expiry (epoch seconds)")
    protocol_fee: str = Field(..., description="Protocol fee in base units of the input token")
    protocol_fee_percent: float = Field(..., description="Protocol fee percentage")


class UnsignedTransaction(BaseModel):
    """Unsigned transaction for client-side signing."""

    chain_id: int = Field(..., description="EVM chain ID")
    to: str = Field(..., description="Target contract address")
    data: str = Field(..., description="Calldata (hex)")
    value: str = Field(default="0", description="Native value in wei (decimal string)")
    gas_limit: Optional[str] = Field(None, description="Gas limit")
    max_fee_per_gas: Optional[str] = Field(None, description="EIP-1559 max fee per gas")
    max_priority_fee_per_gas: Optional[str] = Field(None, description="EIP-1559 priority fee")
    action: Optional[str] = Field(None, description="approval, swap, bridge, ...")
    description: Optional[str] = Field(None, description="Human-readable description")


class SwapPrepareResponse(BaseModel):
    """Prepared transaction bundle, to be signed and sent in order."""

    success: bool = Field(default=True)
    provider: str = Field(..., description="Provider that prepared the bundle")
    transactions: list[UnsignedTransaction] = Field(default_factory=list)
    estimated_duration: int = Field(..., description="Estimated completion time in seconds")
    expires_at: Optional[float] = Field(None, description="Bundle expiry (epoch seconds)")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider metadata")


class TransactionStatusResponse(BaseModel):
    """Status of a submitted swap transaction."""

    tx_hash: str
    chain_id: int
    provider: str
    status: str = Field(..., description="PENDING, COMPLETED or FAILED")


class ProvidersResponse(BaseModel):
    """Registered provider names."""

    providers: list[str]
    dry_run: bool = Field(default=False, description="Whether providers are simulated")
