"""Protocol fee contracts."""

from typing import Optional

from pydantic import BaseModel, Field


class ProtocolFeeInfo(BaseModel):
    """Effective fee configuration for a provider."""

    provider: str = Field(..., description="Canonical provider name")
    tax_in_percent: float
    tax_in_bips: Optional[int] = None
    tax_in_eth: Optional[str] = Field(None, description="Fixed fee in wei")
    is_active: bool = True
    updated_at: Optional[str] = None


class ProtocolFeeResponse(BaseModel):
    """Fee percentage and, when an amount is given, the computed fee."""

    provider: str = Field(..., description="Canonical provider name")
    tax_in_percent: float
    amount: Optional[str] = Field(None, description="Amount in base units")
    fee: Optional[str] = Field(None, description="Protocol fee in base units")


class ProtocolFeeListResponse(BaseModel):
    fees: list[ProtocolFeeInfo]


class SetProtocolFeeRequest(BaseModel):
    """Admin request to configure a provider's fee."""

    tax_in_percent: float = Field(..., description="Fee percentage (0-10)")
    tax_in_bips: Optional[int] = Field(None, ge=0, description="Fee in basis points")
    tax_in_eth: Optional[str] = Field(None, description="Fixed fee in wei (decimal string)")
    is_active: bool = Field(default=True)


class SetProtocolFeeResponse(BaseModel):
    success: bool
    provider: str
    tax_in_percent: float
    is_active: bool
    message: str
