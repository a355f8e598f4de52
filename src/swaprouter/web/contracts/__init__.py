"""Request and response contracts for the HTTP API.

All contracts are non-custodial: transactions are returned unsigned.
"""

from swaprouter.web.contracts.errors import ErrorPayload, ErrorResponse
from swaprouter.web.contracts.fees import (
    ProtocolFeeInfo,
    ProtocolFeeListResponse,
    ProtocolFeeResponse,
    SetProtocolFeeRequest,
    SetProtocolFeeResponse,
)
from swaprouter.web.contracts.swaps import (
    ProvidersResponse,
    SwapPrepareRequest,
    SwapPrepareResponse,
    SwapQuoteRequest,
    SwapQuoteResponse,
    TransactionStatusResponse,
    UnsignedTransaction,
)

__all__ = [
    # Swap contracts
    "SwapQuoteRequest",
    "SwapQuoteResponse",
    "SwapPrepareRequest",
    "SwapPrepareResponse",
    "UnsignedTransaction",
    "TransactionStatusResponse",
    "ProvidersResponse",
    # Fee contracts
    "ProtocolFeeInfo",
    "ProtocolFeeListResponse",
    "ProtocolFeeResponse",
    "SetProtocolFeeRequest",
    "SetProtocolFeeResponse",
    # Errors
    "ErrorPayload",
    "ErrorResponse",
]
