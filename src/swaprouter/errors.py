"""Structured swap errors.

Every failure that crosses a provider boundary is expressed as a SwapError
carrying a closed error code. Severity (HTTP-like status), category and
retryability are derived from the code.
"""

import time
from enum import Enum
from typing import Any, Optional


class SwapErrorCode(str, Enum):
    """Closed set of swap error codes."""

    # Validation (400)
    MISSING_REQUIRED_PARAMS = "MISSING_REQUIRED_PARAMS"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    AMOUNT_TOO_LOW = "AMOUNT_TOO_LOW"
    AMOUNT_TOO_HIGH = "AMOUNT_TOO_HIGH"
    INVALID_TOKEN_ADDRESS = "INVALID_TOKEN_ADDRESS"
    INVALID_CHAIN = "INVALID_CHAIN"
    INVALID_SLIPPAGE = "INVALID_SLIPPAGE"
    INVALID_DEADLINE = "INVALID_DEADLINE"

    # Routing (404)
    NO_ROUTE_FOUND = "NO_ROUTE_FOUND"
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"
    UNSUPPORTED_CHAIN = "UNSUPPORTED_CHAIN"
    UNSUPPORTED_TOKEN = "UNSUPPORTED_TOKEN"

    # Execution (422)
    PRICE_IMPACT_TOO_HIGH = "PRICE_IMPACT_TOO_HIGH"
    SLIPPAGE_TOO_HIGH = "SLIPPAGE_TOO_HIGH"
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

    # Infrastructure (503)
    PROVIDER_ERROR = "PROVIDER_ERROR"
    RPC_ERROR = "RPC_ERROR"
    TIMEOUT = "TIMEOUT"
    CACHE_ERROR = "CACHE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    INVALID_GAS_PARAMS = "INVALID_GAS_PARAMS"

    # Access (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Availability (503)
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    MAINTENANCE = "MAINTENANCE"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ErrorCategory(str, Enum):
    """Error category derived from the code."""

    VALIDATION = "validation"
    ROUTING = "routing"
    EXECUTION = "execution"
    RATE_LIMIT = "rate_limit"
    INFRASTRUCTURE = "infrastructure"
    ACCESS = "access"
    AVAILABILITY = "availability"
    UNKNOWN = "unknown"


_CATEGORY_CODES: dict[ErrorCategory, tuple[SwapErrorCode, ...]] = {
    ErrorCategory.VALIDATION: (
        SwapErrorCode.MISSING_REQUIRED_PARAMS,
        SwapErrorCode.INVALID_REQUEST,
        SwapErrorCode.INVALID_AMOUNT,
        SwapErrorCode.AMOUNT_TOO_LOW,
        SwapErrorCode.AMOUNT_TOO_HIGH,
        SwapErrorCode.INVALID_TOKEN_ADDRESS,
        SwapErrorCode.INVALID_CHAIN,
        SwapErrorCode.INVALID_SLIPPAGE,
        SwapErrorCode.INVALID_DEADLINE,
    ),
    ErrorCategory.ROUTING: (
        SwapErrorCode.NO_ROUTE_FOUND,
        SwapErrorCode.INSUFFICIENT_LIQUIDITY,
        SwapErrorCode.UNSUPPORTED_CHAIN,
        SwapErrorCode.UNSUPPORTED_TOKEN,
    ),
    ErrorCategory.EXECUTION: (
        SwapErrorCode.PRICE_IMPACT_TOO_HIGH,
        SwapErrorCode.SLIPPAGE_TOO_HIGH,
        SwapErrorCode.APPROVAL_REQUIRED,
        SwapErrorCode.INSUFFICIENT_BALANCE,
    ),
    ErrorCategory.RATE_LIMIT: (
        SwapErrorCode.RATE_LIMIT_EXCEEDED,
        SwapErrorCode.QUOTA_EXCEEDED,
    ),
    ErrorCategory.INFRASTRUCTURE: (
        SwapErrorCode.PROVIDER_ERROR,
        SwapErrorCode.RPC_ERROR,
        SwapErrorCode.TIMEOUT,
        SwapErrorCode.CACHE_ERROR,
        SwapErrorCode.DATABASE_ERROR,
        SwapErrorCode.INVALID_GAS_PARAMS,
    ),
    ErrorCategory.ACCESS: (
        SwapErrorCode.UNAUTHORIZED,
        SwapErrorCode.FORBIDDEN,
    ),
    ErrorCategory.AVAILABILITY: (
        SwapErrorCode.SERVICE_UNAVAILABLE,
        SwapErrorCode.MAINTENANCE,
    ),
}

CODE_CATEGORIES: dict[SwapErrorCode, ErrorCategory] = {
    code: category for category, codes in _CATEGORY_CODES.items() for code in codes
}

CATEGORY_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.ROUTING: 404,
    ErrorCategory.EXECUTION: 422,
    ErrorCategory.RATE_LIMIT: 429,
    ErrorCategory.INFRASTRUCTURE: 503,
    ErrorCategory.AVAILABILITY: 503,
    ErrorCategory.UNKNOWN: 500,
}

RETRYABLE_CODES = frozenset(
    {
        SwapErrorCode.TIMEOUT,
        SwapErrorCode.RPC_ERROR,
        SwapErrorCode.PROVIDER_ERROR,
        SwapErrorCode.RATE_LIMIT_EXCEEDED,
    }
)


class SwapError(Exception):
    """Structured error for swap operations.

    Attributes:
        code: Closed error code for programmatic handling
        message: Human-readable message
        details: Structured context (provider, chain ids, attempts, ...)
        http_status: Severity as an HTTP status code
    """

    def __init__(
        self,
        code: SwapErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = SwapErrorCode(code)
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.timestamp = time.time()
        self.http_status = http_status or self.default_http_status(self.code)

    def __repr__(self) -> str:
        return f"SwapError({self.code.value}, {self.message!r})"

    @staticmethod
    def default_http_status(code: SwapErrorCode) -> int:
        """Severity class for an error code."""
        if code == SwapErrorCode.UNAUTHORIZED:
            return 401
        if code == SwapErrorCode.FORBIDDEN:
            return 403
        category = CODE_CATEGORIES.get(code, ErrorCategory.UNKNOWN)
        return CATEGORY_STATUS[category]

    @property
    def category(self) -> ErrorCategory:
        return CODE_CATEGORIES.get(self.code, ErrorCategory.UNKNOWN)

    @property
    def retry_after(self) -> Optional[float]:
        """Retry-after hint in seconds, when the failure carried one."""
        for key in ("retry_after", "retry_after_seconds"):
            value = self.details.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
        return None

    def is_retryable(self) -> bool:
        """Whether the same request may succeed if retried later."""
        return self.code in RETRYABLE_CODES

    def is_client_error(self) -> bool:
        return 400 <= self.http_status < 500

    def is_server_error(self) -> bool:
        return self.http_status >= 500

    def to_dict(self) -> dict:
        """Convert to dictionary for logs and API responses."""
        return {
            "code": self.code.value,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.is_retryable(),
            "retry_after": self.retry_after,
            "http_status": self.http_status,
            "timestamp": self.timestamp,
        }


# Helper constructors for common errors


def no_route_error(
    from_token: str,
    to_token: str,
    from_chain_id: int,
    to_chain_id: Optional[int] = None,
    **details: Any,
) -> SwapError:
    if to_chain_id is None or to_chain_id == from_chain_id:
        to_chain_id = from_chain_id
        where = f"on chain {from_chain_id}"
    else:
        where = f"from chain {from_chain_id} to chain {to_chain_id}"
    return SwapError(
        SwapErrorCode.NO_ROUTE_FOUND,
        f"No route found for swap from {from_token} to {to_token} {where}",
        {
            "from_token": from_token,
            "to_token": to_token,
            "from_chain_id": from_chain_id,
            "to_chain_id": to_chain_id,
            **details,
        },
    )


def insufficient_liquidity_error(from_token: str, to_token: str, **details: Any) -> SwapError:
    return SwapError(
        SwapErrorCode.INSUFFICIENT_LIQUIDITY,
        f"Insufficient liquidity for {from_token} -> {to_token}",
        {"from_token": from_token, "to_token": to_token, **details},
    )


def timeout_error(operation: str, timeout_seconds: float, provider: Optional[str] = None) -> SwapError:
    return SwapError(
        SwapErrorCode.TIMEOUT,
        f"Operation {operation} timed out after {timeout_seconds:g}s",
        {"operation": operation, "timeout_seconds": timeout_seconds, "provider": provider},
    )


def provider_error(provider: str, original: BaseException, operation: str = "") -> SwapError:
    message = str(original) or type(original).__name__
    during = f" during {operation}" if operation else ""
    return SwapError(
        SwapErrorCode.PROVIDER_ERROR,
        f"Provider {provider} error{during}: {message}",
        {
            "provider": provider,
            "operation": operation,
            "original_error": {"type": type(original).__name__, "message": message},
        },
    )


def missing_params_error(missing: list[str]) -> SwapError:
    return SwapError(
        SwapErrorCode.MISSING_REQUIRED_PARAMS,
        f"Missing required parameters: {', '.join(missing)}",
        {"required_params": missing},
    )


def unauthorized_error(reason: Optional[str] = None) -> SwapError:
    return SwapError(
        SwapErrorCode.UNAUTHORIZED,
        reason or "Authentication is required for this action",
    )
