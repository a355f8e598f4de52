"""Normalization of provider and network failures into SwapError.

Checks run in a fixed order: connection-level failures, invalid EIP-1559
gas parameters, the vendor error code from the JSON body, then the HTTP
status of the response.
"""

import logging
from typing import Any, Optional

import httpx

from swaprouter.errors import SwapError, SwapErrorCode, provider_error

logger = logging.getLogger(__name__)

NETWORK_MESSAGE_MARKERS = (
    "timeout",
    "timed out",
    "network",
    "connection reset",
    "connection refused",
    "econnreset",
    "econnrefused",
    "etimedout",
    "enotfound",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
)

# Vendor error codes: vendor code -> (our code, user-presentable message)
THIRDWEB_ERROR_CODES: dict[str, tuple[SwapErrorCode, str]] = {
    "INVALID_INPUT": (
        SwapErrorCode.INVALID_REQUEST,
        "Invalid input parameters provided for the swap request.",
    ),
    "ROUTE_NOT_FOUND": (
        SwapErrorCode.NO_ROUTE_FOUND,
        "No route available for this token pair. Try a different amount or token.",
    ),
    "AMOUNT_TOO_LOW": (
        SwapErrorCode.AMOUNT_TOO_LOW,
        "The amount is too low to cover network fees. Please increase the swap amount.",
    ),
    "AMOUNT_TOO_HIGH": (
        SwapErrorCode.AMOUNT_TOO_HIGH,
        "The amount exceeds the maximum allowed for this route. Please reduce the swap amount.",
    ),
    "INTERNAL_SERVER_ERROR": (
        SwapErrorCode.PROVIDER_ERROR,
        "Bridge service is experiencing issues. Please try again later.",
    ),
    "UNKNOWN_ERROR": (
        SwapErrorCode.UNKNOWN_ERROR,
        "An unexpected error occurred. Please try again.",
    ),
}

UNISWAP_ERROR_CODES: dict[str, tuple[SwapErrorCode, str]] = {
    "VALIDATION_ERROR": (
        SwapErrorCode.INVALID_TOKEN_ADDRESS,
        "Invalid request parameters",
    ),
    "NO_ROUTE_FOUND": (
        SwapErrorCode.NO_ROUTE_FOUND,
        "No route found for this swap",
    ),
    "ResourceNotFound": (
        SwapErrorCode.NO_ROUTE_FOUND,
        "No route found for this swap",
    ),
    "RATE_LIMIT_EXCEEDED": (
        SwapErrorCode.RATE_LIMIT_EXCEEDED,
        "Rate limit exceeded. Please try again later.",
    ),
}

STATUS_CODES: dict[int, SwapErrorCode] = {
    400: SwapErrorCode.INVALID_REQUEST,
    401: SwapErrorCode.UNAUTHORIZED,
    403: SwapErrorCode.FORBIDDEN,
    404: SwapErrorCode.NO_ROUTE_FOUND,
    429: SwapErrorCode.RATE_LIMIT_EXCEEDED,
    500: SwapErrorCode.PROVIDER_ERROR,
    502: SwapErrorCode.SERVICE_UNAVAILABLE,
    503: SwapErrorCode.SERVICE_UNAVAILABLE,
    504: SwapErrorCode.SERVICE_UNAVAILABLE,
}

# Suggested back-off per code, in seconds
RETRY_DELAYS: dict[SwapErrorCode, float] = {
    SwapErrorCode.RATE_LIMIT_EXCEEDED: 60.0,
    SwapErrorCode.TIMEOUT: 5.0,
    SwapErrorCode.SERVICE_UNAVAILABLE: 30.0,
    SwapErrorCode.PROVIDER_ERROR: 10.0,
}


def is_network_error(exc: BaseException) -> bool:
    """Check for connection-level failures (timeouts, resets, DNS)."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in NETWORK_MESSAGE_MARKERS)


def is_invalid_gas_error(message: str) -> bool:
    """Check for EIP-1559 fee inconsistencies (maxFeePerGas < maxPriorityFeePerGas)."""
    lower = message.lower()
    return (
        "maxfeepergas cannot be less than maxpriorityfeepergas" in lower
        or "max fee per gas less than max priority fee" in lower
        or ("maxfeepergas" in lower and "maxpriorityfeepergas" in lower)
        or ("eip-1559" in lower and "fee" in lower)
    )


def parse_retry_after(response: Optional[httpx.Response]) -> Optional[float]:
    """Read a Retry-After header given in seconds."""
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def _response_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text[:500]} if response.text else {}
    return data if isinstance(data, dict) else {}


def _status_code_for(status: int) -> SwapErrorCode:
    if status in STATUS_CODES:
        return STATUS_CODES[status]
    if status >= 500:
        return SwapErrorCode.PROVIDER_ERROR
    return SwapErrorCode.UNKNOWN_ERROR


def map_provider_error(
    exc: BaseException,
    operation: str,
    provider: Optional[str] = None,
    vendor_codes: Optional[dict[str, tuple[SwapErrorCode, str]]] = None,
) -> SwapError:
    """Map any exception raised while talking to a provider into a SwapError.

    Args:
        exc: The caught exception (httpx errors, SwapError, anything else)
        operation: Operation label ("get_quote", "prepare_swap", ...)
        provider: Provider name, recorded in the error detail
        vendor_codes: Vendor error-code table for the provider's JSON errors

    Returns:
        A SwapError. SwapError inputs are returned unchanged.
    """
    if isinstance(exc, SwapError):
        return exc

    message = str(exc) or type(exc).__name__
    base_details: dict[str, Any] = {"operation": operation, "provider": provider}

    if is_network_error(exc) and not isinstance(exc, httpx.HTTPStatusError):
        return SwapError(
            SwapErrorCode.TIMEOUT,
            f"Network error during {operation}: {message}",
            {**base_details, "error_type": type(exc).__name__, "original_message": message},
        )

    if is_invalid_gas_error(message):
        return SwapError(
            SwapErrorCode.INVALID_GAS_PARAMS,
            "The transaction has invalid gas parameters. "
            "The provider returned inconsistent EIP-1559 fees.",
            {
                **base_details,
                "original_message": message,
                "hint": "maxFeePerGas must be >= maxPriorityFeePerGas",
            },
        )

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        status = response.status_code
        body = _response_body(response)
        vendor_code = body.get("code") or body.get("errorCode")
        vendor_message = body.get("message") or body.get("detail") or body.get("error")
        retry_after = parse_retry_after(response)

        if vendor_message and is_invalid_gas_error(str(vendor_message)):
            return map_provider_error(
                RuntimeError(str(vendor_message)), operation, provider, vendor_codes
            )

        details = {
            **base_details,
            "vendor_code": vendor_code,
            "correlation_id": body.get("correlationId") or body.get("requestId"),
            "http_status": status,
            "original_message": vendor_message,
        }
        if retry_after is not None:
            details["retry_after"] = retry_after

        logger.warning(
            f"{provider or 'provider'} {operation} failed: HTTP {status} "
            f"code={vendor_code} message={vendor_message}"
        )

        table = vendor_codes or {}
        if vendor_code and vendor_code in table:
            code, mapped_message = table[vendor_code]
            return SwapError(code, mapped_message, details)

        return SwapError(
            _status_code_for(status),
            vendor_message or f"HTTP {status} error during {operation}",
            details,
        )

    if provider:
        return provider_error(provider, exc, operation)
    return SwapError(
        SwapErrorCode.UNKNOWN_ERROR,
        f"Unknown error during {operation}: {message}",
        {**base_details, "original_error": {"type": type(exc).__name__, "message": message}},
    )


def map_status_error(exc: BaseException, tx_hash: str, provider: Optional[str] = None) -> SwapError:
    """Map a failure while checking transaction status."""
    if isinstance(exc, SwapError):
        return exc

    message = str(exc).lower()
    if "not found" in message or "not_found" in message:
        return SwapError(
            SwapErrorCode.NO_ROUTE_FOUND,
            "Transaction not found. It may still be processing.",
            {"tx_hash": tx_hash, "provider": provider},
        )
    if is_network_error(exc):
        return SwapError(
            SwapErrorCode.TIMEOUT,
            "Timeout while checking transaction status",
            {"tx_hash": tx_hash, "provider": provider},
        )
    return SwapError(
        SwapErrorCode.PROVIDER_ERROR,
        f"Failed to check transaction status: {exc}",
        {"tx_hash": tx_hash, "provider": provider, "original_message": str(exc)},
    )


def suggested_retry_delay(error: SwapError) -> float:
    """Back-off hint in seconds; 0 means the error should not be retried."""
    if error.code == SwapErrorCode.RATE_LIMIT_EXCEEDED and error.retry_after:
        return error.retry_after
    return RETRY_DELAYS.get(error.code, 0.0)
