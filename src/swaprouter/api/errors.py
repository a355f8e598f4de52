"""Conversion of swap errors into user-facing API responses."""

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.error_mapper import suggested_retry_delay
from swaprouter.web.contracts.errors import ErrorPayload, ErrorResponse

logger = logging.getLogger(__name__)

TRACE_HEADER = "x-trace-id"


@dataclass(frozen=True)
class ErrorMessage:
    category: str
    title: str
    description: str


ERROR_MESSAGES: dict[SwapErrorCode, ErrorMessage] = {
    SwapErrorCode.MISSING_REQUIRED_PARAMS: ErrorMessage(
        "user-action", "Missing information", "Fill in every required field to continue."
    ),
    SwapErrorCode.INVALID_REQUEST: ErrorMessage(
        "user-action",
        "Something doesn't look right",
        "Some of the values you entered are not in the expected format.",
    ),
    SwapErrorCode.INVALID_AMOUNT: ErrorMessage(
        "user-action", "Invalid amount", "The amount could not be processed. Adjust it and try again."
    ),
    SwapErrorCode.AMOUNT_TOO_LOW: ErrorMessage(
        "user-action",
        "Amount too low",
        "The amount is too low to cover network fees. Please increase the swap amount.",
    ),
    SwapErrorCode.AMOUNT_TOO_HIGH: ErrorMessage(
        "user-action",
        "Amount too high",
        "The amount exceeds the maximum allowed for this route. Reduce it or pick another pair.",
    ),
    SwapErrorCode.INVALID_TOKEN_ADDRESS: ErrorMessage(
        "user-action", "Unknown token", "We could not recognize this token. Check the address."
    ),
    SwapErrorCode.INVALID_CHAIN: ErrorMessage(
        "user-action", "Incompatible network", "Select a supported network to continue."
    ),
    SwapErrorCode.UNSUPPORTED_CHAIN: ErrorMessage(
        "user-action", "Network not supported", "This network is not supported yet."
    ),
    SwapErrorCode.UNSUPPORTED_TOKEN: ErrorMessage(
        "user-action", "Token not supported", "This token is not on our list yet. Try another one."
    ),
    SwapErrorCode.INSUFFICIENT_LIQUIDITY: ErrorMessage(
        "user-action",
        "Insufficient liquidity",
        "There is not enough liquidity for this swap right now. Try a smaller amount.",
    ),
    SwapErrorCode.NO_ROUTE_FOUND: ErrorMessage(
        "user-action",
        "Route unavailable",
        "We could not find a route between these assets. Try another pair or network.",
    ),
    SwapErrorCode.PRICE_IMPACT_TOO_HIGH: ErrorMessage(
        "user-action",
        "High price impact",
        "This swap moves the price too much. Adjust the amount or wait for better conditions.",
    ),
    SwapErrorCode.SLIPPAGE_TOO_HIGH: ErrorMessage(
        "user-action", "Slippage above limit", "Review your slippage preference and try again."
    ),
    SwapErrorCode.APPROVAL_REQUIRED: ErrorMessage(
        "user-action",
        "Approval required",
        "Authorize the token for spending before completing the swap.",
    ),
    SwapErrorCode.INSUFFICIENT_BALANCE: ErrorMessage(
        "user-action", "Insufficient balance", "Your balance does not cover this swap."
    ),
    SwapErrorCode.INVALID_GAS_PARAMS: ErrorMessage(
        "temporary",
        "Invalid gas parameters",
        "The provider returned inconsistent gas parameters. Try again or pick another route.",
    ),
    SwapErrorCode.RATE_LIMIT_EXCEEDED: ErrorMessage(
        "temporary", "Too many requests", "Wait a moment before trying again."
    ),
    SwapErrorCode.QUOTA_EXCEEDED: ErrorMessage(
        "temporary", "Limit reached", "You have reached the usage limit for now. Try again later."
    ),
    SwapErrorCode.TIMEOUT: ErrorMessage(
        "temporary", "Took too long", "The operation took too long to respond. Try again."
    ),
    SwapErrorCode.RPC_ERROR: ErrorMessage(
        "temporary", "Network instability", "The network is unstable right now. Try again."
    ),
    SwapErrorCode.PROVIDER_ERROR: ErrorMessage(
        "temporary",
        "Provider instability",
        "Our liquidity provider did not respond as expected. This usually clears up quickly.",
    ),
    SwapErrorCode.CACHE_ERROR: ErrorMessage(
        "temporary", "Temporary glitch", "The request could not be completed. Try once more."
    ),
    SwapErrorCode.DATABASE_ERROR: ErrorMessage(
        "temporary", "Temporary instability", "We are having internal issues. Try again shortly."
    ),
    SwapErrorCode.UNAUTHORIZED: ErrorMessage(
        "blocked", "Session expired", "Sign in again to continue."
    ),
    SwapErrorCode.FORBIDDEN: ErrorMessage(
        "blocked", "Restricted access", "This action is not available for your account."
    ),
    SwapErrorCode.SERVICE_UNAVAILABLE: ErrorMessage(
        "blocked",
        "Service temporarily unavailable",
        "We are under maintenance or facing instability. Try again soon.",
    ),
    SwapErrorCode.MAINTENANCE: ErrorMessage(
        "blocked", "Under maintenance", "We'll be back shortly."
    ),
}

FALLBACK_MESSAGE = ErrorMessage(
    "unknown",
    "We're experiencing a temporary issue",
    "Something unexpected happened. Try again in a few moments.",
)

NON_RETRYABLE_CODES = frozenset({SwapErrorCode.UNAUTHORIZED, SwapErrorCode.FORBIDDEN})


def retry_after_seconds(error: SwapError) -> Optional[int]:
    hint = error.retry_after
    if hint is None and error.is_retryable():
        hint = suggested_retry_delay(error) or None
    return math.ceil(hint) if hint is not None else None


def build_error_response(error: SwapError, trace_id: str) -> ErrorResponse:
    """User-facing payload for a swap error. Details stay in the logs."""
    message = ERROR_MESSAGES.get(error.code)
    if message is None:
        category = "temporary" if error.is_retryable() else "unknown"
        if category == "unknown" and error.is_client_error():
            category = "user-action"
        message = ErrorMessage(category, FALLBACK_MESSAGE.title, FALLBACK_MESSAGE.description)

    return ErrorResponse(
        error=ErrorPayload(
            code=error.code.value,
            category=message.category,
            title=message.title,
            description=message.description,
            can_retry=error.code not in NON_RETRYABLE_CODES,
            retry_after_seconds=retry_after_seconds(error),
            trace_id=trace_id,
        )
    )


def _trace_id(request: Request) -> str:
    return request.headers.get(TRACE_HEADER) or uuid.uuid4().hex


def _json_response(error: SwapError, trace_id: str) -> JSONResponse:
    payload = build_error_response(error, trace_id)
    return JSONResponse(
        status_code=error.http_status,
        content=payload.model_dump(),
        headers={TRACE_HEADER: trace_id},
    )


async def swap_error_handler(request: Request, exc: SwapError) -> JSONResponse:
    trace_id = _trace_id(request)
    log = logger.warning if exc.is_client_error() else logger.error
    log(
        f"[{trace_id}] {request.method} {request.url.path} -> {exc.code.value} "
        f"({exc.http_status}): {exc.message} details={exc.details}"
    )
    return _json_response(exc, trace_id)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    trace_id = _trace_id(request)
    logger.exception(f"[{trace_id}] Unhandled error on {request.method} {request.url.path}")
    error = SwapError(SwapErrorCode.UNKNOWN_ERROR, str(exc) or "Unknown error")
    return _json_response(error, trace_id)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SwapError, swap_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
