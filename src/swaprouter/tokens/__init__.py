"""Token identity resolution across providers and chains."""

from swaprouter.tokens.registry import (
    NATIVE_PLACEHOLDER_ADDRESS,
    ZERO_ADDRESS,
    ResolvedToken,
    TokenMetadata,
    TokenRegistry,
    TokenRegistryError,
    get_token_registry,
    is_native_like,
    load_token_registry,
)

__all__ = [
    "NATIVE_PLACEHOLDER_ADDRESS",
    "ZERO_ADDRESS",
    "ResolvedToken",
    "TokenMetadata",
    "TokenRegistry",
    "TokenRegistryError",
    "get_token_registry",
    "is_native_like",
    "load_token_registry",
]
