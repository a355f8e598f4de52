"""Static token registry.

Resolves a token reference (symbol, address or the native sentinel) into
the canonical identifier a given provider expects on a given chain. The
registry is loaded once from JSON and is read-only afterwards.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from swaprouter.errors import SwapError, SwapErrorCode

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_PLACEHOLDER_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

NATIVE_SENTINELS = frozenset(
    {
        "native",
        ZERO_ADDRESS,
        NATIVE_PLACEHOLDER_ADDRESS.lower(),
    }
)

REGISTRY_FILENAME = "token-registry.json"


def is_native_like(token: Optional[str]) -> bool:
    """Check if a token reference denotes the chain's native asset."""
    if not token:
        return False
    return token.strip().lower() in NATIVE_SENTINELS


class TokenRegistryError(Exception):
    """Raised when the registry file cannot be located or parsed."""


@dataclass(frozen=True)
class TokenMetadata:
    """Token metadata as listed in the registry."""

    address: str
    symbol: str
    name: str
    decimals: int
    providers: tuple[str, ...] = ()
    icon: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "providers": list(self.providers),
            "icon": self.icon,
        }


@dataclass(frozen=True)
class ResolvedToken:
    """A token reference resolved for one provider on one chain."""

    identifier: str
    is_native: bool
    metadata: TokenMetadata


@dataclass(frozen=True)
class WrappedNative:
    address: str
    symbol: str
    name: str
    decimals: int


@dataclass
class ChainEntry:
    """Registry entry for one chain."""

    chain_id: int
    name: str
    native_symbol: str
    native_name: str
    native_decimals: int
    native_identifiers: dict[str, str] = field(default_factory=dict)
    wrapped: Optional[dict] = None
    native_icon: Optional[str] = None
    explorer: Optional[str] = None


class TokenRegistry:
    """Read-only token registry keyed by chain id and provider."""

    def __init__(self, data: dict, source: Optional[str] = None):
        self.source = source
        self._chains: dict[int, ChainEntry] = {}
        # provider -> chain id -> lowercase address -> metadata
        self._provider_tokens: dict[str, dict[int, dict[str, TokenMetadata]]] = {}
        self._load(data)

    def _load(self, data: dict) -> None:
        chains = data.get("chains")
        if not isinstance(chains, dict):
            raise TokenRegistryError("Token registry must contain a 'chains' object")

        for chain_id_raw, chain_data in chains.items():
            try:
                chain_id = int(chain_id_raw)
            except (TypeError, ValueError):
                raise TokenRegistryError(f"Invalid chain id in token registry: {chain_id_raw!r}")

            native = chain_data.get("native") or {}
            self._chains[chain_id] = ChainEntry(
                chain_id=chain_id,
                name=chain_data.get("name", str(chain_id)),
                native_symbol=native.get("symbol", "ETH"),
                native_name=native.get("name", native.get("symbol", "ETH")),
                native_decimals=int(native.get("decimals", 18)),
                native_identifiers=dict(native.get("identifiers") or {}),
                wrapped=native.get("wrapped"),
                native_icon=native.get("icon"),
                explorer=chain_data.get("explorer"),
            )

            for token in chain_data.get("tokens") or []:
                metadata = TokenMetadata(
                    address=token["address"],
                    symbol=token["symbol"],
                    name=token.get("name", token["symbol"]),
                    decimals=int(token.get("decimals", 18)),
                    providers=tuple(token.get("providers") or ()),
                    icon=token.get("icon"),
                )
                for provider in metadata.providers:
                    chain_map = self._provider_tokens.setdefault(provider, {})
                    chain_map.setdefault(chain_id, {})[metadata.address.lower()] = metadata

        logger.info(
            f"Token registry loaded: {len(self._chains)} chain(s), "
            f"providers={sorted(self._provider_tokens)}"
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TokenRegistry":
        """Load a registry from a JSON file."""
        path = Path(path)
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise TokenRegistryError(f"Cannot read token registry {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise TokenRegistryError(f"Invalid JSON in token registry {path}: {e}") from e
        return cls(data, source=str(path))

    # ---- lookups ----

    def chain_ids(self) -> list[int]:
        return sorted(self._chains)

    def _chain(self, chain_id: int) -> ChainEntry:
        chain = self._chains.get(chain_id)
        if chain is None:
            raise SwapError(
                SwapErrorCode.UNSUPPORTED_CHAIN,
                f"Unsupported chain {chain_id}",
                {"chain_id": chain_id},
            )
        return chain

    def _native_address(self, chain: ChainEntry) -> str:
        if chain.wrapped and chain.wrapped.get("address"):
            return chain.wrapped["address"]
        ids = chain.native_identifiers
        return ids.get("uniswap") or ids.get("thirdweb") or ZERO_ADDRESS

    def get_native_metadata(self, chain_id: int) -> TokenMetadata:
        """Metadata for the chain's native asset."""
        chain = self._chain(chain_id)
        return TokenMetadata(
            address=self._native_address(chain),
            symbol=chain.native_symbol,
            name=chain.native_name,
            decimals=chain.native_decimals,
            providers=tuple(chain.native_identifiers),
            icon=chain.native_icon,
        )

    def get_wrapped_native(self, chain_id: int) -> WrappedNative:
        """The wrapped form of the chain's native asset."""
        chain = self._chain(chain_id)
        wrapped = chain.wrapped or {}
        return WrappedNative(
            address=self._native_address(chain),
            symbol=wrapped.get("symbol") or f"W{chain.native_symbol}",
            name=wrapped.get("name") or f"Wrapped {chain.native_name}",
            decimals=chain.native_decimals,
        )

    def list_supported_tokens(self, provider: str, chain_id: int) -> list[TokenMetadata]:
        return list(self._provider_tokens.get(provider, {}).get(chain_id, {}).values())

    def list_supported_chains_for_provider(self, provider: str) -> list[int]:
        return sorted(self._provider_tokens.get(provider, {}))

    def provider_has_chain(self, provider: str, chain_id: int) -> bool:
        return chain_id in self._provider_tokens.get(provider, {})

    def resolve(self, provider: str, chain_id: int, token: str) -> ResolvedToken:
        """Resolve a token reference for a provider on a chain.

        Raises:
            SwapError: UNSUPPORTED_CHAIN when the chain is unknown or the
                provider has no native identifier for it; UNSUPPORTED_TOKEN
                when the reference matches no registered token
        """
        chain = self._chain(chain_id)
        native_identifier = chain.native_identifiers.get(provider)
        if not native_identifier:
            raise SwapError(
                SwapErrorCode.UNSUPPORTED_CHAIN,
                f"Provider {provider} is not configured for chain {chain_id}",
                {"provider": provider, "chain_id": chain_id},
            )

        reference = token.strip()
        normalized = reference.lower()

        if is_native_like(reference) or normalized == native_identifier.lower():
            return ResolvedToken(
                identifier=self._native_address(chain),
                is_native=True,
                metadata=self.get_native_metadata(chain_id),
            )

        tokens = self._provider_tokens.get(provider, {}).get(chain_id, {})

        direct = tokens.get(normalized)
        if direct is not None:
            return ResolvedToken(identifier=direct.address, is_native=False, metadata=direct)

        for metadata in tokens.values():
            if metadata.symbol.lower() == normalized:
                return ResolvedToken(identifier=metadata.address, is_native=False, metadata=metadata)

        supported = ", ".join(t.symbol for t in tokens.values()) or "(none)"
        raise SwapError(
            SwapErrorCode.UNSUPPORTED_TOKEN,
            f"Token {token} is not supported for provider {provider} on chain {chain_id}. "
            f"Supported tokens: {supported}",
            {
                "token": token,
                "provider": provider,
                "chain_id": chain_id,
                "supported_tokens": [t.symbol for t in tokens.values()],
            },
        )

    def is_token_supported(self, provider: str, chain_id: int, token: str) -> bool:
        try:
            self.resolve(provider, chain_id, token)
        except SwapError:
            return False
        return True


def _candidate_paths(explicit: Optional[str] = None) -> list[Path]:
    candidates = []
    for value in (explicit, os.environ.get("TOKEN_REGISTRY_PATH")):
        if value:
            candidates.append(Path(value))

    cwd = Path.cwd()
    package_root = Path(__file__).resolve().parents[3]
    candidates.extend(
        [
            cwd / "shared" / REGISTRY_FILENAME,
            cwd.parent / "shared" / REGISTRY_FILENAME,
            package_root / "shared" / REGISTRY_FILENAME,
        ]
    )
    return candidates


def load_token_registry(path: Optional[str] = None) -> TokenRegistry:
    """Locate and load the token registry.

    Tries the explicit path, TOKEN_REGISTRY_PATH, then conventional
    relative locations of shared/token-registry.json.

    Raises:
        TokenRegistryError: if no registry file exists at any candidate path
    """
    candidates = _candidate_paths(path)
    for candidate in candidates:
        if candidate.is_file():
            logger.info(f"Loading token registry from {candidate}")
            return TokenRegistry.from_file(candidate)

    checked = ", ".join(str(c) for c in candidates)
    raise TokenRegistryError(f"Token registry file not found. Checked paths: {checked}")


@lru_cache
def get_token_registry() -> TokenRegistry:
    """Get the process-wide token registry."""
    from swaprouter.config import get_settings

    return load_token_registry(get_settings().token_registry_path)
