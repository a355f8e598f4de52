"""Provider name aliases.

A generic provider name (e.g. "uniswap") stands for an ordered list of
concrete provider names. This module is the only place that lookup lives.
"""

from typing import Iterable, Optional


def _alias_table(aliases: Optional[dict[str, list[str]]]) -> dict[str, list[str]]:
    if aliases is not None:
        return aliases
    from swaprouter.config import get_settings

    return get_settings().provider_aliases


def resolve_provider_candidates(
    name: str,
    available: Iterable[str],
    aliases: Optional[dict[str, list[str]]] = None,
) -> list[str]:
    """Expand a provider name into the concrete registered names to try, in order.

    The name itself comes first when it is registered, followed by its
    alias expansion. Unregistered names are dropped.
    """
    registered = list(available)
    wanted = name.strip().lower()
    table = _alias_table(aliases)

    candidates = []
    for candidate in [wanted, *table.get(wanted, [])]:
        if candidate in registered and candidate not in candidates:
            candidates.append(candidate)
    return candidates


def canonical_provider_name(
    name: str,
    aliases: Optional[dict[str, list[str]]] = None,
) -> str:
    """Map a concrete provider name to its generic name ("uniswap-trading-api" -> "uniswap")."""
    normalized = name.strip().lower()
    table = _alias_table(aliases)

    if normalized in table:
        return normalized
    for canonical, members in table.items():
        if normalized in members or normalized.startswith(f"{canonical}-"):
            return canonical
    return normalized
