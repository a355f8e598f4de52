"""Filtering of prepared transactions to the origin chain."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.base import Transaction

logger = logging.getLogger(__name__)


@dataclass
class SanitizedTransactions:
    """Transactions split into executable (origin chain) and discarded."""

    executable: list[Transaction] = field(default_factory=list)
    discarded: list[Transaction] = field(default_factory=list)

    @property
    def discarded_chain_ids(self) -> list[int]:
        return sorted({tx.chain_id for tx in self.discarded})


def sanitize_prepared_transactions(
    transactions: list[Transaction],
    origin_chain_id: int,
) -> SanitizedTransactions:
    """Keep only transactions whose chain id equals the origin chain.

    Order of the executable transactions is preserved.
    """
    result = SanitizedTransactions()
    for tx in transactions:
        if tx.chain_id == origin_chain_id:
            result.executable.append(tx)
        else:
            result.discarded.append(tx)
    return result


def ensure_executable(
    transactions: list[Transaction],
    origin_chain_id: int,
    provider: Optional[str] = None,
) -> SanitizedTransactions:
    """Sanitize transactions, failing when nothing is executable on the origin chain.

    Raises:
        SwapError: PROVIDER_ERROR when no transaction targets the origin chain
    """
    result = sanitize_prepared_transactions(transactions, origin_chain_id)

    if result.discarded:
        logger.warning(
            f"{provider or 'provider'} returned {len(result.discarded)} transaction(s) for "
            f"other chains {result.discarded_chain_ids}; origin chain is {origin_chain_id}"
        )

    if not result.executable:
        raise SwapError(
            SwapErrorCode.PROVIDER_ERROR,
            f"Provider returned no transactions executable on chain {origin_chain_id}",
            {
                "provider": provider,
                "origin_chain_id": origin_chain_id,
                "discarded_chain_ids": result.discarded_chain_ids,
            },
            http_status=502,
        )

    return result
