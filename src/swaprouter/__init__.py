"""Swap routing and orchestration engine.

Chooses among several swap backends (same-chain DEX aggregators and
cross-chain bridges) with ordered fallback and multi-hop composition,
and prepares unsigned transaction bundles for client-side signing.
"""

__version__ = "0.1.0"
