"""Storage for protocol fee configuration."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swaprouter.db.database import get_db
from swaprouter.db.models import ProtocolFeeRecord
from swaprouter.fees.models import ProtocolFeeConfig

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class ProtocolFeeRepository(ABC):
    """Read/write access to fee configurations keyed by canonical provider."""

    @abstractmethod
    async def get_by_provider(self, provider: str) -> Optional[ProtocolFeeConfig]:
        pass

    @abstractmethod
    async def get_all_active(self) -> list[ProtocolFeeConfig]:
        pass

    @abstractmethod
    async def save(self, config: ProtocolFeeConfig) -> bool:
        """Create or replace a configuration. Returns True when created."""
        pass

    async def exists(self, provider: str) -> bool:
        return await self.get_by_provider(provider) is not None


class InMemoryProtocolFeeRepository(ProtocolFeeRepository):
    """Dictionary-backed repository."""

    def __init__(self, configs: Optional[list[ProtocolFeeConfig]] = None):
        self._configs: dict[str, ProtocolFeeConfig] = {c.provider: c for c in configs or []}

    async def get_by_provider(self, provider: str) -> Optional[ProtocolFeeConfig]:
        return self._configs.get(provider)

    async def get_all_active(self) -> list[ProtocolFeeConfig]:
        return [c for c in self._configs.values() if c.is_active]

    async def save(self, config: ProtocolFeeConfig) -> bool:
        created = config.provider not in self._configs
        self._configs[config.provider] = config
        return created


def _to_config(record: ProtocolFeeRecord) -> ProtocolFeeConfig:
    return ProtocolFeeConfig(
        provider=record.provider,
        tax_in_percent=float(record.tax_in_percent),
        is_active=record.is_active,
        tax_in_bips=record.tax_in_bips,
        tax_in_eth=int(record.tax_in_eth) if record.tax_in_eth else None,
        updated_at=record.updated_at,
    )


class SqlAlchemyProtocolFeeRepository(ProtocolFeeRepository):
    """Repository over the protocol_fee_configs table.

    Each call runs in its own session scope, committed on success.
    """

    def __init__(self, session_scope: SessionScope = get_db):
        self.session_scope = session_scope

    async def get_by_provider(self, provider: str) -> Optional[ProtocolFeeConfig]:
        async with self.session_scope() as session:
            stmt = select(ProtocolFeeRecord).where(ProtocolFeeRecord.provider == provider)
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()
            return _to_config(record) if record else None

    async def get_all_active(self) -> list[ProtocolFeeConfig]:
        async with self.session_scope() as session:
            stmt = (
                select(ProtocolFeeRecord)
                .where(ProtocolFeeRecord.is_active.is_(True))
                .order_by(ProtocolFeeRecord.provider)
            )
            result = await session.execute(stmt)
            return [_to_config(r) for r in result.scalars().all()]

    async def save(self, config: ProtocolFeeConfig) -> bool:
        async with self.session_scope() as session:
            stmt = select(ProtocolFeeRecord).where(ProtocolFeeRecord.provider == config.provider)
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()

            created = record is None
            if created:
                record = ProtocolFeeRecord(provider=config.provider)
                session.add(record)

            record.tax_in_percent = Decimal(str(config.tax_in_percent))
            record.tax_in_bips = config.tax_in_bips
            record.tax_in_eth = str(config.tax_in_eth) if config.tax_in_eth is not None else None
            record.is_active = config.is_active
            await session.flush()

            config.updated_at = record.updated_at
            return created
