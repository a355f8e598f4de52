"""Tests for the protocol fee calculator and its storage."""

from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy.pool import StaticPool

from swaprouter.db.database import Database, async_database_url
from swaprouter.db.models import ProtocolFeeRecord
from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.fees.models import ProtocolFeeConfig, percentage_fee
from swaprouter.fees.repository import (
    InMemoryProtocolFeeRepository,
    ProtocolFeeRepository,
    SqlAlchemyProtocolFeeRepository,
)
from swaprouter.fees.service import ProtocolFeeService

ALIASES = {"uniswap": ["uniswap-smart-router", "uniswap-trading-api"]}


class BrokenRepository(ProtocolFeeRepository):
    """Repository whose storage is unreachable."""

    async def get_by_provider(self, provider: str) -> Optional[ProtocolFeeConfig]:
        raise RuntimeError("database is locked")

    async def get_all_active(self) -> list[ProtocolFeeConfig]:
        raise RuntimeError("database is locked")

    async def save(self, config: ProtocolFeeConfig) -> bool:
        raise RuntimeError("database is locked")


class TestPercentageFee:
    """Tests for integer fee arithmetic."""

    def test_half_percent(self):
        assert percentage_fee(1_000_000_000, 0.5) == 5_000_000

    def test_rounds_down(self):
        assert percentage_fee(999, 0.3) == 2

    def test_bounds(self):
        assert percentage_fee(0, 0.5) == 0
        assert percentage_fee(-10, 0.5) == 0
        assert percentage_fee(12345, 0) == 0
        assert percentage_fee(12345, 100) == 12345

    def test_large_amounts_are_exact(self):
        amount = 123_456_789_012_345_678_901_234_567
        assert percentage_fee(amount, 0.25) == amount * 2500 // 1_000_000


class TestProtocolFeeConfig:
    """Tests for fee configuration validation."""

    def test_invalid_provider(self):
        with pytest.raises(SwapError) as exc_info:
            ProtocolFeeConfig(provider="sushiswap", tax_in_percent=0.5)

        assert exc_info.value.code == SwapErrorCode.INVALID_REQUEST
        assert "thirdweb" in exc_info.value.message

    def test_invalid_percentage(self):
        with pytest.raises(SwapError):
            ProtocolFeeConfig(provider="thirdweb", tax_in_percent=101)

    def test_inactive_config_charges_nothing(self):
        config = ProtocolFeeConfig(provider="thirdweb", tax_in_percent=1.0, is_active=False)

        assert config.calculate_fee(1_000_000) == 0

    def test_to_dict(self):
        config = ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.3, tax_in_eth=10**15)

        data = config.to_dict()

        assert data["tax_in_eth"] == "1000000000000000"
        assert data["updated_at"] is None


class TestProtocolFeeService:
    """Tests for fee lookup and calculation."""

    @pytest.mark.asyncio
    async def test_default_fee_for_concrete_provider_name(self):
        service = ProtocolFeeService(InMemoryProtocolFeeRepository(), aliases=ALIASES)

        fee = await service.calculate_fee("uniswap-trading-api", 1_000_000_000)

        assert fee == 5_000_000

    @pytest.mark.asyncio
    async def test_configured_fee_is_shared_by_aliases(self):
        repository = InMemoryProtocolFeeRepository(
            [ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.3)]
        )
        service = ProtocolFeeService(repository, aliases=ALIASES)

        assert await service.calculate_fee("uniswap-smart-router", 1_000_000) == 3_000
        assert await service.get_fee_percentage("uniswap-trading-api") == 0.3

    @pytest.mark.asyncio
    async def test_inactive_config_falls_back_to_default(self):
        repository = InMemoryProtocolFeeRepository(
            [ProtocolFeeConfig(provider="thirdweb", tax_in_percent=2.0, is_active=False)]
        )
        service = ProtocolFeeService(repository, aliases=ALIASES)

        assert await service.calculate_fee("thirdweb", 1_000_000) == 5_000
        assert await service.get_fee_percentage("thirdweb") == 0.5

    @pytest.mark.asyncio
    async def test_storage_errors_fall_back_to_default(self):
        service = ProtocolFeeService(BrokenRepository(), aliases=ALIASES)

        assert await service.get_fee_config("thirdweb") is None
        assert await service.calculate_fee("thirdweb", 1_000_000) == 5_000

    @pytest.mark.asyncio
    async def test_list_includes_defaults(self):
        repository = InMemoryProtocolFeeRepository(
            [ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.3)]
        )
        service = ProtocolFeeService(repository, aliases=ALIASES)

        configs = {c.provider: c.tax_in_percent for c in await service.list_fee_configs()}

        assert configs == {"uniswap": 0.3, "thirdweb": 0.5}

    @pytest.mark.asyncio
    async def test_set_fee_config(self):
        repository = InMemoryProtocolFeeRepository()
        service = ProtocolFeeService(repository, aliases=ALIASES)

        config, created = await service.set_fee_config("uniswap-trading-api", 1.5)
        _, created_again = await service.set_fee_config("uniswap", 2.0)

        assert config.provider == "uniswap"
        assert created is True
        assert created_again is False
        assert (await repository.get_by_provider("uniswap")).tax_in_percent == 2.0

    @pytest.mark.asyncio
    async def test_set_fee_config_range(self):
        service = ProtocolFeeService(InMemoryProtocolFeeRepository(), aliases=ALIASES)

        with pytest.raises(SwapError) as exc_info:
            await service.set_fee_config("thirdweb", 10.5)

        assert exc_info.value.code == SwapErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_set_fee_config_unknown_provider(self):
        service = ProtocolFeeService(InMemoryProtocolFeeRepository(), aliases=ALIASES)

        with pytest.raises(SwapError):
            await service.set_fee_config("sushiswap", 1.0)


class TestSqlAlchemyRepository:
    """Tests for the database-backed repository."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, session_scope):
        repository = SqlAlchemyProtocolFeeRepository(session_scope)

        created = await repository.save(
            ProtocolFeeConfig(provider="thirdweb", tax_in_percent=0.75, tax_in_eth=10**16)
        )
        loaded = await repository.get_by_provider("thirdweb")

        assert created is True
        assert loaded.tax_in_percent == 0.75
        assert loaded.tax_in_eth == 10**16
        assert loaded.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_existing(self, session_scope):
        repository = SqlAlchemyProtocolFeeRepository(session_scope)

        await repository.save(ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.5))
        created = await repository.save(
            ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.2, tax_in_bips=20)
        )
        loaded = await repository.get_by_provider("uniswap")

        assert created is False
        assert loaded.tax_in_percent == 0.2
        assert loaded.tax_in_bips == 20

    @pytest.mark.asyncio
    async def test_active_only(self, session_scope):
        repository = SqlAlchemyProtocolFeeRepository(session_scope)

        await repository.save(ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.5))
        await repository.save(
            ProtocolFeeConfig(provider="thirdweb", tax_in_percent=0.5, is_active=False)
        )

        active = await repository.get_all_active()

        assert [c.provider for c in active] == ["uniswap"]
        assert await repository.exists("thirdweb")
        assert not await repository.exists("missing")

    @pytest.mark.asyncio
    async def test_service_over_database(self, session_scope):
        service = ProtocolFeeService(SqlAlchemyProtocolFeeRepository(session_scope), aliases=ALIASES)

        await service.set_fee_config("thirdweb", 1.0)

        assert await service.calculate_fee("thirdweb", 2_000_000) == 20_000


class TestDatabase:
    """Tests for the database handle."""

    def test_plain_sqlite_urls_get_async_driver(self):
        assert async_database_url("sqlite:///./data/fees.db") == "sqlite+aiosqlite:///./data/fees.db"
        assert async_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
        assert async_database_url("postgresql+asyncpg://u:p@db/fees") == "postgresql+asyncpg://u:p@db/fees"

    @pytest.mark.asyncio
    async def test_session_commits_and_rolls_back(self):
        database = Database("sqlite:///:memory:", poolclass=StaticPool)
        await database.create_tables()
        repository = SqlAlchemyProtocolFeeRepository(database.session)

        try:
            await repository.save(ProtocolFeeConfig(provider="uniswap", tax_in_percent=0.4))

            with pytest.raises(RuntimeError):
                async with database.session() as session:
                    session.add(ProtocolFeeRecord(provider="thirdweb", tax_in_percent=Decimal("1")))
                    await session.flush()
                    raise RuntimeError("abort")

            assert (await repository.get_by_provider("uniswap")).tax_in_percent == 0.4
            assert not await repository.exists("thirdweb")
        finally:
            await database.dispose()
