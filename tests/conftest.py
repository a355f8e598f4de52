"""Pytest configuration and fixtures."""

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Callable, Optional, Union

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DRY_RUN"] = "true"
os.environ["ADMIN_TOKEN"] = ""
os.environ["DEBUG"] = "false"

from swaprouter.config import Settings
from swaprouter.db.models import Base
from swaprouter.routing.base import (
    PreparedSwap,
    RouteParams,
    SwapProvider,
    SwapQuote,
    SwapRequest,
    Transaction,
    TransactionStatus,
)
from swaprouter.tokens.registry import TokenRegistry, load_token_registry

REGISTRY_PATH = Path(__file__).resolve().parents[1] / "shared" / "token-registry.json"

SENDER = "0x1111111111111111111111111111111111111111"
RECEIVER = "0x2222222222222222222222222222222222222222"


class FakeProvider(SwapProvider):
    """Scriptable provider recording every call it receives."""

    def __init__(
        self,
        name: str,
        supports: Union[bool, Callable[[RouteParams], bool]] = True,
        output_amount: Optional[int] = None,
        quote_error: Optional[BaseException] = None,
        prepare_error: Optional[BaseException] = None,
        support_error: Optional[BaseException] = None,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        status_error: Optional[BaseException] = None,
        delay: float = 0.0,
        bridge_fee: int = 0,
        gas_fee: int = 0,
        duration: int = 30,
        expires_at: Optional[float] = None,
    ):
        self._name = name
        self.supports = supports
        self.output_amount = output_amount
        self.quote_error = quote_error
        self.prepare_error = prepare_error
        self.support_error = support_error
        self.status = status
        self.status_error = status_error
        self.delay = delay
        self.bridge_fee = bridge_fee
        self.gas_fee = gas_fee
        self.duration = duration
        self.expires_at = expires_at

        self.support_calls: list[RouteParams] = []
        self.quote_calls: list[SwapRequest] = []
        self.prepare_calls: list[SwapRequest] = []
        self.status_calls: list[tuple[str, int]] = []

    @property
    def name(self) -> str:
        return self._name

    async def supports_route(self, params: RouteParams) -> bool:
        self.support_calls.append(params)
        if self.support_error is not None:
            raise self.support_error
        if callable(self.supports):
            return self.supports(params)
        return self.supports

    def _output(self, request: SwapRequest) -> int:
        return self.output_amount if self.output_amount is not None else request.amount

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        self.quote_calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.quote_error is not None:
            raise self.quote_error
        return SwapQuote(
            estimated_receive_amount=self._output(request),
            bridge_fee=self.bridge_fee,
            gas_fee=self.gas_fee,
            exchange_rate=self._output(request) / request.amount,
            estimated_duration=self.duration,
            expires_at=self.expires_at,
        )

    async def prepare_swap(self, request: SwapRequest) -> PreparedSwap:
        self.prepare_calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.prepare_error is not None:
            raise self.prepare_error
        return PreparedSwap(
            transactions=[
                Transaction(
                    chain_id=request.from_chain_id,
                    to="0x000000000000000000000000000000000000dEaD",
                    data="0xabcdef",
                    value="0",
                    action="swap",
                )
            ],
            provider=self.name,
            estimated_duration=self.duration,
            expires_at=self.expires_at,
            metadata={"fake": self.name},
        )

    async def monitor_transaction(self, tx_hash: str, chain_id: int) -> TransactionStatus:
        self.status_calls.append((tx_hash, chain_id))
        if self.status_error is not None:
            raise self.status_error
        return self.status


def make_request(**overrides) -> SwapRequest:
    values = dict(
        from_chain_id=1,
        to_chain_id=1,
        from_token="USDC",
        to_token="WETH",
        amount=1_000_000,
        sender=SENDER,
        receiver=RECEIVER,
    )
    values.update(overrides)
    return SwapRequest(**values)


def only_same_chain(params: RouteParams) -> bool:
    return params.is_same_chain


def only_cross_chain(params: RouteParams) -> bool:
    return not params.is_same_chain


@pytest.fixture
def registry() -> TokenRegistry:
    """The shipped token registry."""
    return load_token_registry(str(REGISTRY_PATH))


@pytest.fixture
def test_settings() -> Settings:
    """Settings for dry-run tests, independent of the environment."""
    return Settings(
        _env_file=None,
        dry_run=True,
        database_url="sqlite+aiosqlite:///:memory:",
        admin_token="",
        quote_cache_ttl_seconds=0,
    )


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_scope(db_engine):
    """Session scope factory committing on success, like get_db()."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    @asynccontextmanager
    async def scope() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return scope
