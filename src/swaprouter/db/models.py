"""SQLAlchemy models."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProtocolFeeRecord(Base):
    """Protocol fee configuration for one canonical provider."""

    __tablename__ = "protocol_fee_configs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    tax_in_percent: Mapped[Decimal] = mapped_column(Numeric(10, 6), nullable=False)
    tax_in_bips: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Fixed fee in wei, stored as a decimal string
    tax_in_eth: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (Index("ix_protocol_fee_provider_active", "provider", "is_active"),)

    def __repr__(self) -> str:
        return f"<ProtocolFeeRecord {self.provider}: {self.tax_in_percent}% active={self.is_active}>"
