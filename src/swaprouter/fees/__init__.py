"""Protocol fee configuration and calculation."""

from swaprouter.fees.models import DEFAULT_FEE_CONFIGS, ProtocolFeeConfig, percentage_fee
from swaprouter.fees.repository import (
    InMemoryProtocolFeeRepository,
    ProtocolFeeRepository,
    SqlAlchemyProtocolFeeRepository,
)
from swaprouter.fees.service import ProtocolFeeService

__all__ = [
    "DEFAULT_FEE_CONFIGS",
    "ProtocolFeeConfig",
    "percentage_fee",
    "ProtocolFeeRepository",
    "InMemoryProtocolFeeRepository",
    "SqlAlchemyProtocolFeeRepository",
    "ProtocolFeeService",
]
