"""
Chain Adapters - Fee Estimation Pipeline.

============================================================
PURPOSE
============================================================
Turns tiered gas prices plus a gas limit into a FeeEstimate.

Oracle tier mapping (0x gas API, MEDIAN source):
    instant -> fast
    fast    -> average
    low     -> slow

tx_fee = gas_price * gas_limit, computed in Decimal and rendered as
a plain decimal string (no exponent, no float rounding).

Native send-max: each tier additionally reports
    send_max_value = max(balance - tx_fee, 0)

Partial oracle data fails the whole estimate; there is no fallback
tier.

============================================================
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .errors import ErrorKind, create_error
from .types import FeeEstimate, FeeTier, FeeTierName


logger = logging.getLogger(__name__)


ORACLE_SOURCE = "MEDIAN"

# Our tier <- oracle field
ORACLE_TIER_FIELDS: Dict[FeeTierName, str] = {
    FeeTierName.FAST: "instant",
    FeeTierName.AVERAGE: "fast",
    FeeTierName.SLOW: "low",
}


@dataclass(frozen=True)
class TierPrices:
    """Gas price per tier, in native base units per gas."""

    slow: Decimal
    average: Decimal
    fast: Decimal

    def price(self, name: FeeTierName) -> Decimal:
        return getattr(self, name.value)

    @property
    def is_monotonic(self) -> bool:
        return self.slow <= self.average <= self.fast

    @classmethod
    def from_values(cls, slow: Any, average: Any, fast: Any) -> "TierPrices":
        return cls(
            slow=to_decimal(slow, "slow gas price"),
            average=to_decimal(average, "average gas price"),
            fast=to_decimal(fast, "fast gas price"),
        )


# ============================================================
# HELPERS
# ============================================================

def to_decimal(value: Any, label: str, kind: ErrorKind = ErrorKind.FEE_DATA_UNAVAILABLE) -> Decimal:
    """Parse a numeric value; floats go through str() to avoid binary noise."""
    if value is None or isinstance(value, bool):
        raise create_error(kind, f"Missing {label}", operation="get_fee_data")
    try:
        parsed = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise create_error(kind, f"Invalid {label}: {value!r}", operation="get_fee_data")
    if not parsed.is_finite() or parsed < 0:
        raise create_error(kind, f"Invalid {label}: {value!r}", operation="get_fee_data")
    return parsed


def format_amount(value: Decimal) -> str:
    """Plain decimal string: Decimal('6.25E+3') -> '6250'."""
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


# ============================================================
# ORACLE SELECTION
# ============================================================

def select_oracle_tiers(sources: List[Dict[str, Any]], source: str = ORACLE_SOURCE) -> TierPrices:
    """
    Pick one oracle source and map its fields onto our tiers.

    Raises:
        ChainAdapterException: FeeDataUnavailable if the source or any
            mapped tier is missing
    """
    selected = next(
        (entry for entry in sources or [] if isinstance(entry, dict) and entry.get("source") == source),
        None,
    )
    if selected is None:
        raise create_error(
            ErrorKind.FEE_DATA_UNAVAILABLE,
            f"Gas oracle returned no {source} source",
            operation="get_fee_data",
        )

    prices: Dict[str, Decimal] = {}
    for tier, field_name in ORACLE_TIER_FIELDS.items():
        if selected.get(field_name) is None:
            raise create_error(
                ErrorKind.FEE_DATA_UNAVAILABLE,
                f"Gas oracle {source} source missing '{field_name}' tier",
                operation="get_fee_data",
            )
        prices[tier.value] = to_decimal(selected[field_name], f"{source}.{field_name}")

    return TierPrices(**prices)


# ============================================================
# ESTIMATE
# ============================================================

def build_fee_estimate(
    prices: TierPrices,
    gas_limit: Any,
    send_max_balance: Optional[Any] = None,
) -> FeeEstimate:
    """
    Build the three-tier estimate.

    Args:
        prices: Gas price per tier
        gas_limit: Gas units for the transaction
        send_max_balance: Native balance; when given each tier reports
            the largest sendable value after its fee

    Returns:
        FeeEstimate with tx_fee = gas_price * gas_limit per tier
    """
    limit = to_decimal(gas_limit, "gas limit", ErrorKind.GAS_ESTIMATION_FAILED)
    balance = None
    if send_max_balance is not None:
        balance = to_decimal(send_max_balance, "balance")

    if not prices.is_monotonic:
        logger.warning(
            f"[fees] Non-monotonic gas prices: slow={prices.slow} "
            f"average={prices.average} fast={prices.fast}"
        )

    tiers: Dict[str, FeeTier] = {}
    for name in FeeTierName:
        price = prices.price(name)
        fee = price * limit
        chain_specific: Dict[str, Any] = {
            "gas_limit": format_amount(limit),
            "gas_price": format_amount(price),
        }
        if balance is not None:
            chain_specific["send_max_value"] = format_amount(max(balance - fee, Decimal(0)))
        tiers[name.value] = FeeTier(tx_fee=format_amount(fee), chain_specific=chain_specific)

    return FeeEstimate(**tiers)
