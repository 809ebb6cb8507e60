"""
Fee Estimation Pipeline Tests.

============================================================
PURPOSE
============================================================
Oracle tier selection and FeeEstimate construction.

TEST CATEGORIES:
- MEDIAN source selection and tier mapping
- Missing source / tier failures
- tx_fee arithmetic and formatting
- Native send-max values

============================================================
"""

from decimal import Decimal

import pytest

from chain_adapters.errors import ChainAdapterException, ErrorKind
from chain_adapters.fees import TierPrices, build_fee_estimate, format_amount, select_oracle_tiers
from chain_adapters.types import FeeTierName


ORACLE_RESULT = [
    {"source": "ETH_GAS_STATION", "instant": 999, "fast": 998, "standard": 997, "low": 996},
    {"source": "MEDIAN", "instant": 150000000000, "fast": 120000000000, "standard": 100000000000, "low": 90000000000},
]


# ============================================================
# ORACLE SELECTION
# ============================================================

class TestSelectOracleTiers:
    """Tests for select_oracle_tiers."""

    def test_median_selected_and_mapped(self):
        """instant -> fast, fast -> average, low -> slow."""
        prices = select_oracle_tiers(ORACLE_RESULT)

        assert prices.fast == Decimal("150000000000")
        assert prices.average == Decimal("120000000000")
        assert prices.slow == Decimal("90000000000")

    def test_missing_median_source(self):
        with pytest.raises(ChainAdapterException) as exc_info:
            select_oracle_tiers(ORACLE_RESULT[:1])

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE

    @pytest.mark.parametrize("missing", ["instant", "fast", "low"])
    def test_missing_tier(self, missing):
        """Partial oracle data fails the whole estimate."""
        median = dict(ORACLE_RESULT[1])
        del median[missing]

        with pytest.raises(ChainAdapterException) as exc_info:
            select_oracle_tiers([median])

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE

    def test_null_tier(self):
        median = dict(ORACLE_RESULT[1], low=None)

        with pytest.raises(ChainAdapterException):
            select_oracle_tiers([median])

    def test_empty_result(self):
        with pytest.raises(ChainAdapterException):
            select_oracle_tiers([])

    def test_float_prices_parsed_exactly(self):
        prices = select_oracle_tiers([{"source": "MEDIAN", "instant": 1.5e10, "fast": 1.2e10, "low": 1e10}])

        assert prices.fast == Decimal("15000000000")


# ============================================================
# ESTIMATE
# ============================================================

class TestBuildFeeEstimate:
    """Tests for build_fee_estimate."""

    def test_tx_fee_is_price_times_limit(self):
        estimate = build_fee_estimate(select_oracle_tiers(ORACLE_RESULT), "21000")

        assert estimate.fast.tx_fee == str(150000000000 * 21000)
        assert estimate.average.tx_fee == str(120000000000 * 21000)
        assert estimate.slow.tx_fee == str(90000000000 * 21000)
        assert estimate.fast.chain_specific == {"gas_limit": "21000", "gas_price": "150000000000"}

    def test_tiers_ordered(self):
        estimate = build_fee_estimate(select_oracle_tiers(ORACLE_RESULT), 50000)

        fees = [Decimal(estimate.tier(name).tx_fee) for name in FeeTierName]
        assert fees == sorted(fees)

    def test_fractional_prices(self):
        """Cosmos-style fractional gas prices keep full precision."""
        prices = TierPrices.from_values("0.01", "0.025", "0.04")

        estimate = build_fee_estimate(prices, "250000")

        assert estimate.slow.tx_fee == "2500"
        assert estimate.average.tx_fee == "6250"
        assert estimate.fast.tx_fee == "10000"
        assert estimate.average.chain_specific["gas_price"] == "0.025"

    def test_native_send_max(self):
        """send_max_value = balance - fee per tier."""
        prices = TierPrices.from_values(1, 2, 3)

        estimate = build_fee_estimate(prices, "100", send_max_balance="1000")

        assert estimate.slow.chain_specific["send_max_value"] == "900"
        assert estimate.average.chain_specific["send_max_value"] == "800"
        assert estimate.fast.chain_specific["send_max_value"] == "700"

    def test_native_send_max_clamped_at_zero(self):
        prices = TierPrices.from_values(1, 2, 3)

        estimate = build_fee_estimate(prices, "100", send_max_balance="250")

        assert estimate.slow.chain_specific["send_max_value"] == "150"
        assert estimate.fast.chain_specific["send_max_value"] == "0"

    def test_no_send_max_value_without_balance(self):
        estimate = build_fee_estimate(TierPrices.from_values(1, 2, 3), "1")

        assert "send_max_value" not in estimate.fast.chain_specific

    def test_invalid_gas_limit(self):
        with pytest.raises(ChainAdapterException) as exc_info:
            build_fee_estimate(TierPrices.from_values(1, 2, 3), "lots")

        assert exc_info.value.kind is ErrorKind.GAS_ESTIMATION_FAILED

    def test_non_monotonic_prices_still_built(self, caplog):
        estimate = build_fee_estimate(TierPrices.from_values(3, 2, 1), "1")

        assert estimate.slow.tx_fee == "3"
        assert "Non-monotonic" in caplog.text

    def test_to_dict(self):
        estimate = build_fee_estimate(TierPrices.from_values(1, 2, 3), "10")

        assert estimate.to_dict()["average"] == {
            "tx_fee": "20",
            "chain_specific": {"gas_limit": "10", "gas_price": "2"},
        }


@pytest.mark.parametrize("value, expected", [
    (Decimal("0"), "0"),
    (Decimal("6.25E+3"), "6250"),
    (Decimal("6250.000"), "6250"),
    (Decimal("0.0250"), "0.025"),
])
def test_format_amount(value, expected):
    assert format_amount(value) == expected
