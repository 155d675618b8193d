"""
Tests for Amount parsing, arithmetic and formatting.
"""

from decimal import Decimal

import pytest

from starkzap.core.errors import IncompatibleAmounts, InvalidFormat, PrecisionOverflow, ValidationError
from starkzap.types.amount import NBSP, Amount, format_token_amount
from starkzap.types.token import ETH, STRK, USDC


# =============================================================================
# Parsing
# =============================================================================


class TestFromUnit:
    def test_parses_decimal_string_exactly(self):
        amount = Amount.from_unit("1.5", STRK)
        assert amount.to_base() == 1_500_000_000_000_000_000
        assert amount.decimals == 18
        assert amount.symbol == "STRK"

    def test_accepts_int_and_decimal(self):
        assert Amount.from_unit(2, USDC).to_base() == 2_000_000
        assert Amount.from_unit(Decimal("0.25"), USDC).to_base() == 250_000

    def test_accepts_safe_float(self):
        assert Amount.from_unit(0.1, 6).to_base() == 100_000

    def test_accepts_scientific_notation(self):
        assert Amount.from_unit("1e-6", USDC).to_base() == 1
        assert Amount.from_unit("1.5e3", 0).to_base() == 1500

    def test_explicit_symbol_with_decimals(self):
        amount = Amount.from_unit("3", 6, "USDC")
        assert amount.symbol == "USDC"

    @pytest.mark.parametrize("value", ["-1", "abc", "1.", ".5", "", "1,000", "\u0661.\u0665", "\uff11"])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidFormat):
            Amount.from_unit(value, 18)

    def test_rejects_excess_precision(self):
        with pytest.raises(PrecisionOverflow):
            Amount.from_unit("0.0000001", USDC)

    def test_rejects_invalid_decimals(self):
        with pytest.raises(ValidationError):
            Amount.from_unit("1", -1)
        with pytest.raises(ValidationError):
            Amount.from_unit("1", 256)

    def test_rejects_unsafe_float(self):
        with pytest.raises(InvalidFormat):
            Amount.from_unit(2.0**60, 18)

    def test_rejects_bool(self):
        with pytest.raises(InvalidFormat):
            Amount.from_unit(True, 18)


class TestFromBase:
    def test_accepts_int_decimal_and_hex(self):
        assert Amount.from_base(1000, 18).to_base() == 1000
        assert Amount.from_base("1000", 18).to_base() == 1000
        assert Amount.from_base("0x3e8", 18).to_base() == 1000

    def test_takes_token_metadata(self):
        amount = Amount.from_base(5, ETH)
        assert amount.symbol == "ETH"
        assert amount.decimals == 18

    @pytest.mark.parametrize("value", ["-5", "1.5", "0xzz", "\u0661\u0662"])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidFormat):
            Amount.from_base(value, 18)

    def test_negative_int_rejected(self):
        with pytest.raises(InvalidFormat):
            Amount.from_base(-1, 18)


# =============================================================================
# Conversion and formatting
# =============================================================================


class TestConversion:
    def test_to_unit_strips_trailing_zeros(self):
        assert Amount.from_base(1_500_000, 6).to_unit() == "1.5"
        assert Amount.from_base(2_000_000, 6).to_unit() == "2"
        assert Amount.from_base(1, 6).to_unit() == "0.000001"

    def test_to_unit_zero_decimals(self):
        assert Amount.from_base(42, 0).to_unit() == "42"

    def test_unit_round_trip_preserves_value(self):
        for text in ("0", "1", "0.000000000000000001", "123456789.123456789"):
            assert Amount.from_unit(text, 18).to_unit() == text

    def test_to_decimal(self):
        assert Amount.from_unit("1.25", USDC).to_decimal() == Decimal("1.25")


class TestFormatting:
    def test_full_formatting_groups_thousands(self):
        amount = Amount.from_unit("1234567.5", STRK)
        assert amount.to_formatted() == f"STRK{NBSP}1,234,567.5"

    def test_compressed_rounds_to_four_digits(self):
        amount = Amount.from_unit("1.123456", USDC)
        assert amount.to_formatted(compressed=True) == f"USDC{NBSP}1.1235"

    def test_compressed_drops_zero_fraction(self):
        amount = Amount.from_unit("2.00001", USDC)
        assert amount.to_formatted(compressed=True) == f"USDC{NBSP}2"

    def test_format_token_amount_negative(self):
        assert format_token_amount(-1_500_000, 6, "USDC") == f"USDC{NBSP}-1.5"


# =============================================================================
# Arithmetic and comparisons
# =============================================================================


class TestArithmetic:
    def test_add_and_subtract(self):
        one = Amount.from_unit("1", STRK)
        half = Amount.from_unit("0.5", STRK)
        assert (one + half).to_unit() == "1.5"
        assert (one - half).to_unit() == "0.5"

    def test_subtract_below_zero_raises(self):
        with pytest.raises(ValidationError):
            Amount.from_unit("1", STRK).subtract(Amount.from_unit("2", STRK))

    def test_incompatible_decimals_raise(self):
        with pytest.raises(IncompatibleAmounts):
            Amount.from_unit("1", STRK).add(Amount.from_unit("1", USDC))

    def test_incompatible_symbols_raise(self):
        with pytest.raises(IncompatibleAmounts):
            Amount.from_unit("1", ETH).add(Amount.from_unit("1", STRK))

    def test_symbol_is_inherited_from_either_operand(self):
        result = Amount.from_unit("1", 18).add(Amount.from_unit("1", STRK))
        assert result.symbol == "STRK"

    def test_multiply_and_divide_floor(self):
        amount = Amount.from_base(10, 0)
        assert amount.multiply("0.33").to_base() == 3
        assert amount.divide(3).to_base() == 3

    def test_divide_by_zero_raises(self):
        with pytest.raises(ValidationError, match="Division by zero"):
            Amount.from_base(10, 0).divide("0")

    def test_divisor_below_precision_raises(self):
        with pytest.raises(ValidationError, match="too small"):
            Amount.from_base(10, 0).divide("0.0000000000000000001")


class TestComparisons:
    def test_comparisons_on_compatible_amounts(self):
        small = Amount.from_unit("1", STRK)
        large = Amount.from_unit("2", STRK)
        assert small.lt(large) and small.lte(large)
        assert large.gt(small) and large.gte(small)
        assert small.eq(Amount.from_base(10**18, STRK))
        assert small < large

    def test_incompatible_comparison_returns_false(self):
        assert not Amount.from_unit("1", ETH).eq(Amount.from_unit("1", STRK))
        assert not Amount.from_unit("1", ETH).gt(Amount.from_unit("0", USDC))

    def test_operator_comparison_raises_when_incompatible(self):
        with pytest.raises(IncompatibleAmounts):
            _ = Amount.from_unit("1", ETH) < Amount.from_unit("1", USDC)

    def test_zero_and_positive(self):
        assert Amount.from_base(0, 18).is_zero()
        assert Amount.from_base(1, 18).is_positive()

    def test_equal_amounts_hash_alike_without_symbol(self):
        bare = Amount.from_base(10**18, 18)
        symbolled = Amount.from_base(10**18, STRK)

        assert bare == symbolled
        assert hash(bare) == hash(symbolled)
        assert len({bare, symbolled}) == 1


class TestRoundTrips:
    def test_large_base_values_are_exact(self):
        huge = 2**255 + 12345
        assert Amount.from_base(huge, 18).to_base() == huge
        assert Amount.from_base(str(huge), 18).to_base() == huge

    def test_unit_round_trip_strips_trailing_zeros(self):
        assert Amount.from_unit("1.500000", 6).to_unit() == "1.5"

    def test_precision_overflow_with_explicit_symbol(self):
        with pytest.raises(PrecisionOverflow):
            Amount.from_unit("1.23456", 4, "X")
