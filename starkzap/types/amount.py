"""
Exact token amounts.

An ``Amount`` stores the indivisible base value (e.g. wei / fri) as a Python
int together with the token decimals and an optional symbol. Parsing and
arithmetic never touch floating point; only ``to_formatted`` rounds, and it
is for display.

Usage:
    amount = Amount.from_unit("1.5", STRK)      # 1500000000000000000 base
    amount.to_base()                            # exact int for calldata
    amount.to_unit()                            # "1.5"
    amount.to_formatted(compressed=True)        # "STRK 1.5"
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional, Tuple, Union

from ..core.errors import (
    IncompatibleAmounts,
    InvalidFormat,
    PrecisionOverflow,
    ValidationError,
)
from .token import Token


MAX_DECIMALS = 255
MAX_SIGNIFICANT_FLOAT_DIGITS = 15
MAX_SCIENTIFIC_EXPONENT = 10_000
SCALE_PRECISION = 18
COMPRESSED_FRACTION_DIGITS = 4
NBSP = "\u00a0"

_UNIT_RE = re.compile(r"^\d+(\.\d+)?\Z", re.ASCII)
_RAW_RE = re.compile(r"^\d+\Z|^0x[0-9a-fA-F]+\Z", re.ASCII)
_SCIENTIFIC_RE = re.compile(r"^(\d+)(?:\.(\d+))?[eE]([+-]?\d+)\Z", re.ASCII)

Numberish = Union[str, int, float, Decimal]
DecimalsOrToken = Union[int, Token]


def _assert_valid_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValidationError(f"Invalid decimals: {decimals}. Must be a non-negative integer.")
    if decimals > MAX_DECIMALS:
        raise ValidationError(f"Invalid decimals: {decimals}. Must be <= {MAX_DECIMALS}.")


def _resolve_denomination(
    decimals_or_token: DecimalsOrToken, symbol: Optional[str]
) -> Tuple[int, Optional[str]]:
    if isinstance(decimals_or_token, Token):
        return decimals_or_token.decimals, decimals_or_token.symbol
    _assert_valid_decimals(decimals_or_token)
    return decimals_or_token, symbol


def _count_significant_digits(value: str) -> int:
    stripped = value.lstrip("0").replace(".", "")
    return len(stripped.rstrip("0"))


def _expand_scientific(value: str) -> str:
    match = _SCIENTIFIC_RE.match(value)
    if not match:
        return value

    integer_part, fraction_part, exponent_raw = match.group(1), match.group(2) or "", match.group(3)
    exponent = int(exponent_raw)
    if abs(exponent) > MAX_SCIENTIFIC_EXPONENT:
        raise InvalidFormat(f"Scientific notation exponent too large: {exponent_raw}.")

    digits = integer_part + fraction_part
    if exponent >= 0:
        if exponent >= len(fraction_part):
            return digits + "0" * (exponent - len(fraction_part))
        split = len(integer_part) + exponent
        return f"{digits[:split]}.{digits[split:]}"

    shift = -exponent
    if shift >= len(integer_part):
        return f"0.{'0' * (shift - len(integer_part))}{digits}"
    split = len(integer_part) - shift
    return f"{integer_part[:split]}.{integer_part[split:]}{fraction_part}"


def _normalize_unit_input(value: Numberish) -> str:
    if isinstance(value, bool):
        raise InvalidFormat(f'Invalid unit amount: "{value}". Must be a positive number.')
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")) or value < 0:
            raise InvalidFormat(f'Invalid unit amount: "{value}". Must be a positive number.')
        if value.is_integer() and abs(value) > 2**53 - 1:
            raise InvalidFormat(
                "Amount.from_unit(float) only accepts safe integers. "
                "Pass a string or int for exact large values."
            )
        text = _expand_scientific(repr(value))
        if text.endswith(".0"):
            text = text[:-2]
        if _count_significant_digits(text) > MAX_SIGNIFICANT_FLOAT_DIGITS:
            raise InvalidFormat(
                "Amount.from_unit(float) cannot safely represent this decimal. "
                "Pass a string for exact values."
            )
        return text
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidFormat(f'Invalid unit amount: "{value}". Must be a positive number.')
        return format(value, "f")
    return _expand_scientific(str(value).strip())


def _scale(value: Numberish, label: str) -> int:
    text = _normalize_unit_input(value)
    if not _UNIT_RE.match(text):
        raise ValidationError(f'Invalid {label}: "{text}". Must be a positive number.')
    integer, _, fraction = text.partition(".")
    padded = fraction.ljust(SCALE_PRECISION, "0")[:SCALE_PRECISION]
    return int(integer + padded)


class Amount:
    """Immutable token quantity with exact base value."""

    __slots__ = ("_base", "_decimals", "_symbol")

    def __init__(self, base_value: int, decimals: int, symbol: Optional[str] = None):
        _assert_valid_decimals(decimals)
        if isinstance(base_value, bool) or not isinstance(base_value, int):
            raise InvalidFormat(f"Base value must be an int, got {type(base_value).__name__}")
        if base_value < 0:
            raise InvalidFormat(f"Negative amounts are not supported: {base_value}")
        self._base = base_value
        self._decimals = decimals
        self._symbol = symbol

    @classmethod
    def from_unit(
        cls,
        value: Numberish,
        decimals_or_token: DecimalsOrToken,
        symbol: Optional[str] = None,
    ) -> "Amount":
        """Parse a human-readable amount ("1.5") into base units.

        Raises:
            InvalidFormat: value is not ``digits(.digits)?``
            PrecisionOverflow: more fractional digits than ``decimals``
        """
        decimals, symbol = _resolve_denomination(decimals_or_token, symbol)
        text = _normalize_unit_input(value)

        if not _UNIT_RE.match(text):
            raise InvalidFormat(f'Invalid unit amount: "{text}". Must be a positive number.')

        integer, _, fraction = text.partition(".")
        if len(fraction) > decimals:
            raise PrecisionOverflow(
                f'Precision overflow: "{text}" exceeds {decimals} decimal places.'
            )

        return cls(int(integer + fraction.ljust(decimals, "0")), decimals, symbol)

    @classmethod
    def from_base(
        cls,
        value: Union[int, str],
        decimals_or_token: DecimalsOrToken,
        symbol: Optional[str] = None,
    ) -> "Amount":
        """Wrap a base-unit integer (int, decimal string or 0x-hex string)."""
        decimals, symbol = _resolve_denomination(decimals_or_token, symbol)

        if isinstance(value, bool):
            raise InvalidFormat(f'Invalid raw amount: "{value}".')
        if isinstance(value, int):
            return cls(value, decimals, symbol)

        text = _expand_scientific(str(value).strip())
        if not _RAW_RE.match(text):
            raise InvalidFormat(
                f'Invalid raw amount: "{text}". Must be a non-negative integer or hex value.'
            )
        return cls(int(text, 0) if text.startswith("0x") else int(text), decimals, symbol)

    # -- accessors -------------------------------------------------------

    @property
    def decimals(self) -> int:
        return self._decimals

    @property
    def symbol(self) -> Optional[str]:
        return self._symbol

    def to_base(self) -> int:
        return self._base

    def to_unit(self) -> str:
        if self._decimals == 0:
            return str(self._base)

        padded = str(self._base).rjust(self._decimals + 1, "0")
        integer, fraction = padded[: -self._decimals], padded[-self._decimals:]
        fraction = fraction.rstrip("0")
        return f"{integer}.{fraction}" if fraction else integer

    def to_formatted(self, compressed: bool = False) -> str:
        """Display string. ``compressed`` rounds to at most 4 fraction digits."""
        return format_token_amount(self._base, self._decimals, self._symbol or "", compressed)

    def to_decimal(self) -> Decimal:
        return Decimal(self._base).scaleb(-self._decimals)

    # -- arithmetic ------------------------------------------------------

    def _is_compatible(self, other: "Amount") -> bool:
        if self._decimals != other._decimals:
            return False
        return not (
            self._symbol is not None
            and other._symbol is not None
            and self._symbol != other._symbol
        )

    def _assert_compatible(self, other: "Amount") -> None:
        if self._decimals != other._decimals:
            raise IncompatibleAmounts(
                "Cannot perform arithmetic on amounts with different decimals: "
                f"{self._decimals} vs {other._decimals}"
            )
        if self._symbol is not None and other._symbol is not None and self._symbol != other._symbol:
            raise IncompatibleAmounts(
                "Cannot perform arithmetic on amounts with different symbols: "
                f'"{self._symbol}" vs "{other._symbol}"'
            )

    def add(self, other: "Amount") -> "Amount":
        self._assert_compatible(other)
        return Amount(self._base + other._base, self._decimals, self._symbol or other._symbol)

    def subtract(self, other: "Amount") -> "Amount":
        self._assert_compatible(other)
        result = self._base - other._base
        if result < 0:
            raise ValidationError(
                "Subtraction would result in a negative amount. "
                "Use gte() or gt() to check before subtracting."
            )
        return Amount(result, self._decimals, self._symbol or other._symbol)

    def multiply(self, multiplier: Numberish) -> "Amount":
        scaled = _scale(multiplier, "multiplier")
        return Amount(self._base * scaled // 10**SCALE_PRECISION, self._decimals, self._symbol)

    def divide(self, divisor: Numberish) -> "Amount":
        scaled = _scale(divisor, "divisor")
        if scaled == 0:
            if _normalize_unit_input(divisor).strip("0.") != "":
                raise ValidationError(
                    f'Divisor "{divisor}" is too small: precision is limited to '
                    f"{SCALE_PRECISION} decimal places."
                )
            raise ValidationError("Division by zero")
        return Amount(self._base * 10**SCALE_PRECISION // scaled, self._decimals, self._symbol)

    # -- comparisons -----------------------------------------------------

    def eq(self, other: "Amount") -> bool:
        return self._is_compatible(other) and self._base == other._base

    def gt(self, other: "Amount") -> bool:
        return self._is_compatible(other) and self._base > other._base

    def gte(self, other: "Amount") -> bool:
        return self._is_compatible(other) and self._base >= other._base

    def lt(self, other: "Amount") -> bool:
        return self._is_compatible(other) and self._base < other._base

    def lte(self, other: "Amount") -> bool:
        return self._is_compatible(other) and self._base <= other._base

    def is_zero(self) -> bool:
        return self._base == 0

    def is_positive(self) -> bool:
        return self._base > 0

    __add__ = add
    __sub__ = subtract

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.eq(other)

    def __hash__(self) -> int:
        # symbol is left out: amounts without one compare equal to symbolled ones
        return hash((self._base, self._decimals))

    def __lt__(self, other: "Amount") -> bool:
        self._assert_compatible(other)
        return self._base < other._base

    def __le__(self, other: "Amount") -> bool:
        self._assert_compatible(other)
        return self._base <= other._base

    def __gt__(self, other: "Amount") -> bool:
        self._assert_compatible(other)
        return self._base > other._base

    def __ge__(self, other: "Amount") -> bool:
        self._assert_compatible(other)
        return self._base >= other._base

    def __repr__(self) -> str:
        symbol = f" {self._symbol}" if self._symbol else ""
        return f"Amount({self.to_unit()}{symbol}, decimals={self._decimals})"


def format_token_amount(
    balance: int,
    decimals: int,
    symbol: str,
    compressed: bool = False,
) -> str:
    """Render a base-unit balance as ``"<symbol>\\u00a0<grouped amount>"``."""
    _assert_valid_decimals(decimals)

    negative = balance < 0
    absolute = -balance if negative else balance
    max_fraction = min(COMPRESSED_FRACTION_DIGITS, decimals) if compressed else decimals

    if compressed and max_fraction < decimals:
        rounding = 10 ** (decimals - max_fraction)
        rounded = (absolute + rounding // 2) // rounding
        integer_part, fraction_value = divmod(rounded, 10**max_fraction)
        fraction_part = str(fraction_value).rjust(max_fraction, "0") if max_fraction else ""
    else:
        integer_part, fraction_value = divmod(absolute, 10**decimals)
        fraction_part = str(fraction_value).rjust(decimals, "0") if decimals else ""

    fraction_display = fraction_part.rstrip("0")
    sign = "-" if negative else ""
    amount_display = f"{sign}{integer_part:,}"
    if fraction_display:
        amount_display = f"{amount_display}.{fraction_display}"

    return f"{symbol}{NBSP}{amount_display}"
