"""Starknet address normalization."""

from __future__ import annotations

from typing import Union

from ..core.errors import ValidationError


FIELD_PRIME = 2**251 + 17 * 2**192 + 1
ADDRESS_BOUND = 2**251 - 256


def to_address(value: Union[str, int]) -> str:
    """Return the canonical 0x-prefixed, 64-hex-digit form of an address."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid address: {value!r}")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        try:
            number = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError as exc:
            raise ValidationError(f"Invalid address: {value!r}") from exc

    if number < 0 or number >= ADDRESS_BOUND:
        raise ValidationError(f"Address out of range: {value!r}")
    return f"0x{number:064x}"


def address_to_int(value: Union[str, int]) -> int:
    return int(to_address(value), 16)


def same_address(left: Union[str, int], right: Union[str, int]) -> bool:
    return address_to_int(left) == address_to_int(right)
