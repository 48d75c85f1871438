from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union


CENT = Decimal("0.01")

AmountLike = Union[str, int, float, Decimal]


class InvalidAmount(ValueError):
    """金额无效"""


def is_number(value: str) -> bool:
    try:
        return Decimal(value.strip()).is_finite()
    except (InvalidOperation, ValueError):
        return False


def parse_amount(value: AmountLike) -> int:
    """Parse a yuan amount into fen, rounding half-up to two decimals.

    Raises:
        InvalidAmount: not a finite number, or less than 0.01 after rounding
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"金额无效: {value!r}")
    try:
        # float goes through str() so 0.1 stays 0.1 instead of its binary expansion
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"金额无效: {value!r}") from None

    if not amount.is_finite():
        raise InvalidAmount(f"金额无效: {value!r}")

    fen = int(amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
    if fen < 1:
        raise InvalidAmount(f"金额不能少于 0.01: {value!r}")
    return fen


def format_amount(fen: int) -> str:
    """12345 -> '123.45'"""
    return str((Decimal(fen) * CENT).quantize(CENT))
