# utils/helpers.py
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import logging
from typing import Union

from ..constants import MONEY_PLACES

NumberLike = Union[Decimal, float, int, str]

_log = logging.getLogger(__name__)


def today_str() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def to_decimal(v: NumberLike | None) -> Decimal:
    """
    Read a stored amount back as an exact Decimal. NULL reads as zero.

    Floats are converted through str() so 0.1 stays 0.1 instead of its
    binary expansion.
    """
    if v is None:
        return Decimal(0)
    if isinstance(v, float):
        v = str(v)
    return Decimal(v)


def to_money(v: NumberLike | None, places: int = MONEY_PLACES) -> Decimal:
    """Round to `places` (half up) for display. Stored amounts are never rounded."""
    return to_decimal(v).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def fmt_money(v: NumberLike, places: int = MONEY_PLACES) -> str:
    """
    Format a number as money with thousands separators and a fixed number of
    decimals. Unparseable input is returned as str(v).
    """
    try:
        x = to_money(v, places)
    except (ArithmeticError, TypeError, ValueError) as e:
        _log.debug("fmt_money: failed to parse %r as a number: %s", v, e)
        return str(v)
    return f"{x:,.{places}f}"
