# utils/validators.py
from decimal import Decimal, InvalidOperation


def non_empty(text: str) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


def try_parse_decimal(x):
    """
    Best-effort parse to Decimal.

    Returns:
        (ok: bool, value: Decimal|None)

    ok == False means parsing failed (or the value is NaN/Infinity) and value is None.
    """
    if isinstance(x, bool):
        return False, None
    try:
        # floats go through str() so 0.1 stays 0.1 rather than its binary expansion
        val = Decimal(str(x)) if isinstance(x, float) else Decimal(x)
    except (InvalidOperation, TypeError, ValueError):
        return False, None
    if not val.is_finite():
        return False, None
    return True, val
