"""Number to string conversions with fixed rounding rules.

Integer conversions check that the value fits the fixed-width type.
The floating-point conversions round with their own round-half rule,
which is not the rule that ``format`` uses. Values above 2**31 - 1 switch
to exponential notation.
"""

import math

__all__ = ["itoa10", "uitoa10", "litoa10", "ulitoa10", "dtoa", "dtoa2", "uitoa16"]

_POWERS_OF_10 = tuple(10**exp for exp in range(10))
_THRES_MAX = float(0x7FFFFFFF)
_MAX_PRECISION = 9


def _checked(value: int, low: int, high: int, kind: str) -> int:
    value = int(value)
    if not low <= value <= high:
        raise ValueError(f"{value} does not fit in {kind}")
    return value


def itoa10(value: int) -> str:
    """Decimal text of a signed 32-bit integer."""
    return str(_checked(value, -(2**31), 2**31 - 1, "int32"))


def uitoa10(value: int) -> str:
    """Decimal text of an unsigned 32-bit integer."""
    return str(_checked(value, 0, 2**32 - 1, "uint32"))


def litoa10(value: int) -> str:
    """Decimal text of a signed 64-bit integer."""
    return str(_checked(value, -(2**63), 2**63 - 1, "int64"))


def ulitoa10(value: int) -> str:
    """Decimal text of an unsigned 64-bit integer."""
    return str(_checked(value, 0, 2**64 - 1, "uint64"))


def _convert(value: float, prec: int, strip_zeros: bool) -> str:
    value = float(value)
    if math.isnan(value):
        return "nan"

    prec = min(max(int(prec), 0), _MAX_PRECISION)

    neg = value < 0
    if neg:
        value = -value

    if value > _THRES_MAX:
        return f"{-value if neg else value:e}"

    whole = int(value)
    scale = _POWERS_OF_10[prec]
    tmp = (value - whole) * scale
    frac = int(tmp)
    diff = tmp - frac

    if diff > 0.5:
        frac += 1
        if frac >= scale:
            frac = 0
            whole += 1
    elif diff == 0.5 and (frac == 0 or frac & 1):
        # Halfway: round up when odd or when the last digit is zero.
        frac += 1

    fraction = ""
    if prec == 0:
        diff = value - whole
        if diff > 0.5 or (diff == 0.5 and whole & 1):
            whole += 1
    elif not strip_zeros:
        fraction = "." + str(frac).rjust(prec, "0")
    elif frac:
        digits = str(frac)
        significant = digits.rstrip("0")
        width = prec - (len(digits) - len(significant))
        fraction = "." + significant.rjust(width, "0")

    sign = "-" if neg else ""
    return f"{sign}{whole}{fraction}"


def dtoa(value: float, prec: int) -> str:
    """Fixed-precision text of ``value`` with ``prec`` (0-9) decimals, zeros kept."""
    return _convert(value, prec, strip_zeros=False)


def dtoa2(value: float, prec: int) -> str:
    """Like :func:`dtoa`, but without trailing zeros after the decimal point."""
    return _convert(value, prec, strip_zeros=True)


def uitoa16(value: int) -> str:
    """Eight upper-case hexadecimal digits of an unsigned 32-bit integer."""
    return format(_checked(value, 0, 2**32 - 1, "uint32"), "08X")