"""Value-to-text conversion keyed by SPSS write formats.

``format_numeric`` is a pure function of the value and the format: it
produces the text SPSS shows for the value. ``fit_numeric_field`` and
``fit_string_field`` then lay that text out for fixed-width, delimited or
CSV output.

Fixed-point rendering rounds half away from zero on the shortest decimal
representation of the double, so ``0.125`` at two decimals is ``0.13``.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext

from savkit.errors import FormatViolation, UnknownFormatError
from savkit.formatting.calendar import MONTH_ABBREVIATIONS, WEEKDAY_NAMES, spss_to_datetime
from savkit.models.formats import FormatSpec, FormatType
from savkit.models.options import OutputKind

MISSING_TEXT = "."

_CURRENCY_TYPES = frozenset(
    {FormatType.CCA, FormatType.CCB, FormatType.CCC, FormatType.CCD, FormatType.CCE}
)
_CSV_SPECIALS = (",", '"', "\n", "\r")


def _decimal(value: float) -> Decimal:
    return Decimal(repr(value))


def _fixed(value: float, decimals: int, grouping: bool = False) -> str:
    """Render ``value`` with exactly ``decimals`` digits after the point."""
    if math.isinf(value):
        return "-Infinity" if value < 0 else "Infinity"
    with localcontext() as ctx:
        ctx.prec = 1000
        quantized = _decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
        return format(quantized, f",.{decimals}f" if grouping else f".{decimals}f")


def _scientific(value: float, width: int, decimals: int) -> str:
    """Render like ``% W.DE``: a sign column, D mantissa decimals, 2+ digit exponent."""
    if math.isinf(value):
        text = "-Infinity" if value < 0 else "Infinity"
    else:
        number = _decimal(value)
        with localcontext() as ctx:
            ctx.prec = 1000
            step = Decimal(1).scaleb(-decimals)
            if number.is_zero():
                mantissa = Decimal("-0") if number.is_signed() else Decimal(0)
                exponent = 0
            else:
                exponent = number.adjusted()
                mantissa = number.scaleb(-exponent).quantize(step, rounding=ROUND_HALF_UP)
                if abs(mantissa) >= 10:
                    exponent += 1
                    mantissa = number.scaleb(-exponent).quantize(step, rounding=ROUND_HALF_UP)
            text = f"{mantissa:.{decimals}f}E{exponent:+03d}"
    if not text.startswith("-"):
        text = " " + text
    return text.rjust(width)


def _year(moment: datetime, four_digits: bool) -> str:
    return f"{moment.year:04d}" if four_digits else f"{moment.year % 100:02d}"


def _month_name(moment: datetime) -> str:
    return MONTH_ABBREVIATIONS[moment.month - 1].upper()


def _clock(moment: datetime, hundredths: int, seconds: bool, fraction: bool) -> str:
    text = f"{moment.hour:02d}:{moment.minute:02d}"
    if seconds:
        text += f":{moment.second:02d}"
    if fraction:
        text += f".{hundredths:2d}"
    return text


def _ordinal(value: float, modulus: int) -> int:
    """0-based position of a 1-based weekday or month number, wrapping around."""
    try:
        return (int(value) - 1) % modulus
    except OverflowError as e:
        raise FormatViolation(f"Value {value!r} is not a valid calendar ordinal") from e


def _format_date(value: float, format_type: int, width: int) -> str:
    if format_type == FormatType.WKDAY:
        name = WEEKDAY_NAMES[_ordinal(value, 7)]
        return (name if width == 9 else name[:3]).upper()
    if format_type == FormatType.MONTH:
        return MONTH_ABBREVIATIONS[_ordinal(value, 12)].upper()

    moment, hundredths = spss_to_datetime(value)
    day = f"{moment.day:02d}"
    month = f"{moment.month:02d}"
    day_of_year = moment.timetuple().tm_yday

    match format_type:
        case FormatType.DATE:
            return f"{day}-{_month_name(moment)}-{_year(moment, width == 11)}"
        case FormatType.TIME:
            return _clock(moment, hundredths, width >= 8, width == 11)
        case FormatType.DATETIME:
            clock = _clock(moment, hundredths, width >= 20, width == 23)
            return f"{day}-{_month_name(moment)}-{moment.year:04d} {clock}"
        case FormatType.ADATE:
            return f"{month}/{day}/{_year(moment, width == 10)}"
        case FormatType.JDATE:
            return f"{_year(moment, width == 7)}{day_of_year:03d}"
        case FormatType.DTIME:
            return f"{day_of_year:03d}:{_clock(moment, hundredths, width >= 12, width == 15)}"
        case FormatType.MOYR:
            return f"{_month_name(moment)} {_year(moment, width == 8)}"
        case FormatType.QYR:
            quarter = (moment.month - 1) // 3 + 1
            return f"{quarter} Q {_year(moment, width == 8)}"
        case FormatType.WKYR:
            week = (day_of_year - 1) // 7 + 1
            return f"{week:2d} WK {_year(moment, width == 10)}"
        case FormatType.EDATE:
            return f"{day}.{month}.{_year(moment, width == 10)}"
        case FormatType.SDATE:
            return f"{_year(moment, width == 10)}/{month}/{day}"
    raise UnknownFormatError(format_type)


_DATE_TYPES = frozenset(
    {
        FormatType.DATE,
        FormatType.TIME,
        FormatType.DATETIME,
        FormatType.ADATE,
        FormatType.JDATE,
        FormatType.DTIME,
        FormatType.WKDAY,
        FormatType.MONTH,
        FormatType.MOYR,
        FormatType.QYR,
        FormatType.WKYR,
        FormatType.EDATE,
        FormatType.SDATE,
    }
)


def format_numeric(value: float, spec: FormatSpec, variable: str | None = None) -> str:
    """Convert a numeric value to display text under a write format.

    Args:
        value: Decoded double; NaN is system-missing.
        spec: The variable's write format.
        variable: Variable name, used only in error messages.

    Returns:
        Display text. System-missing is always ``"."``.

    Raises:
        UnknownFormatError: If the format type has no conversion rule.
    """
    if math.isnan(value):
        return MISSING_TEXT

    format_type = spec.format_type
    width = spec.width
    decimals = spec.decimals

    if format_type == FormatType.COMMA:
        return _fixed(value, decimals, grouping=True)
    if format_type == FormatType.DOLLAR:
        return "$" + _fixed(value, decimals)
    if format_type == FormatType.F or format_type in _CURRENCY_TYPES:
        return _fixed(value, decimals).rjust(width)
    if format_type == FormatType.E:
        return _scientific(value, width, decimals - 1 if decimals > 0 else 0)
    if format_type == FormatType.PCT:
        return _fixed(value, decimals) + "%"
    if format_type == FormatType.DOT:
        return _fixed(value, decimals, grouping=True).translate(str.maketrans(",.", ".,"))
    if format_type in _DATE_TYPES:
        return _format_date(value, format_type, width)
    raise UnknownFormatError(format_type, variable)


def _needs_quotes(text: str) -> bool:
    return any(ch in text for ch in _CSV_SPECIALS)


def _shrink_fixed(value: float, spec: FormatSpec) -> str:
    """Fit an overflowing F-format value by dropping decimals, else fill with '*'."""
    width = spec.width
    if spec.format_type == FormatType.F and spec.decimals > 0:
        text = _fixed(value, spec.decimals)
        dot = text.rfind(".")
        if dot != -1 and dot + 2 <= width:
            candidate = _fixed(value, width - dot - 1)
        elif dot != -1 and dot <= width:
            candidate = _fixed(value, 0)
        else:
            candidate = ""
        if candidate and len(candidate) <= width:
            return candidate.rjust(width)
    return "*" * width


def fit_numeric_field(text: str, value: float, spec: FormatSpec, kind: OutputKind) -> str:
    """Lay out formatted numeric text for one output field.

    FIXED output is right-aligned in the write-format width; system-missing
    becomes blanks and values that do not fit are shortened or replaced by
    asterisks. DELIMITED and CSV output is trimmed, and CSV quotes text
    that contains a comma.
    """
    if kind == OutputKind.FIXED:
        width = spec.width
        if text == MISSING_TEXT:
            return " " * width
        if len(text) < width:
            return text.rjust(width)
        if len(text) > width:
            return _shrink_fixed(value, spec)
        return text
    text = text.strip()
    if kind == OutputKind.CSV and _needs_quotes(text):
        text = f'"{text}"'
    return text


def fit_string_field(text: str, width: int, kind: OutputKind) -> str:
    """Lay out a string value for one output field.

    FIXED output is left-aligned and blank-padded to ``width``. CSV doubles
    embedded quotes and wraps the field in quotes when it holds a comma,
    quote or line break. DELIMITED output is passed through unchanged.
    """
    if kind == OutputKind.FIXED:
        return text.ljust(width)
    if kind == OutputKind.CSV and _needs_quotes(text):
        return '"' + text.replace('"', '""') + '"'
    return text
