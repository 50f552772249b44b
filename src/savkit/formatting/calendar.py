"""Conversion of SPSS date/time numbers to calendar values.

SPSS stores dates as seconds since midnight, 14 October 1582 (the first
full day of the Gregorian calendar). The conversion below splits the
offset from 1970-01-01 into days, hours, minutes and seconds the same way
earlier releases of this reader did, including the quirk that the
hundredths of a second always come out as zero.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from savkit.errors import FormatViolation

# Seconds between 1582-10-14 and 1970-01-01
GREGORIAN_OFFSET = 12219379200.0

UNIX_EPOCH = datetime(1970, 1, 1)

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Index 0 is Sunday, matching SPSS weekday numbering (1 = Sunday)
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def split_spss_seconds(value: float) -> tuple[int, int, int, int, int]:
    """Split an SPSS date number into offsets from 1970-01-01.

    Returns:
        Tuple of (days, hours, minutes, seconds, hundredths). Each part is
        truncated toward zero; hundredths are always 0.
    """
    remaining = value - GREGORIAN_OFFSET
    days = int(remaining / 86400.0)
    remaining -= days * 86400.0
    hours = int(remaining / 3600.0)
    remaining -= hours * 3600.0
    minutes = int(remaining / 60.0)
    remaining -= minutes * 60.0
    seconds = int(remaining)
    # the fractional part is truncated before scaling, so this is always 0
    hundredths = int(remaining - seconds) * 100
    return days, hours, minutes, seconds, hundredths


def spss_to_datetime(value: float) -> tuple[datetime, int]:
    """Convert an SPSS date number to a naive datetime.

    Args:
        value: Seconds since 1582-10-14 00:00:00.

    Returns:
        Tuple of (datetime, hundredths of a second).

    Raises:
        FormatViolation: If the value lies outside the years 1..9999.
    """
    try:
        days, hours, minutes, seconds, hundredths = split_spss_seconds(value)
        moment = UNIX_EPOCH + timedelta(
            days=days, hours=hours, minutes=minutes, seconds=seconds
        )
    except OverflowError as e:
        raise FormatViolation(f"Date value {value!r} is outside the supported calendar") from e
    return moment, hundredths
