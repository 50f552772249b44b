"""Print/write format codes as stored in variable descriptors.

A format is packed into one 32-bit integer: the low byte holds the number
of decimals, then the field width, then the format type, and the high byte
is reserved (always zero in files written by SPSS).
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, Field


class FormatType(IntEnum):
    """SPSS format type codes."""

    CONTINUATION = 0
    A = 1
    AHEX = 2
    COMMA = 3
    DOLLAR = 4
    F = 5
    IB = 6
    PIBHEX = 7
    P = 8
    PIB = 9
    PK = 10
    RB = 11
    RBHEX = 12
    Z = 15
    N = 16
    E = 17
    DATE = 20
    TIME = 21
    DATETIME = 22
    ADATE = 23
    JDATE = 24
    DTIME = 25
    WKDAY = 26
    MONTH = 27
    MOYR = 28
    QYR = 29
    WKYR = 30
    PCT = 31
    DOT = 32
    CCA = 33
    CCB = 34
    CCC = 35
    CCD = 36
    CCE = 37
    EDATE = 38
    SDATE = 39


FORMAT_TYPE_LABELS: dict[int, str] = {
    0: "Continuation of string variable",
    1: "Alphanumeric",
    2: "Alphanumeric hexadecimal",
    3: "F format with comma",
    4: "Dollar format",
    5: "F (default numeric) format",
    6: "Integer binary",
    7: "Positive integer binary - hexadecimal",
    8: "Packed decimal",
    9: "Positive integer binary (unsigned)",
    10: "Positive packed decimal (unsigned)",
    11: "Floating point binary",
    12: "Floating point binary - hex",
    15: "Zoned decimal",
    16: "N format - unsigned with leading zeroes",
    17: "E format - with explicit power of 10",
    20: "Date format dd-mmm-yyyy",
    21: "Time format hh:mm:ss.s",
    22: "Date and time",
    23: "Date in mm/dd/yyyy form",
    24: "Julian date - yyyyddd",
    25: "Date-time dd hh:mm:ss.s",
    26: "Day of the week",
    27: "Month",
    28: "mmm yyyy",
    29: "q Q yyyy",
    30: "ww WK yyyy",
    31: "Percent - F followed by '%'",
    32: "Like COMMA, switching dot for comma",
    33: "User-programmable currency format (1)",
    34: "User-programmable currency format (2)",
    35: "User-programmable currency format (3)",
    36: "User-programmable currency format (4)",
    37: "User-programmable currency format (5)",
    38: "Date in dd.mm.yyyy style",
    39: "Date in yyyy/mm/dd style",
}

# Format types whose SPSS name carries a ".decimals" suffix
_DECIMAL_TYPES = frozenset({3, 4, 5, 16, 17, 21, 22, 25, 31, 32, 33, 34, 35, 36, 37})


class FormatSpec(BaseModel):
    """One decoded print or write format."""

    decimals: int = Field(..., ge=0, le=255, description="Number of decimal places")
    width: int = Field(..., ge=0, le=255, description="Display field width")
    format_type: int = Field(..., ge=0, le=255, description="SPSS format type code")
    reserved: int = Field(default=0, description="High byte of the packed code (normally 0)")

    @classmethod
    def from_code(cls, code: int) -> FormatSpec:
        """Split a packed 32-bit format code into its four byte fields."""
        return cls(
            decimals=code & 0xFF,
            width=(code >> 8) & 0xFF,
            format_type=(code >> 16) & 0xFF,
            reserved=(code >> 24) & 0xFF,
        )

    @property
    def type_code(self) -> str:
        """SPSS keyword for the format type, e.g. ``F`` or ``DATE``."""
        try:
            return FormatType(self.format_type).name if self.format_type else ""
        except ValueError:
            return "UNK"

    @property
    def type_label(self) -> str:
        return FORMAT_TYPE_LABELS.get(self.format_type, "Unknown")

    @property
    def spss_name(self) -> str:
        """Render as SPSS syntax, e.g. ``F8.2``, ``COMMA10.2``, ``DATE11``, ``A20``."""
        if self.format_type in _DECIMAL_TYPES:
            return f"{self.type_code}{self.width}.{self.decimals}"
        return f"{self.type_code}{self.width}"
