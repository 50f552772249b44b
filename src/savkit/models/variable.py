"""Logical variables decoded from the dictionary.

A variable is either numeric or string. Both share identity, display
metadata, a missing-value rule and an ordered category map keyed by a
canonical string: the trimmed display text for numbers, the right-trimmed
value for strings. String variables additionally own the hidden segment
entries that very long strings are split into on disk.
"""

from __future__ import annotations

import math
import struct
from abc import abstractmethod
from enum import IntEnum
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, PrivateAttr

from savkit.errors import SessionStateError
from savkit.formatting.values import fit_numeric_field, fit_string_field, format_numeric
from savkit.models.formats import FormatSpec
from savkit.models.options import FormatOptions

# Ranges wider than this are kept as a predicate only, without one
# synthesized category per integer.
MAX_ENUMERATED_RANGE = 1000


class Measure(IntEnum):
    NOMINAL = 1
    ORDINAL = 2
    SCALE = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Alignment(IntEnum):
    LEFT = 0
    RIGHT = 1
    CENTER = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


class DisplayParams(BaseModel):
    """One entry of the display parameter extension record."""

    measure: int = Field(..., description="1 nominal, 2 ordinal, 3 scale")
    width: int = Field(..., description="Display column width")
    alignment: int = Field(..., description="0 left, 1 right, 2 center")


class Category(BaseModel):
    """A labelled (or missing) value of a variable."""

    key: str = Field(..., description="Canonical lookup key")
    value: float | str = Field(..., description="Decoded value")
    label: str = Field(default="", description="Value label, empty for unlabelled missing values")
    is_missing: bool = Field(default=False, description="Whether the value is user-missing")


class MissingValueRule(BaseModel):
    """User-missing values: up to three discrete values, a range, or a range plus one value."""

    discrete: list[float | str] = Field(default_factory=list)
    low: float | None = Field(default=None, description="Inclusive lower bound of the range")
    high: float | None = Field(default=None, description="Inclusive upper bound of the range")

    @property
    def has_range(self) -> bool:
        return self.low is not None and self.high is not None

    def in_range(self, value: float) -> bool:
        if not self.has_range or isinstance(value, str) or math.isnan(value):
            return False
        return self.low <= value <= self.high

    def matches(self, value: float | str) -> bool:
        """Strings compare case-sensitively with trailing blanks ignored."""
        if isinstance(value, str):
            trimmed = value.rstrip()
            return any(isinstance(d, str) and d.rstrip() == trimmed for d in self.discrete)
        if math.isnan(value):
            return False
        return value in self.discrete or self.in_range(value)


class SavVariable(BaseModel):
    """Fields and behavior shared by numeric and string variables."""

    number: int = Field(..., ge=1, description="1-based position among logical variables")
    short_name: str = Field(..., description="8-character name from the variable record")
    name: str = Field(..., description="Long name; equals the short name unless renamed")
    label: str = Field(default="")
    type_code: int = Field(..., description="On-disk type code: 0 numeric, else string width")
    print_format: FormatSpec
    write_format: FormatSpec
    missing_format: int = Field(default=0, description="Missing value format code (-3..3)")
    missing: MissingValueRule = Field(default_factory=MissingValueRule)
    display: DisplayParams | None = None
    categories: dict[str, Category] = Field(default_factory=dict)

    _byte_order: str = PrivateAttr(default="<")
    _encoding: str = PrivateAttr(default="latin-1")

    def bind_codec(self, byte_order: str, encoding: str) -> None:
        """Remember how raw 8-byte values of this variable are decoded."""
        self._byte_order = byte_order
        self._encoding = encoding

    # -- shape ---------------------------------------------------------------

    @property
    def block_count(self) -> int:
        """Number of 8-byte blocks one value occupies in a data record."""
        return 1

    @property
    def decimals(self) -> int:
        return self.write_format.decimals

    @property
    def spss_format(self) -> str:
        return self.write_format.spss_name

    @property
    def measure_label(self) -> str:
        if self.display is None:
            return ""
        try:
            return Measure(self.display.measure).label
        except ValueError:
            return ""

    @property
    def alignment_label(self) -> str:
        if self.display is None:
            return ""
        try:
            return Alignment(self.display.alignment).label
        except ValueError:
            return ""

    @property
    def has_value_labels(self) -> bool:
        return any(c.label for c in self.categories.values())

    # -- categories ----------------------------------------------------------

    @abstractmethod
    def coerce(self, raw: bytes | float | str) -> float | str:
        """Decode raw on-disk bytes, or normalize an already decoded value."""

    @abstractmethod
    def key_for(self, value: float | str) -> str:
        """Canonical category key of a decoded value."""

    def add_category(self, raw: bytes | float | str, label: str) -> Category:
        """Insert or relabel the category for ``raw``; insertion order is kept."""
        value = self.coerce(raw)
        key = self.key_for(value)
        category = self.categories.get(key)
        if category is None:
            category = Category(key=key, value=value, label=label)
            self.categories[key] = category
        else:
            category.label = label
        return category

    def category(self, raw: bytes | float | str) -> Category | None:
        """Look up a category by raw on-disk bytes or by a decoded value."""
        return self.categories.get(self.key_for(self.coerce(raw)))

    def is_missing_value(self, value: float | str) -> bool:
        return self.missing.matches(value)

    # -- values --------------------------------------------------------------

    def output_width(self, options: FormatOptions | None = None) -> int:
        return self.write_format.width

    @abstractmethod
    def value_as_text(self, observation: int, options: FormatOptions) -> str:
        """Render observation ``observation`` (0 for the current disk record)."""

    @abstractmethod
    def clear_data(self) -> None:
        """Drop bulk-loaded values."""


class NumericVariable(SavVariable):
    """A numeric variable; every value is one 8-byte IEEE double."""

    kind: Literal["numeric"] = "numeric"
    value: float | None = Field(default=None, description="Value of the current disk record")
    data: list[float] = Field(default_factory=list, description="Values loaded in bulk")

    def coerce(self, raw: bytes | float | str) -> float:
        if isinstance(raw, bytes):
            return struct.unpack(self._byte_order + "d", raw)[0]
        return float(raw)

    def key_for(self, value: float | str) -> str:
        return self.value_to_text(float(value)).strip()

    def value_to_text(self, value: float) -> str:
        """Render ``value`` the way SPSS displays it under this variable's write format."""
        return format_numeric(value, self.write_format, variable=self.name)

    def add_missing_range(self, low: float, high: float) -> None:
        """Record a missing range and synthesize a category for each integer in it."""
        self.missing.low = low
        self.missing.high = high
        if not (math.isfinite(low) and math.isfinite(high)) or high - low > MAX_ENUMERATED_RANGE:
            logger.warning(
                "Missing range {} thru {} of {} is too wide to enumerate as categories",
                low,
                high,
                self.name,
            )
            return
        start, stop = int(low), int(high)
        for number in range(start, stop + 1):
            self.add_category(float(number), "").is_missing = True

    def observation(self, index: int) -> float:
        return _pick_observation(self, index)

    def value_as_text(self, observation: int, options: FormatOptions) -> str:
        value = self.observation(observation)
        return fit_numeric_field(
            self.value_to_text(value), value, self.write_format, options.output_kind
        )

    def clear_data(self) -> None:
        self.data = []


class StringVariable(SavVariable):
    """A string variable.

    ``type_code`` is the on-disk width of this entry and drives decoding;
    ``width`` is the logical width, which the very-long-string record can
    raise above 255. ``segments`` are the hidden entries whose values are
    appended to this variable's value.
    """

    kind: Literal["string"] = "string"
    width: int = Field(..., ge=0, description="Logical string width in bytes")
    segments: list[SavVariable] = Field(default_factory=list)
    value: str | None = Field(default=None, description="Value of the current disk record")
    data: list[str] = Field(default_factory=list, description="Values loaded in bulk")

    @property
    def block_count(self) -> int:
        return (self.type_code - 1) // 8 + 1

    @property
    def spss_format(self) -> str:
        return f"A{self.width}"

    def coerce(self, raw: bytes | float | str) -> str:
        if isinstance(raw, bytes):
            return raw.decode(self._encoding, errors="replace")
        return str(raw)

    def key_for(self, value: float | str) -> str:
        return str(value).rstrip()

    def output_width(self, options: FormatOptions | None = None) -> int:
        return self.width

    def observation(self, index: int) -> str:
        return _pick_observation(self, index)

    def value_as_text(self, observation: int, options: FormatOptions) -> str:
        return fit_string_field(self.observation(observation), self.width, options.output_kind)

    def clear_data(self) -> None:
        self.data = []


Variable = NumericVariable | StringVariable


def _pick_observation(variable: NumericVariable | StringVariable, index: int) -> float | str:
    """Return the current disk value for 0, else the ``index``-th loaded value."""
    if index == 0:
        if variable.value is None:
            raise SessionStateError(f"No record has been read from disk for {variable.name!r}")
        return variable.value
    if not variable.data:
        raise SessionStateError("No data available; load the data section first")
    if index < 1 or index > len(variable.data):
        raise SessionStateError(
            f"Invalid observation number [{index}]. Range is 1 to {len(variable.data)}"
        )
    return variable.data[index - 1]
