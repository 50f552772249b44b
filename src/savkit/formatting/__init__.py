"""Display text for decoded values."""

from savkit.formatting.calendar import spss_to_datetime
from savkit.formatting.values import (
    MISSING_TEXT,
    fit_numeric_field,
    fit_string_field,
    format_numeric,
)

__all__ = [
    "format_numeric",
    "fit_numeric_field",
    "fit_string_field",
    "spss_to_datetime",
    "MISSING_TEXT",
]
