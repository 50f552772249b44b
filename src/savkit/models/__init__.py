"""Pydantic models for decoded .sav metadata.

Re-exported for convenient imports:
    from savkit.models import FormatSpec, NumericVariable, StringVariable
"""

from savkit.models.formats import FORMAT_TYPE_LABELS, FormatSpec, FormatType
from savkit.models.options import FormatOptions, OutputKind
from savkit.models.variable import (
    Alignment,
    Category,
    DisplayParams,
    Measure,
    MissingValueRule,
    NumericVariable,
    SavVariable,
    StringVariable,
    Variable,
)

__all__ = [
    # formats
    "FormatType",
    "FormatSpec",
    "FORMAT_TYPE_LABELS",
    # options
    "OutputKind",
    "FormatOptions",
    # variables
    "Measure",
    "Alignment",
    "DisplayParams",
    "Category",
    "MissingValueRule",
    "SavVariable",
    "NumericVariable",
    "StringVariable",
    "Variable",
]
