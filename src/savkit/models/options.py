"""Output options for turning decoded values into text."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class OutputKind(StrEnum):
    """Layout of exported ASCII records."""

    FIXED = "fixed"
    DELIMITED = "delimited"
    CSV = "csv"


class FormatOptions(BaseModel):
    """How values are laid out when rendered as text.

    FIXED pads every value to its variable's width and concatenates them;
    DELIMITED trims numbers and joins fields with ``delimiter``; CSV joins
    with commas and quotes fields that need it.
    """

    output_kind: OutputKind = Field(default=OutputKind.FIXED, description="Record layout")
    delimiter: str = Field(
        default="\t", min_length=1, max_length=1, description="Field separator for DELIMITED"
    )
    include_header_row: bool = Field(
        default=True, description="Write a row of variable names before the data"
    )

    @property
    def separator(self) -> str:
        """String placed between fields of one record."""
        if self.output_kind == OutputKind.CSV:
            return ","
        if self.output_kind == OutputKind.DELIMITED:
            return self.delimiter
        return ""
