"""Outputs built on a decoded session: ASCII files, DDI codebooks, DataFrames."""

from savkit.export.ascii import export_data
from savkit.export.ddi import build_ddi2, write_ddi2
from savkit.export.frame import to_dataframe

__all__ = [
    "export_data",
    "build_ddi2",
    "write_ddi2",
    "to_dataframe",
]
