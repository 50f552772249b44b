"""Conversion of a decoded file to a pandas DataFrame."""

from __future__ import annotations

import pandas as pd

from savkit.models.variable import NumericVariable
from savkit.session import SavSession


def to_dataframe(session: SavSession) -> pd.DataFrame:
    """Bulk-load a session and return one column per logical variable.

    Numeric columns are float64 with NaN for system-missing; string columns
    hold Python strings. Column names are the long variable names, and the
    variable labels are kept in ``df.attrs["labels"]``.
    """
    if not session.is_loaded:
        session.load_dictionary()
    session.load_all_data()

    columns: dict[str, pd.Series] = {}
    for variable in session.variables:
        dtype = "float64" if isinstance(variable, NumericVariable) else "object"
        columns[variable.name] = pd.Series(variable.data, dtype=dtype, name=variable.name)

    df = pd.DataFrame(columns)
    df.attrs["labels"] = {v.name: v.label for v in session.variables}
    return df
