"""savkit: decoder for SPSS .sav system files.

Typical use:
    from savkit import open_session

    with open_session("survey.sav") as session:
        session.load_dictionary()
        session.load_all_data()
"""

from savkit.errors import (
    FormatViolation,
    SavError,
    SavIOError,
    SessionStateError,
    StructuralInconsistency,
    UnknownFormatError,
)
from savkit.models.options import FormatOptions, OutputKind
from savkit.session import SavSession, open_session

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "open_session",
    "SavSession",
    "FormatOptions",
    "OutputKind",
    "SavError",
    "FormatViolation",
    "UnknownFormatError",
    "StructuralInconsistency",
    "SavIOError",
    "SessionStateError",
]
