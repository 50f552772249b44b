"""Exception hierarchy for .sav decoding.

Every failure in the decoder is fatal for the load or read in progress.
Nothing here is retried or recovered; callers get the offset and the
expected-vs-actual values needed to diagnose a malformed file.
"""

from __future__ import annotations


class SavError(Exception):
    """Base class for all errors raised while decoding a .sav file."""


class FormatViolation(SavError):
    """The bytes on disk do not follow the system file grammar.

    Raised for a bad magic signature, an unexpected record tag, inconsistent
    element sizes or counts, and compression byte-codes that are illegal
    for the variable being decoded.
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)


class UnknownFormatError(FormatViolation):
    """A variable's write-format code has no text conversion rule."""

    def __init__(self, format_type: int, variable: str | None = None) -> None:
        self.format_type = format_type
        self.variable = variable
        where = f" for variable {variable!r}" if variable else ""
        super().__init__(f"Unknown write format type [{format_type}]{where}")


class StructuralInconsistency(SavError):
    """Dictionary records are individually valid but do not fit together.

    Examples: a very-long-string segment with no owning string variable,
    a long-string label set naming a variable that does not exist, or a
    value-label index pointing past the end of the dictionary.
    """


class SavIOError(SavError, OSError):
    """The byte source returned fewer bytes than requested."""

    def __init__(self, offset: int, requested: int, obtained: int) -> None:
        self.offset = offset
        self.requested = requested
        self.obtained = obtained
        super().__init__(
            f"Short read at byte offset {offset}: requested {requested} bytes, got {obtained}"
        )


class SessionStateError(SavError):
    """An operation was invoked in the wrong session state.

    Loading the dictionary twice, reading data before the dictionary, or
    asking for an observation that was never loaded all raise this.
    """
