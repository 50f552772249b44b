"""Decoding of observation records from the data section.

Uncompressed data is a flat sequence of 8-byte blocks. Compressed data is
organised in clusters: 8 one-byte codes followed by the raw blocks that
some of those codes refer to. A cluster can straddle two records, so the
codes not yet consumed are kept in a ``CompressionState`` that lives as
long as the session reading the file.

Byte codes:
    0        padding, ignored
    1..251   numeric value ``code - bias``
    252      end of data
    253      the value follows uncompressed
    254      numeric 0.0 or eight blanks
    255      system-missing
"""

from __future__ import annotations

from loguru import logger

from savkit.errors import FormatViolation
from savkit.io.byte_source import ByteSource
from savkit.models.variable import NumericVariable, SavVariable, StringVariable

BLOCK_SIZE = 8
CLUSTER_SIZE = 8

CODE_PADDING = 0
CODE_END_OF_DATA = 252
CODE_RAW = 253
CODE_BLANKS = 254
CODE_SYSMISS = 255

SYSMISS = float("nan")
_BLANK_BLOCK = b" " * BLOCK_SIZE


class CompressionState:
    """The current 8-code cluster and how many of its codes have been used."""

    def __init__(self) -> None:
        self.cluster = b""
        self.cursor = CLUSTER_SIZE

    def reset(self) -> None:
        """Forget the current cluster; the next code read fetches a fresh one."""
        self.cluster = b""
        self.cursor = CLUSTER_SIZE

    @property
    def pending(self) -> bytes:
        """Codes of the current cluster that have not been consumed yet."""
        return self.cluster[self.cursor :]

    def next_code(self, source: ByteSource) -> int:
        """Return the next byte code that is not padding, reading clusters as needed."""
        while True:
            if self.cursor >= CLUSTER_SIZE:
                self.cluster = source.read_bytes(CLUSTER_SIZE)
                self.cursor = 0
            code = self.cluster[self.cursor]
            self.cursor += 1
            if code != CODE_PADDING:
                return code


class DataRecordDecoder:
    """Reads whole observation records into the variables of a dictionary.

    Args:
        source: Byte source of the file, shared with the session.
        variables: Logical variables in dictionary order.
        compressed: Whether the data section uses byte-code compression.
        bias: Compression bias from the file header.
    """

    def __init__(
        self,
        source: ByteSource,
        variables: list[SavVariable],
        *,
        compressed: bool,
        bias: float,
    ) -> None:
        self._source = source
        self._variables = variables
        self.compressed = compressed
        self.bias = bias
        self.state = CompressionState()

    def rewind(self, data_start: int) -> None:
        """Position at the first record and drop any partially used cluster."""
        self._source.seek(data_start)
        self.state.reset()

    def at_end(self) -> bool:
        """True when no further record starts at the current position."""
        if self.compressed:
            codes = self.state.pending
            if not codes.strip(bytes([CODE_PADDING])):
                # the next record starts a fresh cluster; look at it without consuming
                codes = self._source.peek_bytes(CLUSTER_SIZE)
            if any(code not in (CODE_PADDING, CODE_END_OF_DATA) for code in codes):
                return False
            if CODE_END_OF_DATA in codes:
                return True
        return self._source.at_end()

    def read_record(self, *, append: bool) -> None:
        """Decode one observation.

        Args:
            append: When True each value is appended to the variable's
                ``data`` list (bulk mode); otherwise it replaces ``value``.

        Raises:
            FormatViolation: On a byte code that is illegal for the variable.
            SavIOError: If the data section ends mid-record.
        """
        for variable in self._variables:
            value = self._read_value(variable)
            if append:
                variable.data.append(value)
            else:
                variable.value = value

    def _read_value(self, variable: SavVariable) -> float | str:
        if isinstance(variable, NumericVariable):
            return self._read_number(variable)
        text = _trim_string(self._read_string(variable))
        if isinstance(variable, StringVariable) and variable.segments:
            parts = [text]
            parts.extend(_trim_string(self._read_string(s)) for s in variable.segments)
            text = _trim_string("".join(parts))
        return text

    def _read_number(self, variable: SavVariable) -> float:
        source = self._source
        if not self.compressed:
            return source.read_double()
        offset = source.position()
        code = self.state.next_code(source)
        if code == CODE_RAW:
            return source.read_double()
        if code == CODE_BLANKS:
            return 0.0
        if code == CODE_SYSMISS:
            return SYSMISS
        if code == CODE_END_OF_DATA:
            raise FormatViolation(
                f"Unexpected end of compressed data while reading {variable.name!r}",
                offset=offset,
            )
        return code - self.bias

    def _read_string(self, variable: SavVariable) -> str:
        source = self._source
        remaining = variable.type_code
        chunks: list[bytes] = []
        for _ in range(variable.block_count):
            take = min(BLOCK_SIZE, remaining)
            if not self.compressed:
                chunks.append(source.read_bytes(BLOCK_SIZE)[:take])
            else:
                offset = source.position()
                code = self.state.next_code(source)
                if code == CODE_RAW:
                    chunks.append(source.read_bytes(take))
                    source.skip(BLOCK_SIZE - take)
                elif code == CODE_BLANKS:
                    chunks.append(_BLANK_BLOCK[:take])
                elif code == CODE_END_OF_DATA:
                    raise FormatViolation(
                        f"Unexpected end of compressed data while reading {variable.name!r}",
                        offset=offset,
                    )
                elif code == CODE_SYSMISS:
                    raise FormatViolation(
                        f"System-missing code in string variable {variable.name!r}",
                        offset=offset,
                    )
                else:
                    raise FormatViolation(
                        f"Numeric byte code {code} in string variable {variable.name!r}",
                        offset=offset,
                    )
            remaining -= take
        return source.decode(b"".join(chunks))


def _trim_string(text: str) -> str:
    """Blank values become empty; otherwise only trailing whitespace is removed."""
    if not text.strip():
        return ""
    return text.rstrip()


def load_records(
    decoder: DataRecordDecoder, data_start: int, case_count: int
) -> int:
    """Bulk-load every record, starting from the top of the data section.

    A negative ``case_count`` means the header did not record it; records
    are then read until the data section is exhausted.

    Returns:
        Number of records read.
    """
    decoder.rewind(data_start)
    count = 0
    if case_count >= 0:
        for _ in range(case_count):
            decoder.read_record(append=True)
            count += 1
    else:
        while not decoder.at_end():
            decoder.read_record(append=True)
            count += 1
    logger.debug("Read {} records from byte {}", count, data_start)
    return count
