"""Decoding session over one .sav file.

A session owns the byte source, the decoded dictionary and the compression
state of its data reader. Typical use::

    with open_session("survey.sav") as session:
        session.load_dictionary()
        session.load_all_data()
        text = session.variable(0).value_as_text(1, FormatOptions())
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any, BinaryIO

from loguru import logger

from savkit.data import DataRecordDecoder, load_records
from savkit.dictionary import SavDictionary, load_dictionary
from savkit.errors import SessionStateError
from savkit.io.byte_source import DEFAULT_ENCODING, ByteSource
from savkit.models.options import FormatOptions
from savkit.models.variable import Variable


class SavSession:
    """Reads the dictionary and records of one system file.

    The dictionary is loaded once. Records can then be streamed from disk
    one at a time into each variable's ``value`` slot, or bulk-loaded into
    each variable's ``data`` list. Mixing the two requires a rewind, which
    ``read_one_record(rewind=True)`` and ``load_all_data`` both perform.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        name: str = "",
        owns_stream: bool = False,
    ) -> None:
        self.source = source
        self.name = name
        self._owns_stream = owns_stream
        self._dictionary: SavDictionary | None = None
        self._decoder: DataRecordDecoder | None = None
        self._records_loaded = 0

    # -- context management --------------------------------------------------

    def __enter__(self) -> SavSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying file if this session opened it."""
        if self._owns_stream:
            self.source.close()

    # -- dictionary ----------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._dictionary is not None

    @property
    def dictionary(self) -> SavDictionary:
        if self._dictionary is None:
            raise SessionStateError("Dictionary has not been loaded")
        return self._dictionary

    def load_dictionary(self) -> SavDictionary:
        """Decode the dictionary section.

        Raises:
            SessionStateError: If the dictionary was already loaded.
            FormatViolation: On malformed records.
            StructuralInconsistency: When records contradict each other.
        """
        if self._dictionary is not None:
            raise SessionStateError("Dictionary has already been loaded")
        self.source.seek(0)
        dictionary = load_dictionary(self.source)
        self._dictionary = dictionary
        self._decoder = DataRecordDecoder(
            self.source,
            dictionary.variables,
            compressed=dictionary.header.compressed,
            bias=dictionary.header.bias,
        )
        return dictionary

    @property
    def variables(self) -> list[Variable]:
        return self.dictionary.variables

    @property
    def variable_count(self) -> int:
        return len(self.dictionary.variables)

    def variable(self, index: int) -> Variable | None:
        """Return the variable at 0-based ``index``, or None when out of range."""
        variables = self.dictionary.variables
        if 0 <= index < len(variables):
            return variables[index]
        return None

    def variable_by_name(self, name: str) -> Variable | None:
        """Find a variable by long name, falling back to the short name."""
        for variable in self.dictionary.variables:
            if variable.name == name:
                return variable
        for variable in self.dictionary.variables:
            if variable.short_name == name:
                return variable
        return None

    @property
    def is_compressed(self) -> bool:
        return self.dictionary.header.compressed

    @property
    def case_count(self) -> int:
        """Cases declared in the header, or the number bulk-loaded if it was unknown."""
        declared = self.dictionary.header.case_count
        return declared if declared >= 0 else self._records_loaded

    # -- data ----------------------------------------------------------------

    def _require_decoder(self) -> DataRecordDecoder:
        if self._decoder is None:
            raise SessionStateError("Dictionary has not been loaded")
        return self._decoder

    def load_all_data(self) -> int:
        """Decode every record into the variables' ``data`` lists.

        Any previously bulk-loaded values are discarded first.

        Returns:
            Number of records loaded.
        """
        decoder = self._require_decoder()
        dictionary = self.dictionary
        for variable in dictionary.variables:
            variable.clear_data()
        self._records_loaded = load_records(
            decoder, dictionary.data_start, dictionary.header.case_count
        )
        logger.info("Loaded {} records from {}", self._records_loaded, self.name or "stream")
        return self._records_loaded

    def read_one_record(self, rewind: bool = False) -> None:
        """Decode the next record from disk into the variables' ``value`` slots.

        Args:
            rewind: Start again from the first record, resetting the
                compression state.
        """
        decoder = self._require_decoder()
        if rewind:
            decoder.rewind(self.dictionary.data_start)
        decoder.read_record(append=False)

    # -- text ----------------------------------------------------------------

    def header_row(self, options: FormatOptions) -> str:
        return options.separator.join(v.name for v in self.variables)

    def record_as_text(self, observation: int, options: FormatOptions) -> str:
        """Render one record: 0 for the current disk record, else a bulk-loaded one."""
        return options.separator.join(
            v.value_as_text(observation, options) for v in self.variables
        )

    def iter_records(self, options: FormatOptions) -> Iterator[str]:
        """Stream every record from disk as text, starting from the first."""
        decoder = self._require_decoder()
        declared = self.dictionary.header.case_count
        decoder.rewind(self.dictionary.data_start)
        index = 0
        while (index < declared) if declared >= 0 else not decoder.at_end():
            decoder.read_record(append=False)
            yield self.record_as_text(0, options)
            index += 1

    def summary(self) -> dict[str, Any]:
        """Plain-data description of the file and its variables."""
        dictionary = self.dictionary
        header = dictionary.header
        return {
            "file": self.name,
            "product": header.product,
            "created": f"{header.creation_date} {header.creation_time}".strip(),
            "label": header.file_label,
            "compressed": header.compressed,
            "big_endian": header.big_endian,
            "cases": header.case_count,
            "case_size": header.nominal_case_size,
            "weight": dictionary.weight_variable.name if dictionary.weight_variable else None,
            "documents": dictionary.documents,
            "machine": dictionary.integer_info.model_dump() if dictionary.integer_info else None,
            "variables": [
                {
                    "number": v.number,
                    "name": v.name,
                    "short_name": v.short_name,
                    "kind": v.kind,
                    "format": v.spss_format,
                    "label": v.label,
                    "measure": v.measure_label,
                    "alignment": v.alignment_label,
                    "categories": {k: c.label for k, c in v.categories.items()},
                    "missing": [k for k, c in v.categories.items() if c.is_missing],
                }
                for v in dictionary.variables
            ],
        }


def open_session(
    source: str | Path | BinaryIO, encoding: str = DEFAULT_ENCODING
) -> SavSession:
    """Open a decoding session.

    Args:
        source: Path to a .sav file, or a seekable binary file object.
        encoding: Character set for names, labels and string values.

    Returns:
        A session whose dictionary has not been loaded yet.

    Raises:
        FileNotFoundError: If ``source`` is a path that does not exist.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"SPSS file not found: {path}")
        logger.info("Opening SPSS file: {}", path.name)
        return SavSession(
            ByteSource(path.open("rb"), encoding=encoding), name=path.name, owns_stream=True
        )
    name = getattr(source, "name", "")
    return SavSession(
        ByteSource(source, encoding=encoding),
        name=Path(name).name if isinstance(name, str) and name else "",
    )
