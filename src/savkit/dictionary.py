"""Dictionary assembly: from raw records to logical variables.

The dictionary is a sequence of tagged records::

    header (1) -> variable (2)+ -> {value labels (3+4) | document (6) | extension (7)}* -> 999

``DictionaryLoader`` walks that sequence by peeking each 4-byte tag,
rewinding, and handing the stream to the matching record reader. While it
goes it builds the ordered variable list, attaches missing values and
labels, applies long names, folds very-long-string segments into their
owning variable and finally records where the data section starts.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from savkit.errors import FormatViolation, StructuralInconsistency
from savkit.io.byte_source import ByteSource
from savkit.models.variable import NumericVariable, SavVariable, StringVariable, Variable
from savkit.records.document import DocumentRecord
from savkit.records.extension import (
    DisplayParamsRecord,
    ExtensionRecord,
    LongNamesRecord,
    LongStringLabelsRecord,
    MachineFloatInfo,
    MachineIntegerInfo,
    UnknownExtension,
    VariableSets,
    VeryLongStringsRecord,
    read_extension,
)
from savkit.records.header import UNKNOWN_CASE_SIZE, FileHeader
from savkit.records.value_labels import ValueLabelRecord, VariableIndexRecord
from savkit.records.variable import VariableRecord

VARIABLE_TAG = 2
VALUE_LABEL_TAG = 3
DOCUMENT_TAG = 6
EXTENSION_TAG = 7
TERMINATOR_TAG = 999


class SavDictionary(BaseModel):
    """Everything decoded from the dictionary section of a file."""

    header: FileHeader
    variables: list[Variable] = Field(
        default_factory=list, description="Logical variables in dictionary order"
    )
    records: list[VariableRecord] = Field(
        default_factory=list, description="Every variable record, continuations included"
    )
    documents: list[str] = Field(default_factory=list, description="Document lines")
    integer_info: MachineIntegerInfo | None = None
    float_info: MachineFloatInfo | None = None
    variable_sets: str | None = None
    unknown_extensions: list[UnknownExtension] = Field(default_factory=list)
    data_start: int = Field(..., ge=0, description="Byte offset of the first data record")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def weight_variable(self) -> Variable | None:
        """The variable whose first block is at the header's weight index."""
        index = self.header.weight_index
        if index <= 0:
            return None
        block = 1
        for variable in self.variables:
            if block == index:
                return variable
            block += variable.block_count + sum(s.block_count for s in _segments(variable))
        return None


def _segments(variable: SavVariable) -> list[SavVariable]:
    return variable.segments if isinstance(variable, StringVariable) else []


class DictionaryLoader:
    """Reads the dictionary section from a ``ByteSource`` positioned at offset 0.

    One loader is used for one file. ``load`` leaves the source positioned
    at the first byte of the data section.
    """

    def __init__(self, source: ByteSource) -> None:
        self._source = source
        self._variables: list[SavVariable] = []
        # 0-based position among all variable records (continuations included)
        self._slots: dict[int, SavVariable] = {}
        self._short_names: dict[str, SavVariable] = {}
        self._documents: list[str] = []
        self._integer_info: MachineIntegerInfo | None = None
        self._float_info: MachineFloatInfo | None = None
        self._variable_sets: str | None = None
        self._unknown: list[UnknownExtension] = []

    def load(self) -> SavDictionary:
        """Decode every dictionary record up to and including the terminator.

        Returns:
            The assembled dictionary.

        Raises:
            FormatViolation: On any malformed record or unexpected tag.
            StructuralInconsistency: When records contradict each other.
            SavIOError: If the file ends inside the dictionary.
        """
        source = self._source
        header = FileHeader.read(source)

        records = [VariableRecord.read(source)]
        while source.peek_int32() == VARIABLE_TAG:
            records.append(VariableRecord.read(source))
        for slot, record in enumerate(records):
            if record.is_continuation:
                continue
            variable = self._create_variable(record, len(self._variables) + 1)
            self._variables.append(variable)
            self._slots[slot] = variable

        if header.nominal_case_size == UNKNOWN_CASE_SIZE:
            header.nominal_case_size = len(records)

        while True:
            offset = source.position()
            tag = source.peek_int32()
            if tag == VALUE_LABEL_TAG:
                labels = ValueLabelRecord.read(source)
                index = VariableIndexRecord.read(source)
                self._merge_value_labels(labels, index, len(records))
            elif tag == DOCUMENT_TAG:
                self._documents.extend(DocumentRecord.read(source).lines)
            elif tag == EXTENSION_TAG:
                self._apply_extension(read_extension(source))
            elif tag == TERMINATOR_TAG:
                source.read_int32()
                filler = source.read_int32()
                if filler != 0:
                    raise FormatViolation(
                        f"Dictionary terminator must be followed by 0, found {filler}",
                        offset=offset,
                    )
                break
            else:
                raise FormatViolation(f"Invalid record type [{tag}]", offset=offset)

        dictionary = SavDictionary(
            header=header,
            variables=self._variables,
            records=records,
            documents=self._documents,
            integer_info=self._integer_info,
            float_info=self._float_info,
            variable_sets=self._variable_sets,
            unknown_extensions=self._unknown,
            data_start=source.position(),
        )
        logger.info(
            "Dictionary loaded: {} variables, {} cases, data at byte {}",
            len(dictionary.variables),
            header.case_count,
            dictionary.data_start,
        )
        return dictionary

    # -- variables -----------------------------------------------------------

    def _create_variable(self, record: VariableRecord, number: int) -> SavVariable:
        common = {
            "number": number,
            "short_name": record.name,
            "name": record.name,
            "label": record.label,
            "type_code": record.type_code,
            "print_format": record.print_format,
            "write_format": record.write_format,
            "missing_format": record.missing_format,
        }
        variable: SavVariable
        if record.is_numeric:
            variable = NumericVariable(**common)
        else:
            variable = StringVariable(width=record.type_code, **common)
        variable.bind_codec(self._source.byte_order, self._source.encoding)

        code = record.missing_format
        if code > 0:
            for raw in record.missing_values:
                self._add_missing_value(variable, raw)
        elif code <= -2:
            if not isinstance(variable, NumericVariable):
                raise FormatViolation(
                    f"String variable {record.name!r} declares a missing value range",
                    offset=record.offset,
                )
            low, high = (variable.coerce(raw) for raw in record.missing_values[:2])
            variable.add_missing_range(low, high)
            if code == -3:
                self._add_missing_value(variable, record.missing_values[2])
        return variable

    @staticmethod
    def _add_missing_value(variable: SavVariable, raw: bytes) -> None:
        value = variable.coerce(raw)
        variable.missing.discrete.append(value.rstrip() if isinstance(value, str) else value)
        variable.add_category(raw, "").is_missing = True

    def _merge_value_labels(
        self, labels: ValueLabelRecord, index: VariableIndexRecord, record_count: int
    ) -> None:
        for position in index.indices:
            variable = self._slots.get(position - 1)
            if variable is None:
                raise StructuralInconsistency(
                    f"Value labels at byte {labels.offset} refer to dictionary entry {position}, "
                    f"which is not a variable (1..{record_count})"
                )
            for item in labels.labels:
                category = variable.add_category(item.raw_value, item.label)
                if isinstance(variable, NumericVariable):
                    category.is_missing = variable.is_missing_value(category.value)

    # -- extensions ----------------------------------------------------------

    def _apply_extension(self, record: ExtensionRecord) -> None:
        if isinstance(record, MachineIntegerInfo):
            self._integer_info = record
        elif isinstance(record, MachineFloatInfo):
            self._float_info = record
        elif isinstance(record, VariableSets):
            self._variable_sets = record.text
        elif isinstance(record, DisplayParamsRecord):
            self._apply_display_params(record)
        elif isinstance(record, LongNamesRecord):
            self._apply_long_names(record)
        elif isinstance(record, VeryLongStringsRecord):
            self._apply_string_lengths(record)
        elif isinstance(record, LongStringLabelsRecord):
            self._apply_long_string_labels(record)
        else:
            self._unknown.append(record)

    def _apply_display_params(self, record: DisplayParamsRecord) -> None:
        if len(record.params) > len(self._variables):
            raise StructuralInconsistency(
                f"{len(record.params)} display parameter entries for "
                f"{len(self._variables)} variables"
            )
        for variable, params in zip(self._variables, record.params):
            variable.display = params

    def _apply_long_names(self, record: LongNamesRecord) -> None:
        """Rename variables and fold unnamed entries into the preceding string."""
        kept: list[SavVariable] = []
        owner: SavVariable | None = None
        removed = 0
        for variable in self._variables:
            long_name = record.names.get(variable.short_name)
            if long_name:
                variable.name = long_name
                variable.number -= removed
                self._short_names[variable.short_name] = variable
                kept.append(variable)
                owner = variable
                continue
            if not isinstance(owner, StringVariable):
                where = f"after {owner.name!r}" if owner is not None else "at the start"
                raise StructuralInconsistency(
                    f"Variable {variable.short_name!r} has no long name and no owning string "
                    f"variable {where}"
                )
            owner.segments.append(variable)
            removed += 1

        kept_ids = {id(v) for v in kept}
        self._slots = {slot: v for slot, v in self._slots.items() if id(v) in kept_ids}
        self._variables = kept
        if removed:
            logger.debug("Folded {} very long string segments into their owners", removed)

    def _apply_string_lengths(self, record: VeryLongStringsRecord) -> None:
        for short_name, length in record.lengths.items():
            variable = self._short_names.get(short_name) or self._find(short_name=short_name)
            if isinstance(variable, StringVariable):
                variable.width = length
            else:
                logger.warning("Very long string length given for unknown string {}", short_name)

    def _apply_long_string_labels(self, record: LongStringLabelsRecord) -> None:
        for label_set in record.sets:
            variable = self._find(name=label_set.name)
            if variable is None:
                raise StructuralInconsistency(
                    f"Long string value labels refer to unknown variable {label_set.name!r}"
                )
            if not isinstance(variable, StringVariable):
                raise StructuralInconsistency(
                    f"Long string value labels refer to numeric variable {label_set.name!r}"
                )
            for value, label in label_set.labels:
                variable.add_category(value, label)

    def _find(self, *, name: str | None = None, short_name: str | None = None) -> SavVariable | None:
        for variable in self._variables:
            if name is not None and variable.name == name:
                return variable
            if short_name is not None and variable.short_name == short_name:
                return variable
        return None


def load_dictionary(source: ByteSource) -> SavDictionary:
    """Read the dictionary section of the file behind ``source``."""
    return DictionaryLoader(source).load()
