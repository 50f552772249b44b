"""Extension records (record type 7).

Every extension record starts with the tag 7, a subtype, the size of one
data element and the number of elements. Known subtypes are parsed into
their own models; anything else is kept as an opaque byte payload.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from savkit.errors import FormatViolation
from savkit.io.byte_source import ByteSource
from savkit.models.variable import DisplayParams

RECORD_TYPE = 7

MACHINE_INTEGER_INFO = 3
MACHINE_FLOAT_INFO = 4
VARIABLE_SETS = 5
DISPLAY_PARAMS = 11
LONG_NAMES = 13
VERY_LONG_STRINGS = 14
LONG_STRING_LABELS = 21


class ExtensionHeader(BaseModel):
    offset: int
    subtype: int
    element_size: int
    count: int

    @property
    def payload_size(self) -> int:
        return self.element_size * self.count


def read_extension_header(source: ByteSource, subtype: int | None = None) -> ExtensionHeader:
    """Read the 16-byte prefix shared by all extension records.

    Args:
        source: Positioned at the record's type tag.
        subtype: Expected subtype, or None to accept any.

    Raises:
        FormatViolation: If the tag is not 7 or the subtype does not match.
    """
    offset = source.position()
    record_type = source.read_int32()
    if record_type != RECORD_TYPE:
        raise FormatViolation(
            f"Expected extension record type {RECORD_TYPE}, found {record_type}", offset=offset
        )
    found = source.read_int32()
    if subtype is not None and found != subtype:
        raise FormatViolation(
            f"Expected extension subtype {subtype}, found {found}", offset=offset
        )
    return ExtensionHeader(
        offset=offset,
        subtype=found,
        element_size=source.read_int32(),
        count=source.read_int32(),
    )


def _expect(header: ExtensionHeader, element_size: int, count: int | None = None) -> None:
    if header.element_size != element_size:
        raise FormatViolation(
            f"Extension subtype {header.subtype}: element size {header.element_size}, "
            f"expected {element_size}",
            offset=header.offset,
        )
    if count is not None and header.count != count:
        raise FormatViolation(
            f"Extension subtype {header.subtype}: element count {header.count}, expected {count}",
            offset=header.offset,
        )


def _split_pairs(text: str) -> list[tuple[str, str]]:
    """Split ``key=value`` entries separated by tabs; malformed entries are ignored."""
    pairs: list[tuple[str, str]] = []
    for entry in text.split("\t"):
        parts = [p for p in entry.split("=") if p]
        if len(parts) >= 2:
            pairs.append((parts[0], parts[1]))
    return pairs


class MachineIntegerInfo(BaseModel):
    """Subtype 3: release and machine description."""

    release_major: int
    release_minor: int
    release_special: int
    machine_code: int
    float_representation: int = Field(..., description="1 IEEE 754, 2 IBM 370, 3 DEC VAX")
    compression_scheme: int
    endianness: int = Field(..., description="1 big-endian, 2 little-endian")
    character_code: int = Field(..., description="Character set / code page number")

    @classmethod
    def read(cls, source: ByteSource) -> MachineIntegerInfo:
        header = read_extension_header(source, MACHINE_INTEGER_INFO)
        _expect(header, 4, 8)
        values = [source.read_int32() for _ in range(8)]
        return cls(
            release_major=values[0],
            release_minor=values[1],
            release_special=values[2],
            machine_code=values[3],
            float_representation=values[4],
            compression_scheme=values[5],
            endianness=values[6],
            character_code=values[7],
        )


class MachineFloatInfo(BaseModel):
    """Subtype 4: special floating point values."""

    sysmiss: float
    highest: float
    lowest: float

    @classmethod
    def read(cls, source: ByteSource) -> MachineFloatInfo:
        header = read_extension_header(source, MACHINE_FLOAT_INFO)
        _expect(header, 8, 3)
        return cls(
            sysmiss=source.read_double(),
            highest=source.read_double(),
            lowest=source.read_double(),
        )


class VariableSets(BaseModel):
    """Subtype 5: variable set definitions, kept as text."""

    text: str

    @classmethod
    def read(cls, source: ByteSource) -> VariableSets:
        header = read_extension_header(source, VARIABLE_SETS)
        _expect(header, 1)
        return cls(text=source.read_text(header.count))


class DisplayParamsRecord(BaseModel):
    """Subtype 11: one (measure, width, alignment) triple per variable."""

    params: list[DisplayParams] = Field(default_factory=list)

    @classmethod
    def read(cls, source: ByteSource) -> DisplayParamsRecord:
        header = read_extension_header(source, DISPLAY_PARAMS)
        _expect(header, 4)
        if header.count % 3:
            raise FormatViolation(
                f"Display parameter count {header.count} is not a multiple of 3",
                offset=header.offset,
            )
        params = []
        for _ in range(header.count // 3):
            measure, width, alignment = (source.read_int32() for _ in range(3))
            params.append(DisplayParams(measure=measure, width=width, alignment=alignment))
        return cls(params=params)


class LongNamesRecord(BaseModel):
    """Subtype 13: map of short variable names to long names."""

    names: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def read(cls, source: ByteSource) -> LongNamesRecord:
        header = read_extension_header(source, LONG_NAMES)
        _expect(header, 1)
        return cls(names=dict(_split_pairs(source.read_text(header.count))))


class VeryLongStringsRecord(BaseModel):
    """Subtype 14: true widths of strings longer than 255 bytes."""

    lengths: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def read(cls, source: ByteSource) -> VeryLongStringsRecord:
        header = read_extension_header(source, VERY_LONG_STRINGS)
        _expect(header, 1)
        lengths: dict[str, int] = {}
        for name, length in _split_pairs(source.read_text(header.count)):
            digits = length.replace("\x00", "").strip()
            if not digits.isdigit():
                raise FormatViolation(
                    f"Very long string length {length!r} for {name!r} is not a number",
                    offset=header.offset,
                )
            lengths[name] = int(digits)
        return cls(lengths=lengths)


class LongStringLabelSet(BaseModel):
    name: str = Field(..., description="Long name of the labelled variable")
    width: int = Field(..., description="Declared width of the variable")
    labels: list[tuple[str, str]] = Field(default_factory=list, description="(value, label) pairs")


class LongStringLabelsRecord(BaseModel):
    """Subtype 21: value labels for strings wider than 8 bytes."""

    sets: list[LongStringLabelSet] = Field(default_factory=list)

    @classmethod
    def read(cls, source: ByteSource) -> LongStringLabelsRecord:
        header = read_extension_header(source, LONG_STRING_LABELS)
        _expect(header, 1)
        start = source.position()
        sets: list[LongStringLabelSet] = []
        while source.position() - start < header.count:
            name = source.read_text(source.read_int32())
            width = source.read_int32()
            label_count = source.read_int32()
            labels = []
            for _ in range(label_count):
                value = source.read_text(source.read_int32())
                label = source.read_text(source.read_int32())
                labels.append((value, label))
            sets.append(LongStringLabelSet(name=name, width=width, labels=labels))
        consumed = source.position() - start
        if consumed != header.count:
            raise FormatViolation(
                f"Long string label record declared {header.count} bytes but used {consumed}",
                offset=header.offset,
            )
        return cls(sets=sets)


class UnknownExtension(BaseModel):
    """Any other subtype, kept as raw bytes."""

    subtype: int
    element_size: int
    count: int
    payload: bytes

    @classmethod
    def read(cls, source: ByteSource) -> UnknownExtension:
        header = read_extension_header(source)
        payload = source.read_bytes(header.payload_size)
        logger.debug(
            "Skipping extension subtype {} ({} x {} bytes)",
            header.subtype,
            header.count,
            header.element_size,
        )
        return cls(
            subtype=header.subtype,
            element_size=header.element_size,
            count=header.count,
            payload=payload,
        )


ExtensionRecord = (
    MachineIntegerInfo
    | MachineFloatInfo
    | VariableSets
    | DisplayParamsRecord
    | LongNamesRecord
    | VeryLongStringsRecord
    | LongStringLabelsRecord
    | UnknownExtension
)

_READERS: dict[int, type[BaseModel]] = {
    MACHINE_INTEGER_INFO: MachineIntegerInfo,
    MACHINE_FLOAT_INFO: MachineFloatInfo,
    VARIABLE_SETS: VariableSets,
    DISPLAY_PARAMS: DisplayParamsRecord,
    LONG_NAMES: LongNamesRecord,
    VERY_LONG_STRINGS: VeryLongStringsRecord,
    LONG_STRING_LABELS: LongStringLabelsRecord,
}


def read_extension(source: ByteSource) -> ExtensionRecord:
    """Peek the subtype of the extension record at the current position and decode it.

    The position is rewound after peeking so the subtype reader validates
    the full record prefix itself.
    """
    start = source.position()
    source.read_int32()
    subtype = source.read_int32()
    source.seek(start)
    reader = _READERS.get(subtype, UnknownExtension)
    record = reader.read(source)
    logger.debug("Extension record at {}: {}", start, type(record).__name__)
    return record
