"""Value label records (type 3) and their variable index (type 4).

A type 3 record is always immediately followed by a type 4 record listing
the variables the labels apply to. Label values are kept as raw 8-byte
slots: whether to read them as a double (in the file's byte order) or as
text is only known once the owning variable's type is.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from savkit.errors import FormatViolation
from savkit.io.byte_source import ByteSource

VALUE_LABEL_TYPE = 3
VARIABLE_INDEX_TYPE = 4


class ValueLabel(BaseModel):
    raw_value: bytes = Field(..., min_length=8, max_length=8, description="Raw on-disk value")
    label: str = Field(..., description="Label text")


class ValueLabelRecord(BaseModel):
    """Decoded type 3 record."""

    offset: int
    labels: list[ValueLabel] = Field(default_factory=list)

    @classmethod
    def read(cls, source: ByteSource) -> ValueLabelRecord:
        offset = source.position()
        record_type = source.read_int32()
        if record_type != VALUE_LABEL_TYPE:
            raise FormatViolation(
                f"Expected value label record type {VALUE_LABEL_TYPE}, found {record_type}",
                offset=offset,
            )
        count = source.read_int32()
        labels: list[ValueLabel] = []
        for _ in range(count):
            raw_value = source.read_bytes(8)
            label_length = source.read_bytes(1)[0]
            label = source.read_text(label_length)
            # length byte plus label are padded to a multiple of 8
            used = label_length + 1
            if used % 8:
                source.skip(8 - used % 8)
            labels.append(ValueLabel(raw_value=raw_value, label=label))
        logger.debug("Value label record at {}: {} labels", offset, count)
        return cls(offset=offset, labels=labels)


class VariableIndexRecord(BaseModel):
    """Decoded type 4 record: 1-based dictionary positions."""

    offset: int
    indices: list[int] = Field(default_factory=list)

    @classmethod
    def read(cls, source: ByteSource) -> VariableIndexRecord:
        offset = source.position()
        record_type = source.read_int32()
        if record_type != VARIABLE_INDEX_TYPE:
            raise FormatViolation(
                "Value label record must be followed by a variable index record "
                f"(type {VARIABLE_INDEX_TYPE}), found type {record_type}",
                offset=offset,
            )
        count = source.read_int32()
        indices = [source.read_int32() for _ in range(count)]
        logger.debug("Variable index record at {}: {}", offset, indices)
        return cls(offset=offset, indices=indices)
