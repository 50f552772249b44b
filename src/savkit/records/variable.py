"""Variable descriptor record (record type 2)."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from savkit.errors import FormatViolation
from savkit.io.byte_source import ByteSource
from savkit.models.formats import FormatSpec

RECORD_TYPE = 2

# Type code of the extra descriptors that follow a string wider than 8 bytes
CONTINUATION = -1


class VariableRecord(BaseModel):
    """Decoded type 2 record.

    ``missing_values`` holds the raw 8-byte slots exactly as they sit on
    disk; their interpretation depends on the variable type and the file's
    byte order, both of which the dictionary loader knows.
    """

    offset: int = Field(..., description="Byte offset of the record in the file")
    type_code: int = Field(..., description="0 numeric, 1-255 string width, -1 continuation")
    has_label: bool = Field(default=False, description="Whether a variable label follows")
    missing_format: int = Field(
        default=0, ge=-3, le=3, description="Missing value format code (-3..3)"
    )
    print_format: FormatSpec
    write_format: FormatSpec
    name: str = Field(..., description="Short (8 character) variable name, right-trimmed")
    label: str = Field(default="", description="Variable label")
    missing_values: list[bytes] = Field(
        default_factory=list, description="Raw 8-byte missing value slots"
    )

    @property
    def is_continuation(self) -> bool:
        return self.type_code == CONTINUATION

    @property
    def is_numeric(self) -> bool:
        return self.type_code == 0

    @classmethod
    def read(cls, source: ByteSource) -> VariableRecord:
        """Read one variable descriptor.

        Raises:
            FormatViolation: If the tag is not 2 or the missing value
                format code is outside -3..3.
        """
        offset = source.position()
        record_type = source.read_int32()
        if record_type != RECORD_TYPE:
            raise FormatViolation(
                f"Expected variable record type {RECORD_TYPE}, found {record_type}",
                offset=offset,
            )
        type_code = source.read_int32()
        has_label = source.read_int32()
        missing_format = source.read_int32()
        if abs(missing_format) > 3:
            raise FormatViolation(
                f"Invalid missing value format code [{missing_format}]; range is -3 to 3",
                offset=offset,
            )
        print_format = FormatSpec.from_code(source.read_int32())
        write_format = FormatSpec.from_code(source.read_int32())
        name = source.read_text(8).rstrip()

        label = ""
        if has_label == 1:
            label_length = source.read_int32()
            label = source.read_text(label_length)
            # labels are padded to a multiple of 4 bytes
            if label_length % 4:
                source.skip(4 - label_length % 4)

        missing_values = [source.read_bytes(8) for _ in range(abs(missing_format))]

        record = cls(
            offset=offset,
            type_code=type_code,
            has_label=has_label == 1,
            missing_format=missing_format,
            print_format=print_format,
            write_format=write_format,
            name=name,
            label=label,
            missing_values=missing_values,
        )
        logger.debug(
            "Variable record at {}: name={!r} type={} write={} missing_format={}",
            offset,
            name,
            type_code,
            write_format.spss_name,
            missing_format,
        )
        return record
