"""Document record (record type 6): free text attached to the file."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from savkit.errors import FormatViolation
from savkit.io.byte_source import ByteSource

RECORD_TYPE = 6
LINE_LENGTH = 80


class DocumentRecord(BaseModel):
    offset: int
    lines: list[str] = Field(default_factory=list, description="80-character lines, right-trimmed")

    @classmethod
    def read(cls, source: ByteSource) -> DocumentRecord:
        offset = source.position()
        record_type = source.read_int32()
        if record_type != RECORD_TYPE:
            raise FormatViolation(
                f"Expected document record type {RECORD_TYPE}, found {record_type}",
                offset=offset,
            )
        count = source.read_int32()
        lines = [source.read_text(LINE_LENGTH).rstrip() for _ in range(count)]
        logger.debug("Document record at {}: {} lines", offset, count)
        return cls(offset=offset, lines=lines)
