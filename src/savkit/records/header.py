"""General information record (record type 1).

The header is the first 176 bytes of every system file. Its layout-code
field doubles as the byte-order marker: SPSS writes 2 or 3 there, so any
other value means the file was written on a machine of the opposite
endianness.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from savkit.errors import FormatViolation
from savkit.io.byte_source import ByteSource

SIGNATURE = "$FL2"
VALID_LAYOUT_CODES = (2, 3)
DEFAULT_BIAS = 100.0

# Writers that do not compute the per-case block count store this sentinel.
UNKNOWN_CASE_SIZE = -1


class FileHeader(BaseModel):
    """Decoded type 1 record."""

    product: str = Field(..., description="Product identification string, right-trimmed")
    layout_code: int = Field(..., description="Layout code, 2 or 3")
    nominal_case_size: int = Field(
        ..., description="Declared number of 8-byte blocks per case (-1 if unknown)"
    )
    compression: int = Field(..., description="Compression switch, 1 when bytecode-compressed")
    weight_index: int = Field(..., description="1-based block index of the weight variable, 0 if none")
    case_count: int = Field(..., description="Number of cases, -1 if unknown")
    bias: float = Field(default=DEFAULT_BIAS, description="Compression bias")
    creation_date: str = Field(default="", description="Creation date as dd mmm yy")
    creation_time: str = Field(default="", description="Creation time as hh:mm:ss")
    file_label: str = Field(default="", description="File label, right-trimmed")
    big_endian: bool = Field(default=False, description="True when the file was written big-endian")

    @property
    def compressed(self) -> bool:
        return self.compression == 1

    @classmethod
    def read(cls, source: ByteSource) -> FileHeader:
        """Read the general information record and detect the byte order.

        Raises:
            FormatViolation: If the signature is wrong or the layout code is
                invalid in both byte orders.
        """
        start = source.position()
        signature = source.read_text(4)
        if signature != SIGNATURE:
            raise FormatViolation(
                f"Not an SPSS system file: signature {signature!r}, expected {SIGNATURE!r}",
                offset=start,
            )
        product = source.read_text(60).rstrip()

        layout_offset = source.position()
        layout_code = source.read_int32()
        if layout_code not in VALID_LAYOUT_CODES:
            source.flip_byte_order()
            source.seek(layout_offset)
            layout_code = source.read_int32()
            if layout_code not in VALID_LAYOUT_CODES:
                raise FormatViolation(
                    f"Invalid layout code {layout_code}, expected one of {VALID_LAYOUT_CODES}",
                    offset=layout_offset,
                )

        header = cls(
            product=product,
            layout_code=layout_code,
            nominal_case_size=source.read_int32(),
            compression=source.read_int32(),
            weight_index=source.read_int32(),
            case_count=source.read_int32(),
            bias=source.read_double(),
            creation_date=source.read_text(9),
            creation_time=source.read_text(8),
            file_label=source.read_text(64).rstrip(),
            big_endian=source.big_endian,
        )
        source.skip(3)

        if header.bias != DEFAULT_BIAS:
            logger.warning("Compression bias is {} rather than the usual 100", header.bias)
        logger.debug(
            "Header: product={!r} layout={} case_size={} compressed={} cases={} big_endian={}",
            header.product,
            header.layout_code,
            header.nominal_case_size,
            header.compressed,
            header.case_count,
            header.big_endian,
        )
        return header
