"""Endianness-aware primitive reads over a seekable binary stream.

The byte order starts out little-endian and is flipped at most once, while
the general header is parsed. Every multi-byte read after that uses the
detected order for the rest of the file.
"""

from __future__ import annotations

import io
import struct
from typing import BinaryIO, Literal

from savkit.errors import SavIOError

ByteOrder = Literal["<", ">"]

DEFAULT_ENCODING = "latin-1"


class ByteSource:
    """Random-access reader for the primitive fields of a system file.

    Args:
        stream: Seekable binary file object positioned anywhere.
        encoding: Character set used to turn fixed-length byte fields into text.
    """

    def __init__(self, stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> None:
        self._stream = stream
        self.encoding = encoding
        self.byte_order: ByteOrder = "<"

    @classmethod
    def from_bytes(cls, data: bytes, encoding: str = DEFAULT_ENCODING) -> ByteSource:
        """Wrap an in-memory image of a file."""
        return cls(io.BytesIO(data), encoding=encoding)

    @property
    def big_endian(self) -> bool:
        return self.byte_order == ">"

    def flip_byte_order(self) -> None:
        self.byte_order = "<" if self.byte_order == ">" else ">"

    # -- positioning ---------------------------------------------------------

    def position(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int) -> None:
        self._stream.seek(offset)

    def skip(self, count: int) -> None:
        if count > 0:
            self.read_bytes(count)

    def at_end(self) -> bool:
        """Return True when no byte is left after the current position."""
        return self.peek_bytes(1) == b""

    # -- primitive reads -----------------------------------------------------

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` bytes.

        Raises:
            SavIOError: If the stream ends before ``count`` bytes are read.
        """
        offset = self._stream.tell()
        data = self._stream.read(count)
        if len(data) != count:
            raise SavIOError(offset, count, len(data))
        return data

    def peek_bytes(self, count: int) -> bytes:
        """Return up to ``count`` bytes without moving the position."""
        here = self._stream.tell()
        data = self._stream.read(count)
        self._stream.seek(here)
        return data

    def read_int32(self) -> int:
        return struct.unpack(self.byte_order + "i", self.read_bytes(4))[0]

    def peek_int32(self) -> int:
        """Read a 4-byte integer and rewind to where it started."""
        here = self.position()
        value = self.read_int32()
        self.seek(here)
        return value

    def read_double(self) -> float:
        return struct.unpack(self.byte_order + "d", self.read_bytes(8))[0]

    def read_text(self, length: int) -> str:
        """Read ``length`` bytes and decode them; no trimming is done here."""
        return self.decode(self.read_bytes(length))

    def decode(self, raw: bytes) -> str:
        return raw.decode(self.encoding, errors="replace")

    def unpack_double(self, raw: bytes) -> float:
        """Interpret 8 raw on-disk bytes as a double in the file's byte order."""
        return struct.unpack(self.byte_order + "d", raw)[0]

    def close(self) -> None:
        self._stream.close()
