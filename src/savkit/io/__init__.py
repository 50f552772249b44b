"""Primitive binary reads over .sav byte streams."""

from savkit.io.byte_source import DEFAULT_ENCODING, ByteSource

__all__ = [
    "ByteSource",
    "DEFAULT_ENCODING",
]
