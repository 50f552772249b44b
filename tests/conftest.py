"""Shared fixtures: synthetic .sav images built byte by byte with struct."""

from __future__ import annotations

import math
import struct
from collections.abc import Callable
from pathlib import Path

import pytest


def pack_format(format_type: int, width: int, decimals: int = 0) -> int:
    return (format_type << 16) | (width << 8) | decimals


class SavBuilder:
    """Assembles a system file image from declared variables, records and cases.

    Every declared variable becomes one dictionary entry (plus continuation
    entries for strings wider than 8 bytes) and one column of ``case()``.
    Very long string segments are declared as ordinary string variables and
    folded by a long-names record that omits them.
    """

    def __init__(
        self,
        *,
        big_endian: bool = False,
        compressed: bool = False,
        bias: float = 100.0,
        case_count: int | None = None,
        case_size: int | None = None,
        weight_index: int = 0,
        label: str = "Synthetic test file",
        encoding: str = "latin-1",
    ) -> None:
        self.order = ">" if big_endian else "<"
        self.compressed = compressed
        self.bias = bias
        self.case_count = case_count
        self.case_size = case_size
        self.weight_index = weight_index
        self.label = label
        self.encoding = encoding
        self.variables: list[dict] = []
        self.records: list[bytes] = []
        self.cases: list[tuple] = []
        self.terminator_filler = 0

    # -- primitives ----------------------------------------------------------

    def i32(self, value: int) -> bytes:
        return struct.pack(self.order + "i", value)

    def f64(self, value: float) -> bytes:
        return struct.pack(self.order + "d", value)

    def text(self, value: str, length: int) -> bytes:
        return value.encode(self.encoding).ljust(length, b" ")[:length]

    # -- dictionary ----------------------------------------------------------

    def numeric(
        self,
        name: str,
        *,
        label: str | None = None,
        fmt: tuple[int, int, int] = (5, 8, 2),
        missing: tuple[float, ...] = (),
        missing_range: tuple[float, float] | None = None,
    ) -> SavBuilder:
        if missing_range is not None:
            code = -3 if missing else -2
            slots = [self.f64(v) for v in (*missing_range, *missing)]
        else:
            code = len(missing)
            slots = [self.f64(v) for v in missing]
        self.variables.append(
            {"name": name, "type": 0, "label": label, "fmt": fmt, "code": code, "slots": slots}
        )
        return self

    def string(
        self,
        name: str,
        width: int,
        *,
        label: str | None = None,
        missing: tuple[str, ...] = (),
    ) -> SavBuilder:
        slots = [self.text(v, 8) for v in missing]
        self.variables.append(
            {
                "name": name,
                "type": width,
                "label": label,
                "fmt": (1, width, 0),
                "code": len(missing),
                "slots": slots,
            }
        )
        return self

    def _variable_records(self) -> bytes:
        out = b""
        for var in self.variables:
            fmt = pack_format(*var["fmt"])
            out += self.i32(2) + self.i32(var["type"])
            out += self.i32(1 if var["label"] is not None else 0)
            out += self.i32(var["code"]) + self.i32(fmt) + self.i32(fmt)
            out += self.text(var["name"], 8)
            if var["label"] is not None:
                raw = var["label"].encode(self.encoding)
                out += self.i32(len(raw)) + raw + b"\x00" * (-len(raw) % 4)
            out += b"".join(var["slots"])
            for _ in range(self._blocks(var) - 1):
                out += self.i32(2) + self.i32(-1) + self.i32(0) + self.i32(0)
                out += self.i32(0) + self.i32(0) + b" " * 8
        return out

    @staticmethod
    def _blocks(var: dict) -> int:
        return 1 if var["type"] == 0 else (var["type"] - 1) // 8 + 1

    def slot_count(self) -> int:
        return sum(self._blocks(v) for v in self.variables)

    def value_labels(self, indices: list[int], labels: list[tuple[float | str, str]]) -> SavBuilder:
        """Add a type 3 + type 4 pair; ``indices`` are 1-based dictionary entries."""
        out = self.i32(3) + self.i32(len(labels))
        for value, label in labels:
            out += self.f64(value) if isinstance(value, (int, float)) else self.text(value, 8)
            raw = label.encode(self.encoding)
            out += bytes([len(raw)]) + raw + b" " * (-(len(raw) + 1) % 8)
        out += self.i32(4) + self.i32(len(indices)) + b"".join(self.i32(i) for i in indices)
        self.records.append(out)
        return self

    def document(self, lines: list[str]) -> SavBuilder:
        self.records.append(
            self.i32(6) + self.i32(len(lines)) + b"".join(self.text(line, 80) for line in lines)
        )
        return self

    def extension(self, subtype: int, size: int, count: int, payload: bytes) -> SavBuilder:
        self.records.append(
            self.i32(7) + self.i32(subtype) + self.i32(size) + self.i32(count) + payload
        )
        return self

    def integer_info(self, character_code: int = 1252) -> SavBuilder:
        endianness = 1 if self.order == ">" else 2
        values = [21, 0, 0, -1, 1, 1, endianness, character_code]
        return self.extension(3, 4, 8, b"".join(self.i32(v) for v in values))

    def float_info(self) -> SavBuilder:
        values = [-1.7976931348623157e308, 1.7976931348623157e308, -1.7976931348623155e308]
        return self.extension(4, 8, 3, b"".join(self.f64(v) for v in values))

    def display_params(self, triples: list[tuple[int, int, int]]) -> SavBuilder:
        payload = b"".join(self.i32(v) for triple in triples for v in triple)
        return self.extension(11, 4, len(triples) * 3, payload)

    def long_names(self, mapping: dict[str, str]) -> SavBuilder:
        payload = "\t".join(f"{k}={v}" for k, v in mapping.items()).encode(self.encoding)
        return self.extension(13, 1, len(payload), payload)

    def very_long_strings(self, mapping: dict[str, int]) -> SavBuilder:
        payload = b"".join(
            f"{k}={v:05d}".encode(self.encoding) + b"\x00\t" for k, v in mapping.items()
        )
        return self.extension(14, 1, len(payload), payload)

    def long_string_labels(self, name: str, width: int, labels: list[tuple[str, str]]) -> SavBuilder:
        raw_name = name.encode(self.encoding)
        payload = self.i32(len(raw_name)) + raw_name + self.i32(width) + self.i32(len(labels))
        for value, label in labels:
            raw_value = value.encode(self.encoding).ljust(width, b" ")
            raw_label = label.encode(self.encoding)
            payload += self.i32(len(raw_value)) + raw_value
            payload += self.i32(len(raw_label)) + raw_label
        return self.extension(21, 1, len(payload), payload)

    # -- data ----------------------------------------------------------------

    def case(self, *values: float | str) -> SavBuilder:
        assert len(values) == len(self.variables)
        self.cases.append(values)
        return self

    def _blocks_of_case(self, values: tuple) -> list[tuple[str, bytes | float]]:
        blocks: list[tuple[str, bytes | float]] = []
        for var, value in zip(self.variables, values):
            if var["type"] == 0:
                blocks.append(("num", value))
            else:
                raw = self.text(value, self._blocks(var) * 8)
                for i in range(0, len(raw), 8):
                    blocks.append(("str", raw[i : i + 8]))
        return blocks

    def _data(self) -> bytes:
        blocks = [b for values in self.cases for b in self._blocks_of_case(values)]
        if not self.compressed:
            return b"".join(self.f64(v) if kind == "num" else v for kind, v in blocks)

        out = b""
        codes: list[int] = []
        pending = b""
        for kind, value in blocks:
            if kind == "num":
                if math.isnan(value):
                    codes.append(255)
                elif float(value).is_integer() and 1 <= value + self.bias <= 251:
                    codes.append(int(value + self.bias))
                else:
                    codes.append(253)
                    pending += self.f64(value)
            elif value == b" " * 8:
                codes.append(254)
            else:
                codes.append(253)
                pending += value
            if len(codes) == 8:
                out += bytes(codes) + pending
                codes, pending = [], b""
        if codes:
            out += bytes(codes + [0] * (8 - len(codes))) + pending
        return out

    # -- assembly ------------------------------------------------------------

    def header(self) -> bytes:
        case_size = self.case_size if self.case_size is not None else self.slot_count()
        case_count = self.case_count if self.case_count is not None else len(self.cases)
        return (
            b"$FL2"
            + self.text("@(#) SPSS DATA FILE savkit test suite", 60)
            + self.i32(2)
            + self.i32(case_size)
            + self.i32(1 if self.compressed else 0)
            + self.i32(self.weight_index)
            + self.i32(case_count)
            + self.f64(self.bias)
            + self.text("01 Jan 24", 9)
            + self.text("12:30:00", 8)
            + self.text(self.label, 64)
            + b"\x00" * 3
        )

    def dictionary(self) -> bytes:
        return (
            self.header()
            + self._variable_records()
            + b"".join(self.records)
            + self.i32(999)
            + self.i32(self.terminator_filler)
        )

    def build(self) -> bytes:
        return self.dictionary() + self._data()


@pytest.fixture
def sav_builder() -> type[SavBuilder]:
    return SavBuilder


@pytest.fixture
def survey_factory() -> Callable[..., SavBuilder]:
    """Build the survey file with any ``SavBuilder`` options, e.g. ``big_endian=True``."""

    def _make(**options) -> SavBuilder:
        return (
            SavBuilder(**options)
            .numeric("ID", label="Respondent id", fmt=(5, 8, 0))
            .numeric("SCORE", label="Test score", fmt=(5, 8, 2), missing=(-9.0,))
            .string("CITY", 12, label="Home city")
            .value_labels([2], [(1.0, "Low"), (2.0, "High"), (-9.0, "Refused")])
            .document(["Collected in spring", "Synthetic data"])
            .integer_info()
            .float_info()
            .display_params([(1, 8, 1), (3, 8, 1), (1, 12, 0)])
            .long_names({"ID": "id", "SCORE": "score", "CITY": "city"})
            .case(1.0, 137.34, "Amsterdam")
            .case(2.0, float("nan"), "")
            .case(3.0, -9.0, "  Leading")
        )

    return _make


@pytest.fixture
def survey_builder(survey_factory) -> SavBuilder:
    """Three variables, value labels, documents and three cases."""
    return survey_factory()


@pytest.fixture
def write_sav(tmp_path: Path) -> Callable[[bytes, str], Path]:
    def _write(data: bytes, name: str = "test.sav") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
