"""Tests for value-to-text conversion under SPSS write formats."""

from __future__ import annotations

import math

import pytest

from savkit.errors import FormatViolation, UnknownFormatError
from savkit.formatting.calendar import GREGORIAN_OFFSET, split_spss_seconds, spss_to_datetime
from savkit.formatting.values import fit_numeric_field, fit_string_field, format_numeric
from savkit.models.formats import FormatSpec, FormatType
from savkit.models.options import OutputKind

DAY = 86400.0


def spec(format_type: int, width: int, decimals: int = 0) -> FormatSpec:
    return FormatSpec(format_type=format_type, width=width, decimals=decimals)


class TestFixedPoint:
    def test_f_format_is_right_aligned(self) -> None:
        assert format_numeric(137.34, spec(FormatType.F, 8, 2)) == "  137.34"

    def test_rounds_half_up_on_shortest_repr(self) -> None:
        assert format_numeric(0.125, spec(FormatType.F, 4, 2)) == "0.13"
        assert format_numeric(2.675, spec(FormatType.F, 4, 2)) == "2.68"
        assert format_numeric(-2.5, spec(FormatType.F, 3, 0)) == " -3"

    def test_sysmiss_is_dot(self) -> None:
        assert format_numeric(math.nan, spec(FormatType.F, 8, 2)) == "."
        assert format_numeric(math.nan, spec(FormatType.DATE, 11)) == "."

    def test_comma(self) -> None:
        assert format_numeric(1234567.891, spec(FormatType.COMMA, 12, 2)) == "1,234,567.89"

    def test_dollar(self) -> None:
        assert format_numeric(12.5, spec(FormatType.DOLLAR, 8, 2)) == "$12.50"

    def test_dot_swaps_separators(self) -> None:
        assert format_numeric(1234.5, spec(FormatType.DOT, 10, 2)) == "1.234,50"

    def test_percent(self) -> None:
        assert format_numeric(45.5, spec(FormatType.PCT, 6, 1)) == "45.5%"

    def test_custom_currency_behaves_like_f(self) -> None:
        assert format_numeric(3.0, spec(FormatType.CCA, 6, 1)) == "   3.0"

    def test_scientific(self) -> None:
        assert format_numeric(1234.5, spec(FormatType.E, 10, 3)) == "  1.23E+03"
        assert format_numeric(-0.00015, spec(FormatType.E, 10, 3)) == " -1.50E-04"

    def test_unknown_format(self) -> None:
        with pytest.raises(UnknownFormatError) as exc_info:
            format_numeric(1.0, spec(FormatType.IB, 8), variable="X")
        assert exc_info.value.format_type == FormatType.IB
        assert "'X'" in str(exc_info.value)


class TestDates:
    def test_origin_of_the_calendar(self) -> None:
        assert format_numeric(0.0, spec(FormatType.DATE, 11)) == "14-OCT-1582"

    def test_unix_epoch(self) -> None:
        value = GREGORIAN_OFFSET
        assert format_numeric(value, spec(FormatType.DATE, 9)) == "01-JAN-70"
        assert format_numeric(value, spec(FormatType.DATETIME, 20)) == "01-JAN-1970 00:00:00"
        assert format_numeric(value, spec(FormatType.DATETIME, 17)) == "01-JAN-1970 00:00"

    def test_hundredths_are_always_zero(self) -> None:
        value = GREGORIAN_OFFSET + 3723.75
        assert format_numeric(value, spec(FormatType.TIME, 11)) == "01:02:03. 0"
        assert format_numeric(value, spec(FormatType.TIME, 8)) == "01:02:03"
        assert format_numeric(value, spec(FormatType.TIME, 5)) == "01:02"

    def test_american_european_and_sortable(self) -> None:
        value = GREGORIAN_OFFSET + 31 * DAY
        assert format_numeric(value, spec(FormatType.ADATE, 10)) == "02/01/1970"
        assert format_numeric(value, spec(FormatType.EDATE, 8)) == "01.02.70"
        assert format_numeric(value, spec(FormatType.SDATE, 10)) == "1970/02/01"

    def test_julian_and_day_time(self) -> None:
        value = GREGORIAN_OFFSET + 40 * DAY + 3600.0
        assert format_numeric(value, spec(FormatType.JDATE, 7)) == "1970041"
        assert format_numeric(value, spec(FormatType.JDATE, 5)) == "70041"
        assert format_numeric(value, spec(FormatType.DTIME, 12)) == "041:01:00:00"

    def test_month_quarter_and_week_year(self) -> None:
        value = GREGORIAN_OFFSET + 100 * DAY
        assert format_numeric(value, spec(FormatType.MOYR, 8)) == "APR 1970"
        assert format_numeric(value, spec(FormatType.QYR, 8)) == "2 Q 1970"
        assert format_numeric(value, spec(FormatType.WKYR, 10)) == "15 WK 1970"

    def test_weekday_and_month_names(self) -> None:
        assert format_numeric(1.0, spec(FormatType.WKDAY, 9)) == "SUNDAY"
        assert format_numeric(2.0, spec(FormatType.WKDAY, 3)) == "MON"
        assert format_numeric(12.0, spec(FormatType.MONTH, 3)) == "DEC"

    def test_split_truncates(self) -> None:
        assert split_spss_seconds(GREGORIAN_OFFSET + DAY + 61.9) == (1, 0, 1, 1, 0)

    def test_out_of_calendar(self) -> None:
        with pytest.raises(FormatViolation):
            spss_to_datetime(1e20)


class TestNumericFields:
    def test_fixed_pads_and_blanks_missing(self) -> None:
        f82 = spec(FormatType.F, 8, 2)
        assert fit_numeric_field("1.00", 1.0, f82, OutputKind.FIXED) == "    1.00"
        assert fit_numeric_field(".", math.nan, f82, OutputKind.FIXED) == " " * 8

    def test_exact_width_is_kept(self) -> None:
        f72 = spec(FormatType.F, 7, 2)
        text = format_numeric(9999.987, f72)
        assert fit_numeric_field(text, 9999.987, f72, OutputKind.FIXED) == "9999.99"

    def test_overflow_drops_decimals(self) -> None:
        f62 = spec(FormatType.F, 6, 2)
        text = format_numeric(1234.567, f62)
        assert fit_numeric_field(text, 1234.567, f62, OutputKind.FIXED) == "1234.6"

    def test_overflow_falls_back_to_integer(self) -> None:
        f52 = spec(FormatType.F, 5, 2)
        text = format_numeric(12345.678, f52)
        assert fit_numeric_field(text, 12345.678, f52, OutputKind.FIXED) == "12346"

    def test_overflow_fills_with_asterisks(self) -> None:
        f42 = spec(FormatType.F, 4, 2)
        text = format_numeric(12345.678, f42)
        assert fit_numeric_field(text, 12345.678, f42, OutputKind.FIXED) == "****"

    def test_delimited_trims(self) -> None:
        f82 = spec(FormatType.F, 8, 2)
        assert fit_numeric_field("  137.34", 137.34, f82, OutputKind.DELIMITED) == "137.34"

    def test_csv_quotes_grouped_numbers(self) -> None:
        comma = spec(FormatType.COMMA, 9, 2)
        assert fit_numeric_field("1,234.50", 1234.5, comma, OutputKind.CSV) == '"1,234.50"'


class TestStringFields:
    def test_fixed_pads_right(self) -> None:
        assert fit_string_field("ab", 5, OutputKind.FIXED) == "ab   "

    def test_csv_quoting(self) -> None:
        assert fit_string_field('He said "hi", ok', 20, OutputKind.CSV) == '"He said ""hi"", ok"'
        assert fit_string_field("plain", 20, OutputKind.CSV) == "plain"

    def test_delimited_is_unchanged(self) -> None:
        assert fit_string_field(" a, b", 8, OutputKind.DELIMITED) == " a, b"
