"""Tests for DataFrame conversion."""

from __future__ import annotations

import math

from savkit import open_session
from savkit.export.frame import to_dataframe


class TestToDataFrame:
    def test_columns_and_values(self, survey_builder, write_sav) -> None:
        with open_session(write_sav(survey_builder.build())) as session:
            df = to_dataframe(session)
        assert list(df.columns) == ["id", "score", "city"]
        assert len(df) == 3
        assert df["id"].dtype == "float64"
        assert df["city"].dtype == object
        assert df["score"].iloc[0] == 137.34
        assert math.isnan(df["score"].iloc[1])
        assert df["city"].tolist() == ["Amsterdam", "", "  Leading"]

    def test_labels_in_attrs(self, survey_builder, write_sav) -> None:
        with open_session(write_sav(survey_builder.build())) as session:
            df = to_dataframe(session)
        assert df.attrs["labels"]["score"] == "Test score"

    def test_empty_file(self, sav_builder, write_sav) -> None:
        builder = sav_builder().numeric("A").string("B", 4)
        with open_session(write_sav(builder.build())) as session:
            df = to_dataframe(session)
        assert list(df.columns) == ["A", "B"]
        assert df.empty
