"""Tests for the savkit CLI application."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from savkit.cli.app import app

runner = CliRunner()


@pytest.fixture
def survey_file(survey_builder, write_sav):
    return write_sav(survey_builder.build(), "survey.sav")


class TestVersionCommand:
    def test_version_exits_zero(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "savkit" in result.output


class TestInfoCommand:
    def test_info_exits_zero(self, survey_file) -> None:
        result = runner.invoke(app, ["info", str(survey_file)])
        assert result.exit_code == 0
        assert "SPSS File" in result.output
        assert "Documents" in result.output

    def test_info_variables_flag(self, survey_file) -> None:
        result = runner.invoke(app, ["info", str(survey_file), "--variables"])
        assert result.exit_code == 0
        assert "Variables" in result.output

    def test_info_json_output(self, survey_file, tmp_path) -> None:
        out = tmp_path / "meta.json"
        result = runner.invoke(app, ["info", str(survey_file), "-o", str(out)])
        assert result.exit_code == 0
        summary = json.loads(out.read_text())
        assert [v["name"] for v in summary["variables"]] == ["id", "score", "city"]

    def test_info_missing_file(self, tmp_path) -> None:
        result = runner.invoke(app, ["info", str(tmp_path / "absent.sav")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_info_not_a_sav_file(self, tmp_path) -> None:
        bogus = tmp_path / "bogus.sav"
        bogus.write_bytes(b"PK\x03\x04" + b"\x00" * 200)
        result = runner.invoke(app, ["info", str(bogus)])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestLabelsCommand:
    def test_labels_for_variable(self, survey_file) -> None:
        result = runner.invoke(app, ["labels", str(survey_file), "score"])
        assert result.exit_code == 0
        assert "Refused" in result.output

    def test_labels_by_short_name(self, survey_file) -> None:
        result = runner.invoke(app, ["labels", str(survey_file), "SCORE"])
        assert result.exit_code == 0
        assert "High" in result.output

    def test_variable_without_labels(self, survey_file) -> None:
        result = runner.invoke(app, ["labels", str(survey_file), "id"])
        assert result.exit_code == 0
        assert "No value labels" in result.output

    def test_unknown_variable(self, survey_file) -> None:
        result = runner.invoke(app, ["labels", str(survey_file), "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestDumpCommand:
    def test_dump_shows_records(self, survey_file) -> None:
        result = runner.invoke(app, ["dump", str(survey_file), "-n", "2"])
        assert result.exit_code == 0
        assert "Records" in result.output
        assert "137.34" in result.output


class TestExportCommand:
    def test_export_csv(self, survey_file, tmp_path) -> None:
        out = tmp_path / "out.csv"
        result = runner.invoke(app, ["export", str(survey_file), str(out)])
        assert result.exit_code == 0
        assert "3 records written" in result.output
        assert out.read_text().splitlines()[0] == "id,score,city"

    def test_export_fixed(self, survey_file, tmp_path) -> None:
        out = tmp_path / "out.dat"
        result = runner.invoke(app, ["export", str(survey_file), str(out), "--kind", "fixed"])
        assert result.exit_code == 0
        assert len(out.read_text().splitlines()) == 3

    def test_export_delimited_no_header(self, survey_file, tmp_path) -> None:
        out = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            ["export", str(survey_file), str(out), "-k", "delimited", "-d", ";", "--no-header"],
        )
        assert result.exit_code == 0
        assert out.read_text().splitlines()[0] == "1;137.34;Amsterdam"


class TestDdiCommand:
    def test_ddi_to_stdout(self, survey_file) -> None:
        result = runner.invoke(app, ["ddi", str(survey_file)])
        assert result.exit_code == 0
        assert "codeBook" in result.output

    def test_ddi_to_file(self, survey_file, tmp_path) -> None:
        out = tmp_path / "codebook.xml"
        result = runner.invoke(app, ["ddi", str(survey_file), "-o", str(out)])
        assert result.exit_code == 0
        assert out.exists()
        assert "DDI codebook written" in result.output
