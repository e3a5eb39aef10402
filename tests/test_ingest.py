"""
Tests for value ingestion.

Tests verify:
- Format resolution from filename extensions
- JSON array parsing and rejection of non-numeric content
- CSV "value" column detection, row skipping, and all-or-nothing parsing
- File and command-line value entry points
"""

import logging
from pathlib import Path

import pytest

from outlier.core.ingest import (
    SourceFormat,
    ingest,
    ingest_csv,
    ingest_file,
    ingest_json,
    parse_values_string,
    read_values_from_file,
)
from outlier.framework.errors import (
    EmptyInputError,
    ErrorCode,
    MalformedInputError,
    MissingColumnError,
    UnsupportedFormatError,
)


class TestSourceFormat:
    """Test format resolution."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("data.json", SourceFormat.JSON),
            ("DATA.JSON", SourceFormat.JSON),
            ("latencies.Csv", SourceFormat.CSV),
            ("/tmp/some.dir/values.csv", SourceFormat.CSV),
        ],
    )
    def test_supported_extensions(self, filename: str, expected: SourceFormat) -> None:
        assert SourceFormat.from_filename(filename) is expected

    def test_unsupported_extension_named(self) -> None:
        with pytest.raises(UnsupportedFormatError) as exc_info:
            SourceFormat.from_filename("data.xml")
        assert exc_info.value.extension == ".xml"
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_FORMAT
        assert ".xml" in str(exc_info.value)

    @pytest.mark.parametrize("filename", ["data", "", "values.csv.bak", "archive.json.gz"])
    def test_other_extensions_rejected(self, filename: str) -> None:
        with pytest.raises(UnsupportedFormatError):
            SourceFormat.from_filename(filename)


class TestIngestJson:
    """Test JSON array ingestion."""

    def test_integers_become_floats(self) -> None:
        values = ingest_json(b"[1,2,3]")
        assert values == [1.0, 2.0, 3.0]
        assert all(isinstance(v, float) for v in values)

    def test_mixed_numbers(self) -> None:
        assert ingest_json("[-1.5, 0, 2e3, 4.25]") == [-1.5, 0.0, 2000.0, 4.25]

    def test_empty_array_allowed(self) -> None:
        assert ingest_json(b"[]") == []

    def test_whitespace_and_bom(self) -> None:
        assert ingest_json(b"\xef\xbb\xbf  [ 1 , 2 ]\n") == [1.0, 2.0]

    @pytest.mark.parametrize(
        "payload",
        [
            b"",
            b"[1, 2",
            b"not json",
            b'{"values": [1, 2]}',
            b"42",
            b"null",
            b'[1, "2"]',
            b"[1, null]",
            b"[true, 2]",
            b"[[1], 2]",
            b"[NaN]",
            b"[Infinity]",
            b"[-Infinity]",
            b"[1e400]",
            b"\xff\xfe[1]",
        ],
    )
    def test_malformed(self, payload: bytes) -> None:
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_json(payload)
        assert exc_info.value.code == ErrorCode.MALFORMED_INPUT

    def test_huge_integer_rejected(self) -> None:
        with pytest.raises(MalformedInputError):
            ingest_json("[" + "9" * 400 + "]")


class TestIngestCsv:
    """Test CSV "value" column ingestion."""

    def test_blank_cell_skipped(self) -> None:
        assert ingest_csv(b"value\n1\n\n3\n") == [1.0, 3.0]

    def test_header_case_and_whitespace_insensitive(self) -> None:
        assert ingest_csv(b"id, Value ,name\n1,2.5,a\n2,3.5,b\n") == [2.5, 3.5]

    def test_short_rows_skipped(self) -> None:
        payload = b"id,name,value\n1,a,5\n2,b\n3,c,7\n"
        assert ingest_csv(payload) == [5.0, 7.0]

    def test_whitespace_only_cell_skipped(self) -> None:
        assert ingest_csv(b"id,value\n1,\n2,   \n3,4\n") == [4.0]

    def test_cells_trimmed(self) -> None:
        assert ingest_csv(b"value\n  1.5  \n\t-2\n") == [1.5, -2.0]

    def test_first_matching_column_wins(self) -> None:
        assert ingest_csv(b"value,VALUE\n1,2\n") == [1.0]

    def test_quoted_fields_and_crlf(self) -> None:
        assert ingest_csv(b'"name","value"\r\n"a, b","10"\r\n"c","20"\r\n') == [10.0, 20.0]

    def test_extra_columns_ignored(self) -> None:
        assert ingest_csv(b"value\n1,extra,more\n2\n") == [1.0, 2.0]

    def test_header_only(self) -> None:
        assert ingest_csv(b"value\n") == []

    def test_bom_header(self) -> None:
        assert ingest_csv("\ufeffvalue\n8\n".encode()) == [8.0]

    def test_preserves_row_order(self) -> None:
        assert ingest_csv(b"value\n3\n1\n2\n") == [3.0, 1.0, 2.0]

    def test_missing_column(self) -> None:
        with pytest.raises(MissingColumnError) as exc_info:
            ingest_csv(b"id,name\n1,a\n")
        assert exc_info.value.code == ErrorCode.MISSING_COLUMN
        assert exc_info.value.details["header"] == ["id", "name"]

    def test_partial_match_is_not_value_column(self) -> None:
        with pytest.raises(MissingColumnError):
            ingest_csv(b"values,value_ms\n1,2\n")

    @pytest.mark.parametrize("payload", [b"", b"\n\n"])
    def test_empty_input(self, payload: bytes) -> None:
        with pytest.raises(MalformedInputError, match="header"):
            ingest_csv(payload)

    @pytest.mark.parametrize("cell", ["abc", "1.2.3", "NaN", "inf", "-Infinity", "1_000", "1e999"])
    def test_bad_cell_aborts(self, cell: str) -> None:
        payload = f"value\n1\n{cell}\n3\n".encode()
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_csv(payload)
        assert exc_info.value.token == cell
        assert cell in exc_info.value.message

    @pytest.mark.parametrize("cell", ["١٢", "１２", "१.5"])
    def test_non_ascii_digits_rejected(self, cell: str) -> None:
        """float() would accept these; only ASCII decimal notation is a number."""
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_csv(f"value\n{cell}\n")
        assert exc_info.value.token == cell

    def test_skipped_rows_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="outlier.core.ingest")
        ingest_csv(b"id,value\n1,5\n2\n3,\n")
        assert any("Skipped 2 CSV rows" in record.getMessage() for record in caplog.records)


class TestIngestEntryPoints:
    """Test ingest dispatch, file reading, and command-line values."""

    def test_ingest_dispatches_on_format(self) -> None:
        assert ingest(b"[1, 2]", SourceFormat.JSON) == [1.0, 2.0]
        assert ingest(b"value\n1\n2\n", SourceFormat.CSV) == [1.0, 2.0]

    def test_ingest_file_resolves_extension(self) -> None:
        assert ingest_file("upload.CSV", b"value\n4\n") == [4.0]
        with pytest.raises(UnsupportedFormatError):
            ingest_file("upload.xml", b"<values/>")

    def test_read_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "values.json"
        path.write_text("[1.5, 2.5]")
        assert read_values_from_file(path) == [1.5, 2.5]

    def test_read_csv_file(self, tmp_path: Path) -> None:
        path = tmp_path / "values.csv"
        path.write_text("timestamp,value\n2024-01-01,10\n2024-01-02,20\n")
        assert read_values_from_file(str(path)) == [10.0, 20.0]

    def test_unsupported_checked_before_open(self, tmp_path: Path) -> None:
        with pytest.raises(UnsupportedFormatError):
            read_values_from_file(tmp_path / "missing.xml")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            read_values_from_file(tmp_path / "missing.json")

    def test_parse_values_string(self) -> None:
        assert parse_values_string("1, 2.5,3") == [1.0, 2.5, 3.0]

    def test_parse_values_string_skips_blanks(self) -> None:
        assert parse_values_string(" 1,,2, ") == [1.0, 2.0]

    def test_parse_values_string_invalid(self) -> None:
        with pytest.raises(MalformedInputError, match="invalid number: abc"):
            parse_values_string("1,abc,3")

    def test_parse_values_string_non_ascii_digits(self) -> None:
        with pytest.raises(MalformedInputError, match="invalid number"):
            parse_values_string("1,٢")

    @pytest.mark.parametrize("text", ["", " ", ",,", " , "])
    def test_parse_values_string_empty(self, text: str) -> None:
        with pytest.raises(EmptyInputError, match="no values provided"):
            parse_values_string(text)
