"""Value ingestion: turn JSON or CSV payloads into observation sequences.

Two source formats are supported, selected once from the filename extension:

- JSON: a top-level array of numbers, e.g. ``[1.0, 2.0, 3.0]``
- CSV: a header row containing a ``value`` column (case and whitespace
  insensitive); every later row contributes zero or one number from it

Ingestion is all-or-nothing. A single bad cell rejects the whole payload.
Emptiness is not checked here; that is the percentile engine's concern.
"""

import csv
import io
import json
import logging
import math
from enum import Enum
from pathlib import Path
from typing import Any

from outlier.framework.errors import (
    EmptyInputError,
    MalformedInputError,
    MissingColumnError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

VALUE_COLUMN = "value"


class SourceFormat(str, Enum):
    """Supported payload formats."""

    JSON = "json"
    CSV = "csv"

    @classmethod
    def from_filename(cls, filename: str) -> "SourceFormat":
        """Resolve the format from a filename's extension (case-insensitive).

        Args:
            filename: File name or path, e.g. ``data.CSV``

        Returns:
            Matching SourceFormat

        Raises:
            UnsupportedFormatError: If the extension is not .json or .csv
        """
        extension = Path(filename or "").suffix.lower()
        for source_format in cls:
            if extension == f".{source_format.value}":
                return source_format
        raise UnsupportedFormatError(extension)


# =============================================================================
# Helpers
# =============================================================================


def _decode(data: bytes | str) -> str:
    """Decode a payload as UTF-8, tolerating a leading byte order mark."""
    if isinstance(data, str):
        return data.removeprefix("\ufeff")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        msg = f"input is not valid UTF-8: {e}"
        raise MalformedInputError(msg) from e


def _parse_number(text: str) -> float:
    """Parse a textual cell as a finite float64."""
    # float() accepts digit separators and non-ASCII digits; plain decimal notation only
    if "_" in text or not text.isascii():
        msg = f"invalid number in CSV: {text}"
        raise MalformedInputError(msg, token=text)
    try:
        value = float(text)
    except ValueError as e:
        msg = f"invalid number in CSV: {text}"
        raise MalformedInputError(msg, token=text) from e
    if not math.isfinite(value):
        msg = f"invalid number in CSV: {text}"
        raise MalformedInputError(msg, token=text)
    return value


def _reject_constant(name: str) -> Any:
    msg = f"failed to parse JSON: non-finite value {name} is not allowed"
    raise MalformedInputError(msg, token=name)


# =============================================================================
# Format Readers
# =============================================================================


def ingest_json(data: bytes | str) -> list[float]:
    """Read a JSON array of numbers.

    Args:
        data: Raw payload

    Returns:
        Values in array order (possibly empty)

    Raises:
        MalformedInputError: If the payload is not a JSON array of finite numbers
    """
    text = _decode(data)
    try:
        decoded = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        msg = f"failed to parse JSON: {e}"
        raise MalformedInputError(msg) from e

    if not isinstance(decoded, list):
        msg = f"failed to parse JSON: expected an array of numbers, got {type(decoded).__name__}"
        raise MalformedInputError(msg)

    values: list[float] = []
    for position, item in enumerate(decoded):
        # bool is an int subclass but not a JSON number
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            msg = f"failed to parse JSON: element {position} is not a number: {item!r}"
            raise MalformedInputError(msg, token=json.dumps(item))
        try:
            value = float(item)
        except OverflowError as e:
            msg = f"failed to parse JSON: element {position} is out of float64 range"
            raise MalformedInputError(msg, token=str(item)) from e
        if not math.isfinite(value):
            msg = f"failed to parse JSON: element {position} is out of float64 range"
            raise MalformedInputError(msg, token=str(item))
        values.append(value)

    return values


def ingest_csv(data: bytes | str) -> list[float]:
    """Read the ``value`` column of a CSV payload.

    Rows too short to reach the column and rows whose cell is blank are
    skipped. Any other cell must parse as a finite number.

    Args:
        data: Raw payload whose first record is the header

    Returns:
        Parsed cells in row order

    Raises:
        MalformedInputError: If the header cannot be read or a cell is not numeric
        MissingColumnError: If the header has no ``value`` field
    """
    reader = csv.reader(io.StringIO(_decode(data), newline=""))

    try:
        header = next((row for row in reader if row), None)
    except csv.Error as e:
        msg = f"failed to read CSV header: {e}"
        raise MalformedInputError(msg) from e
    if header is None:
        msg = "failed to read CSV header: input is empty"
        raise MalformedInputError(msg)

    value_index = next(
        (i for i, column in enumerate(header) if column.strip().lower() == VALUE_COLUMN),
        None,
    )
    if value_index is None:
        raise MissingColumnError(VALUE_COLUMN, header=header)

    values: list[float] = []
    skipped_rows: list[int] = []
    try:
        for record in reader:
            if value_index >= len(record):
                skipped_rows.append(reader.line_num)
                continue

            cell = record[value_index].strip()
            if not cell:
                skipped_rows.append(reader.line_num)
                continue

            values.append(_parse_number(cell))
    except csv.Error as e:
        msg = f"failed to read CSV record at line {reader.line_num}: {e}"
        raise MalformedInputError(msg) from e

    if skipped_rows:
        logger.debug(
            "Skipped %d CSV rows without a '%s' cell (lines %s)",
            len(skipped_rows),
            VALUE_COLUMN,
            skipped_rows[:20],
        )

    return values


# =============================================================================
# Public Entry Points
# =============================================================================

_READERS = {
    SourceFormat.JSON: ingest_json,
    SourceFormat.CSV: ingest_csv,
}


def ingest(data: bytes | str, source_format: SourceFormat) -> list[float]:
    """Convert a payload into an observation sequence.

    Args:
        data: Raw payload
        source_format: Format resolved at the boundary

    Returns:
        Observations as floats

    Raises:
        MalformedInputError: If the payload cannot be parsed
        MissingColumnError: If a CSV payload has no ``value`` column
    """
    values = _READERS[source_format](data)
    logger.debug("Ingested %d values from %s payload", len(values), source_format.value)
    return values


def ingest_file(filename: str, data: bytes | str) -> list[float]:
    """Resolve the format from ``filename`` and ingest ``data``.

    Raises:
        UnsupportedFormatError: If the extension is not .json or .csv
    """
    return ingest(data, SourceFormat.from_filename(filename))


def read_values_from_file(path: str | Path) -> list[float]:
    """Read a JSON or CSV file from disk.

    The format is checked before the file is opened.

    Args:
        path: Path to a .json or .csv file

    Returns:
        Observations as floats

    Raises:
        UnsupportedFormatError: If the extension is not .json or .csv
        OSError: If the file cannot be read
    """
    path = Path(path)
    source_format = SourceFormat.from_filename(path.name)
    return ingest(path.read_bytes(), source_format)


def parse_values_string(text: str) -> list[float]:
    """Parse comma-separated values given on the command line.

    Args:
        text: e.g. ``"1, 2.5,3"``; blank entries are ignored

    Returns:
        Parsed values

    Raises:
        MalformedInputError: If an entry is not a finite number
        EmptyInputError: If no values remain
    """
    values: list[float] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            values.append(_parse_number(part))
        except MalformedInputError as e:
            msg = f"invalid number: {part}"
            raise MalformedInputError(msg, token=part) from e

    if not values:
        msg = "no values provided"
        raise EmptyInputError(msg)

    return values


__all__ = [
    "VALUE_COLUMN",
    "SourceFormat",
    "ingest",
    "ingest_csv",
    "ingest_file",
    "ingest_json",
    "parse_values_string",
    "read_values_from_file",
]
