"""Pure calculation core: value ingestion and the percentile engine."""

from .ingest import SourceFormat, ingest, ingest_file, parse_values_string, read_values_from_file
from .percentile import PercentileResult, compute_percentile, summarize

__all__ = [
    "PercentileResult",
    "SourceFormat",
    "compute_percentile",
    "ingest",
    "ingest_file",
    "parse_values_string",
    "read_values_from_file",
    "summarize",
]
