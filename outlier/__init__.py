"""
Outlier: percentile calculator with CLI and HTTP API.

Computes a percentile from numeric observations using linear interpolation
between order statistics, from inline values, JSON arrays or CSV files.

Public API:
- compute_percentile / summarize: the percentile engine
- ingest / SourceFormat: JSON and CSV value ingestion
- outlier.framework.errors: the error taxonomy
"""

from outlier.core.ingest import SourceFormat, ingest, ingest_file, read_values_from_file
from outlier.core.percentile import PercentileResult, compute_percentile, summarize
from outlier.version import __version__

__all__ = [
    "PercentileResult",
    "SourceFormat",
    "__version__",
    "compute_percentile",
    "ingest",
    "ingest_file",
    "read_values_from_file",
    "summarize",
]
