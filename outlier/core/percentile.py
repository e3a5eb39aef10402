"""Percentile calculation by linear interpolation between order statistics."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from outlier.framework.errors import EmptyInputError, OutOfRangeError


@dataclass(frozen=True)
class PercentileResult:
    """Computed percentile together with the inputs callers report.

    Attributes:
        count: Number of observations the percentile was computed over
        percentile: Percentile actually used (after any caller default)
        result: Interpolated percentile value
    """

    count: int
    percentile: float
    result: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to the response shape used by the CLI and the API."""
        return {"count": self.count, "percentile": self.percentile, "result": self.result}


def compute_percentile(observations: Sequence[float], percentile: float) -> float:
    """Calculate a percentile of a sequence of values.

    Uses linear interpolation between closest ranks (the "R-7" method, also
    numpy's default). The input is never mutated; a sorted copy is used.

    Args:
        observations: Non-empty sequence of finite numbers
        percentile: Percentile to calculate (0-100)

    Returns:
        Percentile value

    Raises:
        EmptyInputError: If observations is empty
        OutOfRangeError: If percentile is outside [0, 100] or NaN

    Examples:
        >>> compute_percentile([1, 2, 3, 4, 5], 50)
        3.0
        >>> compute_percentile([1, 2, 3, 4], 50)
        2.5
        >>> compute_percentile([10, 20, 30], 100)
        30.0
    """
    if len(observations) == 0:
        raise EmptyInputError

    # NaN fails both comparisons and lands here too
    if not 0 <= percentile <= 100:
        raise OutOfRangeError(percentile)

    # A single observation is every percentile of itself
    if len(observations) == 1:
        return float(observations[0])

    sorted_values = sorted(observations)
    index = (percentile / 100.0) * (len(sorted_values) - 1)
    lower_index = math.floor(index)

    # Exact rank: return the order statistic untouched
    if index == lower_index:
        return float(sorted_values[lower_index])

    upper_index = lower_index + 1
    fraction = index - lower_index
    lower = float(sorted_values[lower_index])
    upper = float(sorted_values[upper_index])
    return lower + (upper - lower) * fraction


def summarize(observations: Sequence[float], percentile: float) -> PercentileResult:
    """Compute a percentile and pair it with the observation count.

    Args:
        observations: Non-empty sequence of finite numbers
        percentile: Percentile to calculate (0-100); defaults are the caller's job

    Returns:
        PercentileResult with count, percentile and result

    Raises:
        EmptyInputError: If observations is empty
        OutOfRangeError: If percentile is outside [0, 100]
    """
    result = compute_percentile(observations, percentile)
    return PercentileResult(count=len(observations), percentile=float(percentile), result=result)


__all__ = ["PercentileResult", "compute_percentile", "summarize"]
