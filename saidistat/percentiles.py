"""Percentiles by the (n + 1) rank method, and z-scores."""

import math
from dataclasses import dataclass

from .errors import EmptyInputError, InvalidInputError

DEFAULT_PERCENTILES = (10, 25, 50, 75, 90)


@dataclass(frozen=True)
class ZScoreResult:
    x: float
    mean: float
    sd: float
    z: float
    interpretation: str


def percentile(sorted_data, p):
    """Value at percentile p of already sorted data, rank = p/100 * (n + 1)."""
    n = len(sorted_data)
    if n == 0:
        raise EmptyInputError()
    rank = (p / 100) * (n + 1)
    if rank <= 1:
        return sorted_data[0]
    if rank >= n:
        return sorted_data[n - 1]
    lower = math.floor(rank) - 1
    upper = math.ceil(rank) - 1
    fraction = rank - math.floor(rank)
    return sorted_data[lower] + fraction * (sorted_data[upper] - sorted_data[lower])


def _label(p):
    return f"P{p:g}"


def compute_percentiles(sample, custom=None):
    """Returns {"P10": ..., "P90": ...}; a custom p is added when 0 < p < 100."""
    sorted_data = sorted(sample)
    wanted = list(DEFAULT_PERCENTILES)
    if custom is not None and 0 < custom < 100 and custom not in wanted:
        wanted.append(custom)
    return {_label(p): percentile(sorted_data, p) for p in wanted}


def interpret_z_score(z):
    if z == 0:
        return "This value is exactly equal to the mean."
    distance = abs(z)
    if distance < 1:
        text = "This value is close to the mean (less than one standard deviation)"
    elif distance < 2:
        text = "This value is moderately far from the mean (1-2 standard deviations)"
    elif distance < 3:
        text = "This value is far from the mean (2-3 standard deviations)"
    else:
        text = "This value is very far from the mean (more than 3 standard deviations) - possibly an outlier"
    side = "above" if z > 0 else "below"
    return f"{text}. The value is {side} the mean."


def z_score(x, mean, sd):
    if sd <= 0:
        raise InvalidInputError("Standard deviation must be greater than 0.")
    z = (x - mean) / sd
    return ZScoreResult(x=x, mean=mean, sd=sd, z=z, interpretation=interpret_z_score(z))
