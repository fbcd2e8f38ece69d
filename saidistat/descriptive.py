"""Central tendency and dispersion of a numeric sample."""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Tuple

from .errors import EmptyInputError


@dataclass(frozen=True)
class SummaryStatistics:
    count: int
    min: float
    max: float
    range: float
    mean: float
    median: float
    modes: Tuple[float, ...]
    variance: float
    standard_deviation: float
    coefficient_of_variation: float


def calculate_mean(data):
    return sum(data) / len(data)


def calculate_median(data):
    sorted_data = sorted(data)
    n = len(sorted_data)
    mid = n // 2
    if n % 2 == 1:
        return sorted_data[mid]
    return (sorted_data[mid - 1] + sorted_data[mid]) / 2


def calculate_modes(data):
    """Returns every value that reaches the highest count, smallest first."""
    counts = Counter(data)
    max_count = max(counts.values())
    return tuple(sorted(value for value, count in counts.items() if count == max_count))


def calculate_variance(data):
    """Population variance (divides by n)."""
    mean = calculate_mean(data)
    return sum((x - mean) ** 2 for x in data) / len(data)


def calculate_coefficient_of_variation(std_dev, mean):
    """CV in percent. A zero mean gives inf, or nan when the spread is zero too."""
    if mean == 0:
        return math.nan if std_dev == 0 else math.inf
    return (std_dev / mean) * 100


def calculate_quartiles(data):
    if len(data) < 4:
        return None, None
    sorted_data = sorted(data)
    n = len(sorted_data)
    lower_half = sorted_data[:n // 2]
    upper_half = sorted_data[n // 2:] if n % 2 == 0 else sorted_data[n // 2 + 1:]
    return calculate_median(lower_half), calculate_median(upper_half)


def calculate_interquartile_range(data):
    q1, q3 = calculate_quartiles(data)
    if q1 is None or q3 is None:
        return None
    return q3 - q1


def summarize(sample):
    """Computes SummaryStatistics for a non-empty sample."""
    if not sample:
        raise EmptyInputError()
    sorted_sample = sorted(sample)
    count = len(sorted_sample)
    minimum = sorted_sample[0]
    maximum = sorted_sample[-1]
    mean = calculate_mean(sample)
    variance = calculate_variance(sample)
    std_dev = math.sqrt(variance)
    return SummaryStatistics(
        count=count,
        min=minimum,
        max=maximum,
        range=maximum - minimum,
        mean=mean,
        median=calculate_median(sorted_sample),
        modes=calculate_modes(sorted_sample),
        variance=variance,
        standard_deviation=std_dev,
        coefficient_of_variation=calculate_coefficient_of_variation(std_dev, mean),
    )
