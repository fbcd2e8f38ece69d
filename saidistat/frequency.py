"""Grouped frequency distribution with Sturges' rule for the number of classes."""

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STURGES_FACTOR = 3.322


@dataclass(frozen=True)
class FrequencyClass:
    lower_bound: float
    upper_bound: float
    midpoint: float
    frequency: int
    relative_frequency_percent: float
    cumulative_frequency: int
    interval_label: str

    @property
    def closed(self):
        """True when the upper bound belongs to the class (last class only)."""
        return self.interval_label.endswith(']')


def sturges_class_count(n):
    """K = ceil(1 + 3.322 * log10(n))."""
    if n < 1:
        raise ValueError("Sturges' rule needs at least one observation.")
    return math.ceil(1 + STURGES_FACTOR * math.log10(n))


def format_interval(lower, upper, last):
    closing = ']' if last else '['
    return f"[{lower:.2f} - {upper:.2f}{closing}"


def build_frequency_table(sample, stats):
    """Splits the sample into K equal-width classes between min and max.

    Every class is [lower, upper) except the last, which is [lower, upper]
    so the maximum is counted. When all values are equal the width is zero
    and the whole sample lands in the last class.
    """
    n = stats.count
    k = sturges_class_count(n)
    width = stats.range / k
    if width == 0:
        logger.warning("All %d values are equal; frequency classes have zero width", n)

    table = []
    cumulative = 0
    for i in range(k):
        last = i == k - 1
        lower = stats.min + i * width
        # pin the closing edge to the maximum so rounding never drops it
        upper = stats.max if last else stats.min + (i + 1) * width
        if last:
            frequency = sum(1 for v in sample if lower <= v <= upper)
        else:
            frequency = sum(1 for v in sample if lower <= v < upper)
        cumulative += frequency
        table.append(FrequencyClass(
            lower_bound=lower,
            upper_bound=upper,
            midpoint=(lower + upper) / 2,
            frequency=frequency,
            relative_frequency_percent=frequency / n * 100,
            cumulative_frequency=cumulative,
            interval_label=format_interval(lower, upper, last),
        ))
    return table
