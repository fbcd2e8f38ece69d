"""Biostatistics calculators, dataset analyses and study-writing helpers."""

from .descriptive import SummaryStatistics, summarize
from .errors import EmptyInputError, InvalidInputError, SaidiStatError
from .frequency import FrequencyClass, build_frequency_table, sturges_class_count
from .parsing import parse_numeric_input

__all__ = [
    "EmptyInputError",
    "FrequencyClass",
    "InvalidInputError",
    "SaidiStatError",
    "SummaryStatistics",
    "build_frequency_table",
    "parse_numeric_input",
    "sturges_class_count",
    "summarize",
]
