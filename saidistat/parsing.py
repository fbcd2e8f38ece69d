"""Free-text number parsing shared by every calculator page."""

import math
import re

from .errors import EmptyInputError

_DELIMITERS = re.compile(r'[\s,;]+')
# leading number of a token, so "12.5cm" and "5%" read as 12.5 and 5
_LEADING_NUMBER = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def _to_float(token):
    match = _LEADING_NUMBER.match(token)
    if match is None:
        return None
    value = float(match.group(0))
    if not math.isfinite(value):
        return None
    return value


def parse_numeric_input(raw):
    """Parses a list of numbers separated by spaces, commas or semicolons.

    Each token contributes the number it starts with, so unit suffixes are
    ignored. Tokens that do not start with a number are skipped. Raises
    EmptyInputError when nothing usable is left.
    """
    if raw is None:
        raise EmptyInputError()
    values = []
    for token in _DELIMITERS.split(raw.strip()):
        if not token:
            continue
        value = _to_float(token)
        if value is not None:
            values.append(value)
    if not values:
        raise EmptyInputError()
    return tuple(values)
