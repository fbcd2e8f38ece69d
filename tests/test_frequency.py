"""Unit tests for the grouped frequency table."""

import logging

import pytest

from saidistat import build_frequency_table, parse_numeric_input, sturges_class_count, summarize
from saidistat.frequency import format_interval


def _table(values):
    sample = tuple(float(v) for v in values)
    return build_frequency_table(sample, summarize(sample))


@pytest.mark.parametrize("n, expected", [(1, 1), (10, 5), (100, 8)])
def test_sturges_class_count(n, expected):
    assert sturges_class_count(n) == expected


def test_sturges_rejects_empty_sample():
    with pytest.raises(ValueError):
        sturges_class_count(0)


def test_reference_table():
    sample = parse_numeric_input("73 92 48 54 63 63 64 65 50 73")
    table = build_frequency_table(sample, summarize(sample))
    assert len(table) == 5
    assert [c.frequency for c in table] == [3, 4, 2, 0, 1]
    assert [c.cumulative_frequency for c in table] == [3, 7, 9, 9, 10]
    assert table[0].interval_label == "[48.00 - 56.80["
    assert table[-1].interval_label == "[83.20 - 92.00]"
    assert table[0].lower_bound == 48
    assert table[-1].upper_bound == 92


@pytest.mark.parametrize("values", [
    range(1, 17),
    [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
    [1.1, 2.2, 2.2, 3.3, 9.9, 0.1, 4.4],
    [-5, -5, 0, 5, 5],
])
def test_frequencies_cover_the_sample(values):
    table = _table(values)
    n = len(list(values))
    assert sum(c.frequency for c in table) == n
    assert table[-1].cumulative_frequency == n
    assert sum(c.relative_frequency_percent for c in table) == pytest.approx(100.0)
    for c in table:
        assert c.midpoint == pytest.approx((c.lower_bound + c.upper_bound) / 2)


def test_only_last_class_is_closed():
    table = _table(range(1, 17))
    assert [c.closed for c in table] == [False] * (len(table) - 1) + [True]


def test_maximum_lands_in_last_class():
    table = _table([0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100])
    assert table[-1].upper_bound == 100
    assert table[-1].frequency >= 1


def test_single_value_makes_one_class():
    table = _table([7])
    assert len(table) == 1
    assert table[0].frequency == 1
    assert table[0].interval_label == "[7.00 - 7.00]"


def test_constant_sample_keeps_zero_width_classes(caplog):
    with caplog.at_level(logging.WARNING, logger="saidistat.frequency"):
        table = _table([5, 5, 5, 5])
    assert all(c.lower_bound == c.upper_bound == 5 for c in table)
    assert [c.frequency for c in table[:-1]] == [0] * (len(table) - 1)
    assert table[-1].frequency == 4
    assert "zero width" in caplog.text


def test_format_interval():
    assert format_interval(10, 20, last=False) == "[10.00 - 20.00["
    assert format_interval(90, 100, last=True) == "[90.00 - 100.00]"
