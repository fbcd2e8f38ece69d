"""Unit tests for free-text number parsing."""

import pytest

from saidistat import EmptyInputError, parse_numeric_input


def test_parses_space_separated_values():
    sample = parse_numeric_input("73 92 48 54 63 63 64 65 50 73")
    assert sample == (73.0, 92.0, 48.0, 54.0, 63.0, 63.0, 64.0, 65.0, 50.0, 73.0)


def test_mixed_delimiters_and_repeated_separators():
    assert parse_numeric_input("1,2;3  4\n5,,6") == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0)


def test_keeps_input_order_and_decimals():
    assert parse_numeric_input("3.5 -1 2e2") == (3.5, -1.0, 200.0)


def test_skips_tokens_that_are_not_numbers():
    assert parse_numeric_input("1 abc 2 x3") == (1.0, 2.0)


def test_skips_non_finite_tokens():
    assert parse_numeric_input("nan inf 3 -inf") == (3.0,)


@pytest.mark.parametrize("raw", ["", "   ", "abc, xyz", ";;,,", None])
def test_no_valid_number_raises(raw):
    with pytest.raises(EmptyInputError):
        parse_numeric_input(raw)


def test_empty_input_error_is_a_value_error():
    with pytest.raises(ValueError, match="valid numeric data"):
        parse_numeric_input("abc")


def test_unit_suffixes_keep_the_leading_number():
    assert parse_numeric_input("10kg 20kg 5%") == (10.0, 20.0, 5.0)
    assert parse_numeric_input("12.5cm, .5mm; 3.e1x") == (12.5, 0.5, 30.0)


def test_underscore_literals_read_up_to_the_underscore():
    assert parse_numeric_input("1_000") == (1.0,)


def test_overflowing_exponent_is_skipped():
    assert parse_numeric_input("1e400 2") == (2.0,)
