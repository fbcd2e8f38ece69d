"""Unit tests for probability rules and distributions."""

import math

import pytest

from saidistat import InvalidInputError
from saidistat.probability import (
    calculate_binomial_probability,
    calculate_normal_probability,
    calculate_poisson_probability,
    complement_probability,
    independent_events_probability,
    repeated_events_probability,
)


def test_elementary_rules():
    assert independent_events_probability(0.3, 0.5) == pytest.approx(0.15)
    assert repeated_events_probability(0.9, 3) == pytest.approx(0.729)
    assert complement_probability(0.2) == pytest.approx(0.8)


@pytest.mark.parametrize("call", [
    lambda: independent_events_probability(1.2, 0.5),
    lambda: repeated_events_probability(0.5, -1),
    lambda: complement_probability(-0.1),
])
def test_elementary_rules_validate_input(call):
    with pytest.raises(InvalidInputError):
        call()


def test_binomial():
    assert calculate_binomial_probability(10, 5, 0.5) == pytest.approx(252 / 1024)
    total = sum(calculate_binomial_probability(10, k, 0.22) for k in range(11))
    assert total == pytest.approx(1.0)


def test_binomial_rejects_k_above_n():
    with pytest.raises(InvalidInputError):
        calculate_binomial_probability(3, 4, 0.5)
    with pytest.raises(InvalidInputError):
        calculate_binomial_probability(3, 1, 1.5)


def test_normal_single_bound():
    z, below, above = calculate_normal_probability(0, 1, 1.96)
    assert z == pytest.approx(1.96)
    assert below == pytest.approx(0.975, abs=1e-3)
    assert below + above == pytest.approx(1.0)


def test_normal_between_bounds():
    z1, z2, between = calculate_normal_probability(100, 15, 70.6, 129.4)
    assert z1 == pytest.approx(-1.96)
    assert z2 == pytest.approx(1.96)
    assert between == pytest.approx(0.95, abs=1e-3)


def test_normal_needs_positive_sigma():
    with pytest.raises(InvalidInputError):
        calculate_normal_probability(0, 0, 1)


def test_poisson():
    assert calculate_poisson_probability(2, 3) == pytest.approx(8 * math.exp(-2) / 6)
    with pytest.raises(InvalidInputError):
        calculate_poisson_probability(-1, 2)
