"""Elementary probability rules and the binomial, normal and Poisson laws."""

import math

from scipy.stats import norm

from .errors import InvalidInputError


def _check_probability(p, name="p"):
    if p < 0 or p > 1:
        raise InvalidInputError(f"Probability '{name}' must be between 0 and 1.")


def independent_events_probability(p1, p2):
    """P(A and B) = P(A) × P(B) for independent events."""
    _check_probability(p1, "P(A)")
    _check_probability(p2, "P(B)")
    return p1 * p2


def repeated_events_probability(p, n):
    """Probability that n identical independent events all occur."""
    _check_probability(p)
    if n < 0:
        raise InvalidInputError("The number of events cannot be negative.")
    return p ** n


def complement_probability(p):
    _check_probability(p)
    return 1 - p


def calculate_binomial_probability(n, k, p):
    """Calculates the probability of exactly k successes in n trials."""
    _check_probability(p)
    if n < 0 or k < 0 or k > n:
        raise InvalidInputError("Invalid input for binomial calculation. n must be >= k and non-negative.")
    return math.comb(n, k) * (p ** k) * ((1 - p) ** (n - k))


def calculate_normal_probability(mu, sigma, x1, x2=None):
    """Normal probabilities from z-scores.

    With one bound returns (z, P(X < x), P(X > x)); with two bounds returns
    (z1, z2, P(x1 < X < x2)).
    """
    if sigma <= 0:
        raise InvalidInputError("Standard deviation must be a positive number.")
    if x2 is None:
        z_score = (x1 - mu) / sigma
        prob_less = norm.cdf(z_score)
        return z_score, prob_less, 1 - prob_less
    z1 = (x1 - mu) / sigma
    z2 = (x2 - mu) / sigma
    return z1, z2, norm.cdf(z2) - norm.cdf(z1)


def calculate_poisson_probability(lambda_val, k):
    """Calculates the Poisson probability of exactly k events."""
    if lambda_val < 0 or k < 0:
        raise InvalidInputError("Lambda and k must be non-negative.")
    return (lambda_val ** k * math.exp(-lambda_val)) / math.factorial(k)
