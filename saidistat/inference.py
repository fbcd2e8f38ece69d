"""Hypothesis tests, confidence intervals and sample size formulas."""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.stats import chi2, f_oneway, norm, t, ttest_rel

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

# Conventional two-sided z values used in sample size tables
Z_BY_CONFIDENCE = {90: 1.645, 95: 1.96, 99: 2.576}
Z_BY_ALPHA = {0.05: 1.96, 0.01: 2.576, 0.10: 1.645}
Z_BY_BETA = {0.20: 0.84, 0.10: 1.28}


@dataclass(frozen=True)
class MeanComparison:
    mean1: float
    mean2: float
    sd1: float
    sd2: float
    n1: int
    n2: int
    pooled_sd: float
    standard_error: float
    t_statistic: float
    df: int
    critical_value: float
    p_value: float
    alpha: float
    confidence_interval: Tuple[float, float]

    @property
    def difference(self):
        return self.mean1 - self.mean2

    @property
    def significant(self):
        return abs(self.t_statistic) > self.critical_value


@dataclass(frozen=True)
class SampleSizeResult:
    n: int
    formula: str
    inputs: dict


@dataclass(frozen=True, eq=False)
class ChiSquareTableResult:
    statistic: float
    p_value: float
    df: int
    expected: np.ndarray

    @property
    def small_expected_counts(self):
        return bool(np.any(self.expected < 5))


def compare_two_means(mean1, sd1, n1, mean2, sd2, n2, alpha=0.05):
    """Student t test of two independent means from summary figures (pooled variance)."""
    if n1 < 2 or n2 < 2:
        raise InvalidInputError("Each sample size must be at least 2.")
    if sd1 < 0 or sd2 < 0:
        raise InvalidInputError("Standard deviations cannot be negative.")
    if not 0 < alpha < 1:
        raise InvalidInputError("Alpha must be between 0 and 1.")
    df = n1 + n2 - 2
    pooled_variance = ((n1 - 1) * sd1 ** 2 + (n2 - 1) * sd2 ** 2) / df
    pooled_sd = math.sqrt(pooled_variance)
    standard_error = pooled_sd * math.sqrt(1 / n1 + 1 / n2)
    if standard_error == 0:
        raise InvalidInputError("Both standard deviations are zero; the t statistic is undefined.")
    t_stat = (mean1 - mean2) / standard_error
    t_critical = t.ppf(1 - alpha / 2, df)
    margin = t_critical * standard_error
    p_value = 2 * (1 - t.cdf(abs(t_stat), df))
    return MeanComparison(
        mean1=mean1, mean2=mean2, sd1=sd1, sd2=sd2, n1=n1, n2=n2,
        pooled_sd=pooled_sd,
        standard_error=standard_error,
        t_statistic=t_stat,
        df=df,
        critical_value=t_critical,
        p_value=p_value,
        alpha=alpha,
        confidence_interval=((mean1 - mean2) - margin, (mean1 - mean2) + margin),
    )


def sample_size_for_proportion(p_percent, margin_percent, confidence=95):
    """n = Z² p q / e², p and e given in percent."""
    p = p_percent / 100
    e = margin_percent / 100
    if not 0 < p < 1 or e <= 0:
        raise InvalidInputError("Expected proportion must be between 0 and 100% and the margin positive.")
    z = Z_BY_CONFIDENCE.get(confidence, 1.96)
    n = math.ceil((z * z * p * (1 - p)) / (e * e))
    return SampleSizeResult(n=n, formula="n = (Z² × p × q) / e²", inputs={'z_alpha': z, 'p': p, 'e': e})


def sample_size_for_mean(sd, difference, alpha=0.05, beta=0.20):
    """n per group = 2 × [(Zα + Zβ) × σ / d]²."""
    if sd <= 0 or difference == 0:
        raise InvalidInputError("Standard deviation must be positive and the difference non-zero.")
    z_alpha = Z_BY_ALPHA.get(alpha, 1.645)
    z_beta = Z_BY_BETA.get(beta, 0.84)
    n = math.ceil(2 * ((z_alpha + z_beta) * sd / difference) ** 2)
    return SampleSizeResult(
        n=n,
        formula="n = 2 × [(Zα + Zβ) × σ / d]²",
        inputs={'z_alpha': z_alpha, 'z_beta': z_beta, 'sd': sd, 'd': difference},
    )


def calculate_chi_squared_from_table(observed_table):
    observed = np.array(observed_table, dtype=float)
    if observed.ndim != 2 or observed.size == 0:
        raise InvalidInputError("Observed values must form a non-empty table.")
    if np.any(observed < 0):
        raise InvalidInputError("Observed counts cannot be negative.")
    rows, cols = observed.shape
    df = (rows - 1) * (cols - 1)
    if df <= 0:
        raise InvalidInputError("The table needs at least two rows and two columns.")
    row_totals = observed.sum(axis=1)
    col_totals = observed.sum(axis=0)
    grand_total = observed.sum()
    if np.any(row_totals == 0) or np.any(col_totals == 0):
        raise InvalidInputError("Every row and column needs at least one observation.")
    expected = np.outer(row_totals, col_totals) / grand_total
    if np.any(expected < 5):
        logger.warning("Chi-squared table has expected counts below 5")
    chi_sq_stat = float(np.sum((observed - expected) ** 2 / expected))
    p_value = 1 - chi2.cdf(chi_sq_stat, df)
    return ChiSquareTableResult(statistic=chi_sq_stat, p_value=p_value, df=df, expected=expected)


def parse_observed_table(text):
    """Rows on separate lines, columns separated by commas or spaces."""
    table = []
    for row in text.strip().splitlines():
        if not row.strip():
            continue
        try:
            table.append([float(val) for val in row.replace(',', ' ').split()])
        except ValueError as exc:
            raise InvalidInputError("Table values must be numbers.") from exc
    if not table or len({len(row) for row in table}) != 1:
        raise InvalidInputError("Every row of the table needs the same number of values.")
    return table


def calculate_z_test_proportion(x, n, p0):
    if n <= 0 or not 0 < p0 < 1:
        raise InvalidInputError("n must be positive and p0 strictly between 0 and 1.")
    p_hat = x / n
    standard_error = math.sqrt((p0 * (1 - p0)) / n)
    z_stat = (p_hat - p0) / standard_error
    p_value = 2 * (1 - norm.cdf(abs(z_stat)))
    return z_stat, p_value


def calculate_z_ci(mean, std_dev, n, confidence_level=0.95):
    if n <= 0 or std_dev <= 0:
        raise InvalidInputError("n and the standard deviation must be positive.")
    alpha = 1 - confidence_level
    z_critical = norm.ppf(1 - alpha / 2)
    margin_of_error = z_critical * (std_dev / math.sqrt(n))
    return mean - margin_of_error, mean + margin_of_error


def calculate_t_ci(mean, std_dev, n, confidence_level=0.95):
    if n <= 1 or std_dev <= 0:
        raise InvalidInputError("n must be above 1 and the standard deviation positive.")
    alpha = 1 - confidence_level
    t_critical = t.ppf(1 - alpha / 2, n - 1)
    margin_of_error = t_critical * (std_dev / math.sqrt(n))
    return mean - margin_of_error, mean + margin_of_error


def calculate_z_test_mean(sample_mean, pop_mean, pop_std_dev, n):
    if pop_std_dev <= 0 or n <= 0:
        raise InvalidInputError("n and the population standard deviation must be positive.")
    z_stat = (sample_mean - pop_mean) / (pop_std_dev / math.sqrt(n))
    p_value = 2 * (1 - norm.cdf(abs(z_stat)))
    return z_stat, p_value


def calculate_t_test_mean(sample_mean, pop_mean, sample_std_dev, n):
    if sample_std_dev <= 0 or n <= 1:
        raise InvalidInputError("n must be above 1 and the sample standard deviation positive.")
    t_stat = (sample_mean - pop_mean) / (sample_std_dev / math.sqrt(n))
    p_value = 2 * (1 - t.cdf(abs(t_stat), n - 1))
    return t_stat, p_value


def calculate_z_test_two_proportions(x1, n1, x2, n2):
    if n1 <= 0 or n2 <= 0:
        raise InvalidInputError("Both sample sizes must be positive.")
    p1_hat = x1 / n1
    p2_hat = x2 / n2
    p_pooled = (x1 + x2) / (n1 + n2)
    if p_pooled in (0, 1):
        raise InvalidInputError("Pooled proportion is 0 or 1, standard error cannot be calculated.")
    se_pooled = math.sqrt(p_pooled * (1 - p_pooled) * (1 / n1 + 1 / n2))
    z_stat = (p1_hat - p2_hat) / se_pooled
    p_value = 2 * (1 - norm.cdf(abs(z_stat)))
    return z_stat, p_value


def calculate_paired_t_test(sample1, sample2):
    """Performs a paired t-test on two related samples."""
    if len(sample1) != len(sample2):
        raise InvalidInputError("Paired samples must have the same length.")
    if len(sample1) < 2:
        raise InvalidInputError("Paired samples need at least two pairs.")
    t_stat, p_value = ttest_rel(sample1, sample2)
    return float(t_stat), float(p_value)


def calculate_anova(*samples):
    """Performs a one-way ANOVA on two or more samples."""
    if len(samples) < 2:
        raise InvalidInputError("ANOVA needs at least two groups.")
    f_stat, p_value = f_oneway(*samples)
    return float(f_stat), float(p_value)
