"""Measures of frequency, association and diagnostic accuracy from 2x2 tables.

Table layout for cohort and case-control studies::

                 Disease+   Disease-
    Exposed+        a          b
    Exposed-        c          d

For diagnostic tests a, b, c, d are true positives, false positives, false
negatives and true negatives.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InvalidInputError

Z_95 = 1.96

RISK_FACTOR = "The exposure is a risk factor"
PROTECTIVE_FACTOR = "The exposure is a protective factor"
NO_ASSOCIATION = "The exposure is independent of the disease (no association)"


def _ratio(numerator, denominator, what):
    if denominator == 0:
        raise InvalidInputError(f"{what} cannot be computed: denominator is zero.")
    return numerator / denominator


def _check_table(a, b, c, d):
    if min(a, b, c, d) < 0:
        raise InvalidInputError("Table counts cannot be negative.")


def _interpret(ratio):
    if ratio > 1:
        return RISK_FACTOR
    if ratio < 1:
        return PROTECTIVE_FACTOR
    return NO_ASSOCIATION


def _log_ci(ratio, se):
    return math.exp(math.log(ratio) - Z_95 * se), math.exp(math.log(ratio) + Z_95 * se)


# ------------------ MEASURES OF FREQUENCY ------------------

def calculate_prevalence(cases, population):
    """Prevalence in percent."""
    return _ratio(cases, population, "Prevalence") * 100


def calculate_cumulative_incidence(new_cases, population_at_risk):
    """Cumulative incidence in percent."""
    return _ratio(new_cases, population_at_risk, "Cumulative incidence") * 100


def calculate_incidence_density(new_cases, person_years):
    """Incidence density per 1,000 person-years."""
    return _ratio(new_cases, person_years, "Incidence density") * 1000


# ------------------ COHORT STUDY ------------------

@dataclass(frozen=True)
class CohortResult:
    a: float
    b: float
    c: float
    d: float
    incidence_exposed: float
    incidence_unexposed: float
    relative_risk: float
    ci95: Tuple[float, float]
    interpretation: str
    attributable_risk: Optional[float] = None
    attributable_fraction_exposed: Optional[float] = None
    population_attributable_fraction: Optional[float] = None
    exposure_prevalence: Optional[float] = None

    @property
    def total(self):
        return self.a + self.b + self.c + self.d


def analyze_cohort(a, b, c, d):
    """Relative risk with its 95% CI and the attributable measures (percent)."""
    _check_table(a, b, c, d)
    ice = _ratio(a, a + b, "Incidence in the exposed")
    icne = _ratio(c, c + d, "Incidence in the unexposed")
    rr = _ratio(ice, icne, "Relative risk")
    if a == 0 or c == 0:
        raise InvalidInputError("Cells a and c must be positive to compute a confidence interval.")
    se_ln_rr = math.sqrt(1 / a - 1 / (a + b) + 1 / c - 1 / (c + d))

    attributable_risk = fe = paf = pe = None
    if rr > 1:
        attributable_risk = (ice - icne) * 100
        fe = (rr - 1) / rr * 100
        pe = (a + b) / (a + b + c + d)
        paf = (pe * (rr - 1)) / (pe * (rr - 1) + 1) * 100
        pe *= 100
    elif rr < 1:
        attributable_risk = (ice - icne) * 100
        # preventable fraction among the exposed
        fe = (1 - rr) * 100

    return CohortResult(
        a=a, b=b, c=c, d=d,
        incidence_exposed=ice * 100,
        incidence_unexposed=icne * 100,
        relative_risk=rr,
        ci95=_log_ci(rr, se_ln_rr),
        interpretation=_interpret(rr),
        attributable_risk=attributable_risk,
        attributable_fraction_exposed=fe,
        population_attributable_fraction=paf,
        exposure_prevalence=pe,
    )


# ------------------ CASE-CONTROL STUDY ------------------

@dataclass(frozen=True)
class CaseControlResult:
    a: float
    b: float
    c: float
    d: float
    odds_ratio: float
    ci95: Tuple[float, float]
    interpretation: str
    attributable_fraction_exposed: Optional[float] = None
    population_attributable_fraction: Optional[float] = None
    exposure_prevalence_controls: Optional[float] = None

    @property
    def total(self):
        return self.a + self.b + self.c + self.d


def analyze_case_control(a, b, c, d):
    """Odds ratio with Woolf's 95% CI; attributable fractions in percent."""
    _check_table(a, b, c, d)
    if 0 in (a, b, c, d):
        raise InvalidInputError("All four cells must be positive to compute the odds ratio and its CI.")
    odds_ratio = (a * d) / (b * c)
    se_ln_or = math.sqrt(1 / a + 1 / b + 1 / c + 1 / d)

    fe = paf = pe = None
    if odds_ratio > 1:
        fe = (odds_ratio - 1) / odds_ratio * 100
        pe = b / (b + d)
        paf = (pe * (odds_ratio - 1)) / (pe * (odds_ratio - 1) + 1) * 100
        pe *= 100

    return CaseControlResult(
        a=a, b=b, c=c, d=d,
        odds_ratio=odds_ratio,
        ci95=_log_ci(odds_ratio, se_ln_or),
        interpretation=_interpret(odds_ratio),
        attributable_fraction_exposed=fe,
        population_attributable_fraction=paf,
        exposure_prevalence_controls=pe,
    )


# ------------------ DIAGNOSTIC TEST ------------------

@dataclass(frozen=True)
class DiagnosticResult:
    true_positives: float
    false_positives: float
    false_negatives: float
    true_negatives: float
    sensitivity: float
    specificity: float
    positive_predictive_value: float
    negative_predictive_value: float
    accuracy: float


def analyze_diagnostic_test(tp, fp, fn, tn):
    _check_table(tp, fp, fn, tn)
    return DiagnosticResult(
        true_positives=tp,
        false_positives=fp,
        false_negatives=fn,
        true_negatives=tn,
        sensitivity=_ratio(tp, tp + fn, "Sensitivity") * 100,
        specificity=_ratio(tn, fp + tn, "Specificity") * 100,
        positive_predictive_value=_ratio(tp, tp + fp, "Positive predictive value") * 100,
        negative_predictive_value=_ratio(tn, fn + tn, "Negative predictive value") * 100,
        accuracy=_ratio(tp + tn, tp + fp + fn + tn, "Accuracy") * 100,
    )


# ------------------ MORTALITY ------------------

@dataclass(frozen=True)
class MortalityResult:
    population: float
    total_deaths: float
    mean_population: float
    crude_mortality: float
    specific_mortality: Tuple[Optional[float], ...]
    proportional_mortality: Tuple[Optional[float], ...]
    case_fatality: Optional[float] = None


def analyze_mortality(population, total_deaths, deaths_by_cause=(), cases=0):
    """Crude mortality per 1,000 over the mean population of the period.

    Cause-specific mortality is per 1,000 of the starting population and
    proportional mortality a percent of all deaths; a cause with no deaths
    yields None. Case fatality uses the first cause.
    """
    if population <= 0:
        raise InvalidInputError("Population must be positive.")
    if total_deaths < 0 or total_deaths > population:
        raise InvalidInputError("Total deaths must be between 0 and the population.")
    mean_population = ((population - total_deaths) + population) / 2
    specific = tuple(deaths / population * 1000 if deaths else None for deaths in deaths_by_cause)
    proportional = tuple(
        _ratio(deaths, total_deaths, "Proportional mortality") * 100 if deaths else None
        for deaths in deaths_by_cause
    )
    first_cause = deaths_by_cause[0] if deaths_by_cause else 0
    case_fatality = first_cause / cases * 100 if cases and first_cause else None
    return MortalityResult(
        population=population,
        total_deaths=total_deaths,
        mean_population=mean_population,
        crude_mortality=total_deaths / mean_population * 1000,
        specific_mortality=specific,
        proportional_mortality=proportional,
        case_fatality=case_fatality,
    )
