"""Unit tests for epidemiological measures."""

import pytest

from saidistat import InvalidInputError
from saidistat.epidemiology import (
    NO_ASSOCIATION,
    PROTECTIVE_FACTOR,
    RISK_FACTOR,
    analyze_case_control,
    analyze_cohort,
    analyze_diagnostic_test,
    analyze_mortality,
    calculate_cumulative_incidence,
    calculate_incidence_density,
    calculate_prevalence,
)


def test_frequency_measures():
    assert calculate_prevalence(300, 10000) == pytest.approx(3.0)
    assert calculate_cumulative_incidence(25, 500) == pytest.approx(5.0)
    assert calculate_incidence_density(50, 25000) == pytest.approx(2.0)


def test_frequency_measures_reject_zero_denominator():
    with pytest.raises(InvalidInputError):
        calculate_prevalence(3, 0)


# ---------------------------------------------------------------------------
# Cohort


def test_cohort_risk_factor():
    result = analyze_cohort(80, 920, 20, 980)
    assert result.incidence_exposed == pytest.approx(8.0)
    assert result.incidence_unexposed == pytest.approx(2.0)
    assert result.relative_risk == pytest.approx(4.0)
    low, high = result.ci95
    assert low < 4.0 < high
    assert low > 1
    assert result.interpretation == RISK_FACTOR
    assert result.attributable_risk == pytest.approx(6.0)
    assert result.attributable_fraction_exposed == pytest.approx(75.0)
    assert result.exposure_prevalence == pytest.approx(50.0)
    assert result.population_attributable_fraction == pytest.approx(60.0)


def test_cohort_protective_factor():
    result = analyze_cohort(20, 980, 80, 920)
    assert result.relative_risk == pytest.approx(0.25)
    assert result.interpretation == PROTECTIVE_FACTOR
    assert result.attributable_risk == pytest.approx(-6.0)
    assert result.attributable_fraction_exposed == pytest.approx(75.0)
    assert result.population_attributable_fraction is None


def test_cohort_no_association():
    result = analyze_cohort(10, 90, 10, 90)
    assert result.relative_risk == pytest.approx(1.0)
    assert result.interpretation == NO_ASSOCIATION
    assert result.attributable_risk is None


@pytest.mark.parametrize("cells", [(0, 10, 5, 10), (5, 10, 0, 10), (5, -1, 5, 10)])
def test_cohort_rejects_unusable_tables(cells):
    with pytest.raises(InvalidInputError):
        analyze_cohort(*cells)


# ---------------------------------------------------------------------------
# Case-control


def test_case_control():
    result = analyze_case_control(70, 30, 30, 70)
    odds_ratio = (70 * 70) / (30 * 30)
    assert result.odds_ratio == pytest.approx(odds_ratio)
    assert result.ci95[0] < odds_ratio < result.ci95[1]
    assert result.interpretation == RISK_FACTOR
    assert result.attributable_fraction_exposed == pytest.approx((odds_ratio - 1) / odds_ratio * 100)
    assert result.exposure_prevalence_controls == pytest.approx(30.0)
    expected_paf = 0.3 * (odds_ratio - 1) / (0.3 * (odds_ratio - 1) + 1) * 100
    assert result.population_attributable_fraction == pytest.approx(expected_paf)


def test_case_control_needs_every_cell():
    with pytest.raises(InvalidInputError):
        analyze_case_control(10, 0, 5, 5)


# ---------------------------------------------------------------------------
# Diagnostic test and mortality


def test_diagnostic_test():
    result = analyze_diagnostic_test(85, 15, 10, 90)
    assert result.sensitivity == pytest.approx(85 / 95 * 100)
    assert result.specificity == pytest.approx(90 / 105 * 100)
    assert result.positive_predictive_value == pytest.approx(85.0)
    assert result.negative_predictive_value == pytest.approx(90.0)
    assert result.accuracy == pytest.approx(87.5)


def test_diagnostic_test_with_no_diseased_subjects():
    with pytest.raises(InvalidInputError):
        analyze_diagnostic_test(0, 5, 0, 5)


def test_mortality():
    result = analyze_mortality(21500, 116, deaths_by_cause=(40, 0, 10), cases=80)
    assert result.mean_population == pytest.approx(21442)
    assert result.crude_mortality == pytest.approx(116 / 21442 * 1000)
    assert result.specific_mortality[0] == pytest.approx(40 / 21500 * 1000)
    assert result.specific_mortality[1] is None
    assert result.proportional_mortality[2] == pytest.approx(10 / 116 * 100)
    assert result.case_fatality == pytest.approx(50.0)


def test_mortality_without_causes():
    result = analyze_mortality(1000, 10)
    assert result.specific_mortality == ()
    assert result.case_fatality is None


def test_mortality_rejects_more_deaths_than_people():
    with pytest.raises(InvalidInputError):
        analyze_mortality(100, 150)
