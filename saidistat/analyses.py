"""Frequency, association and advanced analyses over an uploaded dataset.

Each analysis kind produces its own result type; `result_from_dict` turns a
stored JSON payload back into the matching one.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from itertools import combinations, permutations
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from scipy.stats import chi2, f, f_oneway, linregress, t

from .errors import InvalidInputError
from .ingestion import ColumnStatistics

logger = logging.getLogger(__name__)

SIGNIFICANCE_LEVEL = 0.05

FREQUENCY = 'frequency'
ASSOCIATION = 'association'
ADVANCED = 'advanced'

ANALYSIS_SUBTYPES = {
    FREQUENCY: (),
    ASSOCIATION: ('chi2', 'correlation'),
    ADVANCED: ('ttest', 'anova', 'regression'),
}


# ------------------ RESULT TYPES ------------------

@dataclass(frozen=True)
class ContingencyTable:
    rows: List[str]
    cols: List[str]
    counts: Dict[str, Dict[str, int]]
    row_totals: Dict[str, int]
    col_totals: Dict[str, int]
    grand_total: int


@dataclass(frozen=True)
class Chi2Test:
    variable1: str
    variable2: str
    chi2: float
    degrees_of_freedom: int
    p_value: float
    significant: bool
    table: ContingencyTable


@dataclass(frozen=True)
class Correlation:
    variable1: str
    variable2: str
    correlation: float
    p_value: float
    n: int
    significant: bool
    method: str = 'pearson'


@dataclass(frozen=True)
class TTest:
    variable: str
    group1: str
    group2: str
    mean1: float
    mean2: float
    sd1: float
    sd2: float
    n1: int
    n2: int
    t_statistic: float
    degrees_of_freedom: int
    p_value: float
    significant: bool


@dataclass(frozen=True)
class GroupStats:
    group: str
    n: int
    mean: float
    sd: float


@dataclass(frozen=True)
class Anova:
    dependent_variable: str
    independent_variable: str
    groups: List[str]
    f_statistic: float
    p_value: float
    significant: bool
    group_stats: List[GroupStats]


@dataclass(frozen=True)
class Coefficient:
    variable: str
    coefficient: float
    standard_error: float
    t_value: float
    p_value: float


@dataclass(frozen=True)
class Regression:
    dependent_variable: str
    independent_variables: List[str]
    coefficients: List[Coefficient]
    r_squared: float
    adjusted_r_squared: float
    f_statistic: float
    p_value: float
    n: int


@dataclass(frozen=True)
class FrequencyResult:
    statistics: List[ColumnStatistics]
    type: str = FREQUENCY

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class AssociationResult:
    sub_type: str
    base_variable: Optional[str] = None
    crossing_variables: List[str] = field(default_factory=list)
    chi2_tests: List[Chi2Test] = field(default_factory=list)
    correlations: List[Correlation] = field(default_factory=list)
    type: str = ASSOCIATION

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class AdvancedResult:
    sub_type: str
    t_tests: List[TTest] = field(default_factory=list)
    anova_tests: List[Anova] = field(default_factory=list)
    regressions: List[Regression] = field(default_factory=list)
    type: str = ADVANCED

    def to_dict(self):
        return asdict(self)


def _chi2_from_dict(payload):
    data = dict(payload)
    data['table'] = ContingencyTable(**data['table'])
    return Chi2Test(**data)


def _anova_from_dict(payload):
    data = dict(payload)
    data['group_stats'] = [GroupStats(**item) for item in data['group_stats']]
    return Anova(**data)


def _regression_from_dict(payload):
    data = dict(payload)
    data['coefficients'] = [Coefficient(**item) for item in data['coefficients']]
    return Regression(**data)


def result_from_dict(payload):
    """Rebuilds a result object from its `to_dict()` form."""
    kind = payload.get('type')
    if kind == FREQUENCY:
        return FrequencyResult(statistics=[ColumnStatistics.from_dict(s) for s in payload.get('statistics', [])])
    if kind == ASSOCIATION:
        return AssociationResult(
            sub_type=payload['sub_type'],
            base_variable=payload.get('base_variable'),
            crossing_variables=list(payload.get('crossing_variables') or []),
            chi2_tests=[_chi2_from_dict(item) for item in payload.get('chi2_tests', [])],
            correlations=[Correlation(**item) for item in payload.get('correlations', [])],
        )
    if kind == ADVANCED:
        return AdvancedResult(
            sub_type=payload['sub_type'],
            t_tests=[TTest(**item) for item in payload.get('t_tests', [])],
            anova_tests=[_anova_from_dict(item) for item in payload.get('anova_tests', [])],
            regressions=[_regression_from_dict(item) for item in payload.get('regressions', [])],
        )
    raise InvalidInputError(f"Unknown analysis type: {kind!r}")


# ------------------ HELPERS ------------------

def _require_columns(frame, variables):
    missing = [name for name in variables if name not in frame.columns]
    if missing:
        raise InvalidInputError(f"Unknown variable(s): {', '.join(missing)}")


def _label(value):
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _labels(series):
    """Category labels as strings; missing and blank cells become None."""
    return series.map(_label)


def _numbers(series):
    return pd.to_numeric(series, errors='coerce')


def _numeric_groups(frame, value_var, group_var):
    data = pd.DataFrame({'group': _labels(frame[group_var]), 'value': _numbers(frame[value_var])}).dropna()
    # keep first-appearance order of the groups
    return {str(key): group['value'].to_numpy(dtype=float) for key, group in data.groupby('group', sort=False)}


# ------------------ FREQUENCY ------------------

def frequency_analysis(dataset, variables):
    if not variables:
        raise InvalidInputError("Select at least one variable.")
    wanted = set(variables)
    statistics = [stats for stats in dataset.statistics if stats.name in wanted]
    return FrequencyResult(statistics=statistics)


# ------------------ ASSOCIATION ------------------

def chi2_test(frame, var1, var2):
    """Chi-squared test of independence on the cross-table of two variables."""
    data = pd.DataFrame({'v1': _labels(frame[var1]), 'v2': _labels(frame[var2])}).dropna()
    crosstab = pd.crosstab(data['v1'], data['v2'])
    observed = crosstab.to_numpy(dtype=float)
    grand_total = observed.sum()

    statistic = 0.0
    if grand_total > 0:
        expected = np.outer(observed.sum(axis=1), observed.sum(axis=0)) / grand_total
        mask = expected > 0
        statistic = float(np.sum((observed[mask] - expected[mask]) ** 2 / expected[mask]))
    rows, cols = observed.shape
    df = max(rows - 1, 0) * max(cols - 1, 0)
    p_value = 1.0 if df <= 0 else float(1 - chi2.cdf(statistic, df))

    row_labels = [str(r) for r in crosstab.index]
    col_labels = [str(c) for c in crosstab.columns]
    counts = {
        str(r): {str(c): int(crosstab.loc[r, c]) for c in crosstab.columns}
        for r in crosstab.index
    }
    table = ContingencyTable(
        rows=row_labels,
        cols=col_labels,
        counts=counts,
        row_totals={label: int(total) for label, total in zip(row_labels, observed.sum(axis=1))},
        col_totals={label: int(total) for label, total in zip(col_labels, observed.sum(axis=0))},
        grand_total=int(grand_total),
    )
    return Chi2Test(
        variable1=var1,
        variable2=var2,
        chi2=statistic,
        degrees_of_freedom=df,
        p_value=p_value,
        significant=p_value < SIGNIFICANCE_LEVEL,
        table=table,
    )


def pearson_correlation(frame, var1, var2):
    pairs = pd.DataFrame({'x': _numbers(frame[var1]), 'y': _numbers(frame[var2])}).dropna()
    n = len(pairs)
    if n < 3:
        return Correlation(variable1=var1, variable2=var2, correlation=0.0, p_value=1.0, n=n, significant=False)
    x = pairs['x'].to_numpy(dtype=float)
    y = pairs['y'].to_numpy(dtype=float)
    denominator = math.sqrt(((x - x.mean()) ** 2).sum() * ((y - y.mean()) ** 2).sum())
    r = 0.0 if denominator == 0 else float(((x - x.mean()) * (y - y.mean())).sum() / denominator)
    if abs(r) >= 1:
        p_value = 0.0
    else:
        t_stat = r * math.sqrt((n - 2) / (1 - r * r))
        p_value = float(2 * (1 - t.cdf(abs(t_stat), n - 2)))
    return Correlation(
        variable1=var1,
        variable2=var2,
        correlation=r,
        p_value=p_value,
        n=n,
        significant=p_value < SIGNIFICANCE_LEVEL,
    )


def association_analysis(frame, sub_type, variables=(), base_variable=None, crossing_variables=()):
    """Chi-squared cross-tables or pairwise Pearson correlations.

    For chi2, a base variable is crossed with each crossing variable; without
    one every pair of `variables` is tested.
    """
    if sub_type == 'chi2':
        if base_variable and crossing_variables:
            _require_columns(frame, [base_variable, *crossing_variables])
            tests = [chi2_test(frame, base_variable, var) for var in crossing_variables]
        elif len(variables) >= 2:
            _require_columns(frame, variables)
            tests = [chi2_test(frame, v1, v2) for v1, v2 in combinations(variables, 2)]
        else:
            raise InvalidInputError("Chi-squared analysis needs a base variable and at least one crossing variable.")
        logger.info("Chi2 tests completed: %d tests", len(tests))
        return AssociationResult(
            sub_type=sub_type,
            base_variable=base_variable,
            crossing_variables=list(crossing_variables),
            chi2_tests=tests,
        )
    if sub_type == 'correlation':
        if len(variables) < 2:
            raise InvalidInputError("At least 2 variables are required for correlation analysis.")
        _require_columns(frame, variables)
        correlations = [pearson_correlation(frame, v1, v2) for v1, v2 in combinations(variables, 2)]
        logger.info("Correlation tests completed: %d tests", len(correlations))
        return AssociationResult(sub_type=sub_type, correlations=correlations)
    raise InvalidInputError(f"Unknown association analysis: {sub_type!r}")


# ------------------ ADVANCED ------------------

def independent_t_test(frame, num_var, cat_var):
    """Pooled-variance t test when `cat_var` splits `num_var` into exactly two groups."""
    groups = _numeric_groups(frame, num_var, cat_var)
    if len(groups) != 2:
        return None
    (key1, group1), (key2, group2) = groups.items()
    n1, n2 = len(group1), len(group2)
    if n1 < 2 or n2 < 2:
        return None
    var1 = group1.var(ddof=1)
    var2 = group2.var(ddof=1)
    df = n1 + n2 - 2
    pooled_sd = math.sqrt(((n1 - 1) * var1 + (n2 - 1) * var2) / df)
    if pooled_sd == 0:
        return None
    t_stat = (group1.mean() - group2.mean()) / (pooled_sd * math.sqrt(1 / n1 + 1 / n2))
    p_value = float(2 * (1 - t.cdf(abs(t_stat), df)))
    return TTest(
        variable=num_var,
        group1=key1,
        group2=key2,
        mean1=float(group1.mean()),
        mean2=float(group2.mean()),
        sd1=float(math.sqrt(var1)),
        sd2=float(math.sqrt(var2)),
        n1=n1,
        n2=n2,
        t_statistic=float(t_stat),
        degrees_of_freedom=df,
        p_value=p_value,
        significant=p_value < SIGNIFICANCE_LEVEL,
    )


def one_way_anova(frame, dep_var, indep_var):
    groups = _numeric_groups(frame, dep_var, indep_var)
    total = sum(len(values) for values in groups.values())
    if len(groups) < 2 or total - len(groups) <= 0:
        return None
    f_stat, p_value = f_oneway(*groups.values())
    if not np.isfinite(f_stat):
        return None
    group_stats = [
        GroupStats(
            group=key,
            n=len(values),
            mean=float(values.mean()),
            sd=float(values.std(ddof=1)) if len(values) > 1 else 0.0,
        )
        for key, values in groups.items()
    ]
    return Anova(
        dependent_variable=dep_var,
        independent_variable=indep_var,
        groups=list(groups),
        f_statistic=float(f_stat),
        p_value=float(p_value),
        significant=float(p_value) < SIGNIFICANCE_LEVEL,
        group_stats=group_stats,
    )


def simple_regression(frame, dep_var, indep_var):
    """Least-squares fit of dep_var on a single predictor."""
    data = pd.DataFrame({'x': _numbers(frame[indep_var]), 'y': _numbers(frame[dep_var])}).dropna()
    n = len(data)
    if n < 3:
        return None
    x = data['x'].to_numpy(dtype=float)
    y = data['y'].to_numpy(dtype=float)
    if np.all(x == x[0]):
        return None
    fit = linregress(x, y)
    df = n - 2
    r_squared = float(fit.rvalue ** 2)
    if r_squared >= 1:
        f_stat, f_p_value = math.inf, 0.0
    else:
        f_stat = r_squared / (1 - r_squared) * df
        f_p_value = float(1 - f.cdf(f_stat, 1, df))

    def _coefficient(name, estimate, se):
        t_value = estimate / se if se > 0 else math.copysign(math.inf, estimate) if estimate else 0.0
        p = float(2 * (1 - t.cdf(abs(t_value), df))) if math.isfinite(t_value) else 0.0
        return Coefficient(variable=name, coefficient=float(estimate), standard_error=float(se), t_value=float(t_value), p_value=p)

    return Regression(
        dependent_variable=dep_var,
        independent_variables=[indep_var],
        coefficients=[
            _coefficient('Intercept', fit.intercept, fit.intercept_stderr),
            _coefficient(indep_var, fit.slope, fit.stderr),
        ],
        r_squared=r_squared,
        adjusted_r_squared=1 - (1 - r_squared) * (n - 1) / df,
        f_statistic=float(f_stat),
        p_value=f_p_value,
        n=n,
    )


def advanced_analysis(frame, sub_type, variables):
    """Runs the chosen model on every ordered pair of selected variables, keeping the applicable ones."""
    if len(variables) < 2:
        raise InvalidInputError("Select at least two variables.")
    _require_columns(frame, variables)
    pairs = list(permutations(variables, 2))
    if sub_type == 'ttest':
        tests = [r for r in (independent_t_test(frame, a, b) for a, b in pairs) if r is not None]
        logger.info("T-tests completed: %d tests", len(tests))
        return AdvancedResult(sub_type=sub_type, t_tests=tests)
    if sub_type == 'anova':
        tests = [r for r in (one_way_anova(frame, a, b) for a, b in pairs) if r is not None]
        logger.info("ANOVA tests completed: %d tests", len(tests))
        return AdvancedResult(sub_type=sub_type, anova_tests=tests)
    if sub_type == 'regression':
        fits = [r for r in (simple_regression(frame, a, b) for a, b in pairs) if r is not None]
        logger.info("Regression analyses completed: %d analyses", len(fits))
        return AdvancedResult(sub_type=sub_type, regressions=fits)
    raise InvalidInputError(f"Unknown advanced analysis: {sub_type!r}")
