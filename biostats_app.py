import logging
import math
import secrets
import time

import pandas as pd
import streamlit as st

from saidistat import analyses, store
from saidistat.analyses import ADVANCED, ASSOCIATION, FREQUENCY
from saidistat.completion import CompletionRequest, StudyContext, request_completion
from saidistat.config import load_settings
from saidistat.descriptive import calculate_interquartile_range, calculate_quartiles, summarize
from saidistat.epidemiology import (
    analyze_case_control,
    analyze_cohort,
    analyze_diagnostic_test,
    analyze_mortality,
    calculate_cumulative_incidence,
    calculate_incidence_density,
    calculate_prevalence,
)
from saidistat.errors import CompletionError, ConfigurationError, InvalidInputError
from saidistat.frequency import build_frequency_table, sturges_class_count
from saidistat.inference import (
    calculate_anova,
    calculate_chi_squared_from_table,
    calculate_paired_t_test,
    calculate_t_ci,
    calculate_t_test_mean,
    calculate_z_ci,
    calculate_z_test_mean,
    calculate_z_test_two_proportions,
    compare_two_means,
    parse_observed_table,
    sample_size_for_mean,
    sample_size_for_proportion,
)
from saidistat.ingestion import ingest_file
from saidistat.logs import configure_logging
from saidistat.parsing import parse_numeric_input
from saidistat.percentiles import compute_percentiles, z_score
from saidistat.probability import (
    calculate_binomial_probability,
    calculate_normal_probability,
    calculate_poisson_probability,
    complement_probability,
    independent_events_probability,
    repeated_events_probability,
)
from saidistat.session import AuthEvent, AuthSession, AuthUser, SessionStore
from saidistat.wizard import AnalysisWizard, WizardStep

logger = logging.getLogger(__name__)

SETTINGS = load_settings()
configure_logging(SETTINGS.log_level)

PAGES = [
    "Home",
    "Descriptive Statistics",
    "Percentiles & Z-score",
    "Sample Size & Mean Comparison",
    "Epidemiological Measures",
    "Hypothesis Testing",
    "Probability",
    "Data Analysis",
    "Thesis Writing",
]

# --- Custom CSS for styling ---
CSS = """
<style>
@import url('https://fonts.googleapis.com/css2?family=Poppins:wght@300;400;600&display=swap');

html, body, [class*="css"] {
    font-family: 'Poppins', sans-serif;
    color: #333;
}

h1, h2, h3, h4, h5, h6 {
    color: #004d40;
    font-weight: 600;
}

.stButton>button {
    background-color: #00796b;
    color: white;
    border-radius: 8px;
    border: none;
    font-weight: 600;
}

.stButton>button:hover {
    background-color: #004d40;
}

.stTabs [aria-selected="true"] {
    background-color: #00796b;
    color: white;
}
</style>
"""


def fmt(value, digits=2, suffix=""):
    """Formats a number, leaving nan / inf visible instead of hiding them."""
    if value is None:
        return "n/a"
    if isinstance(value, float) and not math.isfinite(value):
        return f"{value}{suffix}"
    return f"{value:.{digits}f}{suffix}"


def significance_message(p_value, rejected, kept, alpha=0.05):
    if p_value < alpha:
        st.success(f"The p-value is less than {alpha}. We reject the null hypothesis. {rejected}")
    else:
        st.info(f"The p-value is greater than or equal to {alpha}. We fail to reject the null hypothesis. {kept}")

# ------------------ SESSION ------------------

def get_auth():
    if "auth" not in st.session_state:
        st.session_state.auth = SessionStore()
    return st.session_state.auth


def sign_in(user_id, username, guest=False):
    user = AuthUser(id=str(user_id), username=username, guest=guest)
    session = AuthSession(user=user, access_token=secrets.token_urlsafe(32), issued_at=time.time())
    get_auth().dispatch(AuthEvent.SIGNED_IN, session)
    logger.info("Signed in as %s", username)
    st.session_state.page = "Home"


def refresh_session_if_due():
    auth = get_auth()
    if auth.needs_refresh(SETTINGS.session_refresh_seconds):
        current = auth.state.session
        refreshed = AuthSession(user=current.user, access_token=secrets.token_urlsafe(32), issued_at=time.time())
        auth.dispatch(AuthEvent.TOKEN_REFRESHED, refreshed)

# ------------------ UI PAGES ------------------

def home_page():
    st.markdown("""
        Welcome to SaidiStat, a biostatistics and epidemiology companion for health researchers.
        Use the navigation sidebar to access the different sections.

        ### What you can do with this app:

        * **Descriptive Statistics:** mean, median, modes, dispersion and a grouped frequency table (Sturges' rule).
        * **Percentiles & Z-score:** locate a value within a distribution.
        * **Sample Size & Mean Comparison:** plan a study and compare two group means.
        * **Epidemiological Measures:** frequency measures, cohort and case-control 2x2 tables, diagnostic tests, mortality.
        * **Hypothesis Testing:** chi-squared, Z/T tests, confidence intervals, paired t-test and ANOVA.
        * **Probability:** elementary rules and the binomial, normal and Poisson laws.
        * **Data Analysis:** upload a CSV or Excel file and run frequency, association or advanced analyses.
        * **Thesis Writing:** let the writing assistant identify your study type and draft sections.
    """)


def descriptive_stats_page():
    st.header("📊 Descriptive Statistics")
    st.write("Enter a list of numbers separated by spaces, commas or semicolons.")
    user_input_stats = st.text_area("Enter your data here:", "73 92 48 54 63 63 64 65 50 73")
    if st.button("Calculate Statistics"):
        try:
            sample = parse_numeric_input(user_input_stats)
        except InvalidInputError as exc:
            # the previous result stays on screen
            st.error(str(exc))
        else:
            st.session_state.descriptive = (sample, summarize(sample))

    if "descriptive" not in st.session_state:
        return
    sample, stats = st.session_state.descriptive

    st.subheader("Results")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("n", stats.count)
    col2.metric("Min", fmt(stats.min))
    col3.metric("Max", fmt(stats.max))
    col4.metric("Range", fmt(stats.range))

    st.write(f"**Mean:** {fmt(stats.mean)}")
    with st.expander("Show Mean Formula & Explanation"):
        st.latex(r''' \bar{x} = \frac{\sum x}{n} ''')
        st.markdown(f"""
            * Sum of data: {sum(sample):g}
            * Number of data points ($ n $): {stats.count}
            * Calculation: {sum(sample):g} / {stats.count} = {fmt(stats.mean)}
        """)

    st.write(f"**Median:** {fmt(stats.median)}")
    st.write(f"**Mode(s):** {', '.join(f'{m:g}' for m in stats.modes)}")
    with st.expander("Show Mode Explanation"):
        st.markdown("""
            * The mode is the value that appears most frequently. When several values share
              the highest count, all of them are modes.
        """)

    st.write(f"**Variance:** {fmt(stats.variance)}")
    with st.expander("Show Variance Formula & Explanation"):
        st.latex(r''' \sigma^2 = \frac{\sum (x_i - \bar{x})^2}{n} ''')
        st.markdown("* Average of the squared differences from the mean, divided by $n$.")

    st.write(f"**Standard Deviation:** {fmt(stats.standard_deviation)}")
    st.write(f"**Coefficient of Variation (CV):** {fmt(stats.coefficient_of_variation, suffix='%')}")
    if not math.isfinite(stats.coefficient_of_variation):
        st.warning("The mean is zero, so the coefficient of variation is undefined.")

    q1, q3 = calculate_quartiles(sample)
    if q1 is not None:
        st.write(f"**Q1:** {fmt(q1)} | **Q3:** {fmt(q3)} | **IQR:** {fmt(calculate_interquartile_range(sample))}")

    st.subheader("Frequency Distribution")
    table = build_frequency_table(sample, stats)
    st.write(f"Number of classes (Sturges): K = ceil(1 + 3.322 × log10({stats.count})) = "
             f"{sturges_class_count(stats.count)}, width h = {fmt(stats.range / len(table))}")
    if stats.range == 0:
        st.warning("All values are identical: every class has zero width.")
    st.dataframe(pd.DataFrame([{
        "Class": c.interval_label,
        "Midpoint": round(c.midpoint, 2),
        "Frequency": c.frequency,
        "Relative frequency (%)": round(c.relative_frequency_percent, 2),
        "Cumulative frequency": c.cumulative_frequency,
    } for c in table]), hide_index=True)


def percentiles_page():
    st.header("📐 Percentiles & Z-score")

    st.subheader("Percentiles")
    data_input = st.text_area("Data:", "7 8.2 9 10 10 11 11.5 12 14 16 20 20.5", key="pct_data")
    custom = st.number_input("Custom percentile (optional, 0 to skip):", min_value=0.0, max_value=99.0, value=0.0)
    if st.button("Calculate Percentiles"):
        try:
            sample = parse_numeric_input(data_input)
            results = compute_percentiles(sample, custom or None)
            st.table(pd.DataFrame({"Percentile": list(results), "Value": [round(v, 3) for v in results.values()]}))
            with st.expander("Show Percentile Formula"):
                st.latex(r''' \text{rank} = \frac{p}{100}(n+1) ''')
                st.markdown("* The value is interpolated between the two observations surrounding the rank.")
        except InvalidInputError as exc:
            st.error(str(exc))

    st.markdown("---")
    st.subheader("Z-score")
    col1, col2, col3 = st.columns(3)
    with col1: x = st.number_input("Value (x):", value=85.0)
    with col2: mean = st.number_input("Mean (μ):", value=70.0)
    with col3: sd = st.number_input("Standard deviation (σ):", value=10.0)
    if st.button("Calculate Z-score"):
        try:
            result = z_score(x, mean, sd)
            st.write(f"**Z = ({x:g} - {mean:g}) / {sd:g} = {result.z:.3f}**")
            st.info(result.interpretation)
        except InvalidInputError as exc:
            st.error(str(exc))


def sample_size_page():
    st.header("🧮 Sample Size & Mean Comparison")

    st.subheader("Sample size")
    kind = st.radio("Estimate", ("A proportion", "A difference of means"), horizontal=True)
    try:
        if kind == "A proportion":
            col1, col2, col3 = st.columns(3)
            with col1: p = st.number_input("Expected proportion (%):", min_value=0.0, max_value=100.0, value=30.0)
            with col2: e = st.number_input("Margin of error (%):", min_value=0.0, value=5.0)
            with col3: confidence = st.selectbox("Confidence level (%):", (90, 95, 99), index=1)
            if st.button("Calculate Sample Size", key="ss_prop"):
                result = sample_size_for_proportion(p, e, confidence)
                st.success(f"**n = {result.n}**  ({result.formula})")
        else:
            col1, col2, col3, col4 = st.columns(4)
            with col1: sd = st.number_input("Standard deviation (σ):", value=10.0)
            with col2: d = st.number_input("Difference to detect (d):", value=5.0)
            with col3: alpha = st.selectbox("α:", (0.05, 0.01, 0.10))
            with col4: beta = st.selectbox("β:", (0.20, 0.10))
            if st.button("Calculate Sample Size", key="ss_mean"):
                result = sample_size_for_mean(sd, d, alpha, beta)
                st.success(f"**n = {result.n} per group**  ({result.formula}, power {1 - beta:.0%})")
    except InvalidInputError as exc:
        st.error(str(exc))

    st.markdown("---")
    st.subheader("Comparison of two means")
    col1, col2 = st.columns(2)
    with col1:
        m1 = st.number_input("Group 1 mean:", value=25.4)
        s1 = st.number_input("Group 1 SD:", value=3.2)
        n1 = st.number_input("Group 1 n:", min_value=2, value=30)
    with col2:
        m2 = st.number_input("Group 2 mean:", value=23.1)
        s2 = st.number_input("Group 2 SD:", value=3.5)
        n2 = st.number_input("Group 2 n:", min_value=2, value=30)
    alpha_cmp = st.selectbox("Significance level (α):", (0.05, 0.01), key="alpha_cmp")
    if st.button("Compare Means"):
        try:
            result = compare_two_means(m1, s1, n1, m2, s2, n2, alpha_cmp)
        except InvalidInputError as exc:
            st.error(str(exc))
            return
        st.write(f"**Pooled SD:** {result.pooled_sd:.3f}")
        st.write(f"**t:** {result.t_statistic:.3f} (df = {result.df}, critical value {result.critical_value:.3f})")
        st.write(f"**P-value:** {result.p_value:.4f}")
        low, high = result.confidence_interval
        st.write(f"**{1 - alpha_cmp:.0%} CI of the difference:** [{low:.3f}, {high:.3f}]")
        significance_message(
            result.p_value,
            "The difference between the two means is statistically significant.",
            "The difference between the two means is not statistically significant.",
            alpha_cmp,
        )


def _two_by_two(prefix, labels, defaults):
    cols = st.columns(4)
    values = []
    for col, label, default in zip(cols, labels, defaults):
        with col:
            values.append(st.number_input(label, min_value=0, value=default, key=f"{prefix}_{label}"))
    return values


def epidemiological_measures_page():
    st.header("📈 Epidemiological Measures")
    tabs = st.tabs(["Frequency", "Cohort", "Case-Control", "Diagnostic Test", "Mortality"])

    with tabs[0]:
        col1, col2 = st.columns(2)
        with col1: cases = st.number_input("Cases (existing or new):", min_value=0, value=300)
        with col2: population = st.number_input("Population (total or at risk):", min_value=0, value=10000)
        person_years = st.number_input("Person-years of follow-up:", min_value=0.0, value=25000.0)
        if st.button("Calculate Frequency Measures"):
            try:
                st.write(f"**Prevalence / cumulative incidence:** {calculate_prevalence(cases, population):.2f}%")
                st.write(f"**Cumulative incidence:** {calculate_cumulative_incidence(cases, population):.2f}%")
                st.write(f"**Incidence density:** {calculate_incidence_density(cases, person_years):.2f} per 1,000 person-years")
            except InvalidInputError as exc:
                st.error(str(exc))

    with tabs[1]:
        st.markdown("| | Disease+ | Disease- |\n| :--- | :---: | :---: |\n| **Exposed** | a | b |\n| **Unexposed** | c | d |")
        a, b, c, d = _two_by_two("cohort", ("a", "b", "c", "d"), (80, 920, 20, 980))
        if st.button("Analyze Cohort"):
            try:
                r = analyze_cohort(a, b, c, d)
            except InvalidInputError as exc:
                st.error(str(exc))
            else:
                st.write(f"**Incidence exposed:** {r.incidence_exposed:.2f}% | **unexposed:** {r.incidence_unexposed:.2f}%")
                st.write(f"**Relative Risk:** {r.relative_risk:.3f} (95% CI {r.ci95[0]:.3f} - {r.ci95[1]:.3f})")
                st.info(r.interpretation)
                st.write(f"**Attributable risk:** {fmt(r.attributable_risk, suffix='%')}")
                st.write(f"**Attributable fraction (exposed):** {fmt(r.attributable_fraction_exposed, suffix='%')}")
                st.write(f"**Population attributable fraction:** {fmt(r.population_attributable_fraction, suffix='%')}")

    with tabs[2]:
        st.markdown("| | Cases | Controls |\n| :--- | :---: | :---: |\n| **Exposed** | a | b |\n| **Unexposed** | c | d |")
        a, b, c, d = _two_by_two("cc", ("a", "b", "c", "d"), (70, 30, 30, 70))
        if st.button("Analyze Case-Control"):
            try:
                r = analyze_case_control(a, b, c, d)
            except InvalidInputError as exc:
                st.error(str(exc))
            else:
                st.write(f"**Odds Ratio:** {r.odds_ratio:.3f} (95% CI {r.ci95[0]:.3f} - {r.ci95[1]:.3f})")
                st.info(r.interpretation)
                st.write(f"**Attributable fraction (exposed):** {fmt(r.attributable_fraction_exposed, suffix='%')}")
                st.write(f"**Population attributable fraction:** {fmt(r.population_attributable_fraction, suffix='%')}")

    with tabs[3]:
        tp, fp, fn, tn = _two_by_two("dx", ("TP", "FP", "FN", "TN"), (85, 15, 10, 90))
        if st.button("Evaluate Test"):
            try:
                r = analyze_diagnostic_test(tp, fp, fn, tn)
            except InvalidInputError as exc:
                st.error(str(exc))
            else:
                st.table(pd.DataFrame({
                    "Measure": ["Sensitivity", "Specificity", "PPV", "NPV", "Accuracy"],
                    "%": [round(v, 2) for v in (r.sensitivity, r.specificity, r.positive_predictive_value,
                                               r.negative_predictive_value, r.accuracy)],
                }))

    with tabs[4]:
        col1, col2 = st.columns(2)
        with col1: pop = st.number_input("Starting population:", min_value=1, value=21500)
        with col2: deaths = st.number_input("Total deaths:", min_value=0, value=116)
        causes = st.columns(3)
        by_cause = [causes[i].number_input(f"Deaths, cause {i + 1}:", min_value=0, value=0, key=f"cause_{i}") for i in range(3)]
        cases = st.number_input("Cases of the disease (cause 1):", min_value=0, value=0)
        if st.button("Calculate Mortality"):
            try:
                r = analyze_mortality(pop, deaths, by_cause, cases)
            except InvalidInputError as exc:
                st.error(str(exc))
            else:
                st.write(f"**Crude mortality:** {r.crude_mortality:.2f} per 1,000 (mean population {r.mean_population:.0f})")
                for i, (specific, proportional) in enumerate(zip(r.specific_mortality, r.proportional_mortality), start=1):
                    if specific is not None:
                        st.write(f"Cause {i}: {specific:.2f} per 1,000, {proportional:.2f}% of deaths")
                if r.case_fatality is not None:
                    st.write(f"**Case fatality:** {r.case_fatality:.2f}%")


def hypothesis_testing_page():
    st.header("📑 Hypothesis Testing")

    st.subheader("Chi-Squared Test for a R x C Table")
    st.write("Use spaces or commas to separate columns and new lines to separate rows.")
    chi_sq_input = st.text_area("Observed values table:", "40, 60\n20, 80", key="chi_sq_input")
    if st.button("Calculate Chi-Squared Test", key="chi_sq_button"):
        try:
            result = calculate_chi_squared_from_table(parse_observed_table(chi_sq_input))
            st.write(f"**Chi-Squared Statistic ($X^2$):** {result.statistic:.2f}")
            st.write(f"**Degrees of Freedom (df):** {result.df}")
            st.write(f"**P-value:** {result.p_value:.4f}")
            if result.small_expected_counts:
                st.warning("One or more expected counts are less than 5. The chi-squared test may not be appropriate.")
            significance_message(result.p_value, "The variables are associated.", "No significant association was found.")
        except InvalidInputError as exc:
            st.error(str(exc))

    st.markdown("---")
    st.subheader("Z-test for Two Proportions")
    col_x1, col_n1, col_x2, col_n2 = st.columns(4)
    with col_x1: x1 = st.number_input("x1:", min_value=0, value=250)
    with col_n1: n1 = st.number_input("n1:", min_value=1, value=500)
    with col_x2: x2 = st.number_input("x2:", min_value=0, value=200)
    with col_n2: n2 = st.number_input("n2:", min_value=1, value=500)
    if st.button("Calculate Two-Proportion Z-test"):
        if x1 > n1 or x2 > n2:
            st.error("Number of successes cannot be greater than the sample size.")
        else:
            try:
                z_stat, p_value = calculate_z_test_two_proportions(x1, n1, x2, n2)
                st.write(f"**Z-statistic:** {z_stat:.2f} | **P-value:** {p_value:.4f}")
                significance_message(p_value, "The proportions differ.", "The proportions do not differ significantly.")
            except InvalidInputError as exc:
                st.error(str(exc))

    st.markdown("---")
    st.subheader("Mean: confidence interval and significance test")
    mean_ci = st.number_input("Sample Mean:", value=102.0)
    pop_mean = st.number_input("Hypothesized Population Mean ($\\mu_0$):", value=100.0)
    std_dev = st.number_input("Standard Deviation:", value=15.0)
    n = st.number_input("Sample Size (n):", min_value=2, value=25)
    confidence_level = st.slider("Confidence Level:", min_value=0.50, max_value=0.99, value=0.95, step=0.01)
    if st.button("Calculate", key="mean_test_button"):
        try:
            if n < 20:
                lower, upper = calculate_t_ci(mean_ci, std_dev, n, confidence_level)
                stat, p_value = calculate_t_test_mean(mean_ci, pop_mean, std_dev, n)
                st.write(f"**Using T-distribution (n < 20)**: t = {stat:.2f}, df = {n - 1}")
            else:
                lower, upper = calculate_z_ci(mean_ci, std_dev, n, confidence_level)
                stat, p_value = calculate_z_test_mean(mean_ci, pop_mean, std_dev, n)
                st.write(f"**Using Z-distribution (n >= 20)**: Z = {stat:.2f}")
            st.write(f"**Confidence Interval ({confidence_level * 100:.0f}%):** [{lower:.2f}, {upper:.2f}]")
            st.write(f"**P-value:** {p_value:.4f}")
            significance_message(p_value, "The mean differs from $\\mu_0$.", "The mean does not differ significantly from $\\mu_0$.")
        except InvalidInputError as exc:
            st.error(str(exc))

    st.markdown("---")
    st.subheader("Paired T-test")
    sample1_input = st.text_input("Sample 1 (before):", "10, 12, 15, 11, 13")
    sample2_input = st.text_input("Sample 2 (after):", "12, 14, 16, 12, 15")
    if st.button("Calculate Paired T-test"):
        try:
            t_stat, p_value = calculate_paired_t_test(parse_numeric_input(sample1_input), parse_numeric_input(sample2_input))
            st.write(f"**T-statistic:** {t_stat:.4f} | **P-value:** {p_value:.4f}")
            significance_message(p_value, "The two measurements differ.", "No significant difference between measurements.")
        except InvalidInputError as exc:
            st.error(str(exc))

    st.markdown("---")
    st.subheader("One-way ANOVA")
    anova_input = st.text_area("One group per line:", "10, 12, 14\n15, 17, 19\n20, 22, 24", key="anova_data")
    if st.button("Calculate ANOVA"):
        try:
            samples = [parse_numeric_input(line) for line in anova_input.strip().splitlines() if line.strip()]
            f_stat, p_value = calculate_anova(*samples)
            st.write(f"**F-statistic:** {f_stat:.4f} | **P-value:** {p_value:.4f}")
            significance_message(p_value, "At least two group means differ.", "The group means do not differ significantly.")
        except InvalidInputError as exc:
            st.error(str(exc))


def probability_page():
    st.header("🎲 Probability")
    rule = st.selectbox("Problem type", ["Independent events", "Repeated events", "Complement",
                                         "Binomial", "Normal", "Poisson"])
    try:
        if rule == "Independent events":
            p1 = st.number_input("P(A):", 0.0, 1.0, 0.3)
            p2 = st.number_input("P(B):", 0.0, 1.0, 0.5)
            st.write(f"**P(A and B) = {independent_events_probability(p1, p2):.6f}**")
        elif rule == "Repeated events":
            p = st.number_input("p:", 0.0, 1.0, 0.9)
            n = st.number_input("Number of events (n):", min_value=0, value=3)
            st.write(f"**p^n = {repeated_events_probability(p, n):.6f}**")
        elif rule == "Complement":
            p = st.number_input("P(A):", 0.0, 1.0, 0.2)
            st.write(f"**P(not A) = {complement_probability(p):.6f}**")
        elif rule == "Binomial":
            n = st.number_input("Number of trials (n):", min_value=1, value=10)
            p = st.number_input("Probability of success (p):", 0.0, 1.0, 0.22)
            k = st.number_input("Number of successes (k):", min_value=0, max_value=int(n), value=min(5, int(n)))
            exact = calculate_binomial_probability(n, k, p)
            at_most = sum(calculate_binomial_probability(n, i, p) for i in range(k + 1))
            st.write(f"**P(X = {k}):** {exact:.4f} | **P(X ≤ {k}):** {at_most:.4f} | "
                     f"**P(X ≥ {k}):** {1 - at_most + exact:.4f}")
        elif rule == "Normal":
            mu = st.number_input("Mean (μ):", value=0.0)
            sigma = st.number_input("Standard deviation (σ):", value=1.0)
            x1 = st.number_input("x1:", value=1.96)
            between = st.checkbox("Probability between two values")
            if between:
                x2 = st.number_input("x2:", value=2.5)
                z1, z2, prob = calculate_normal_probability(mu, sigma, x1, x2)
                st.write(f"**P({x1:g} < X < {x2:g}) = {prob:.4f}** (z1 = {z1:.2f}, z2 = {z2:.2f})")
            else:
                z, less, greater = calculate_normal_probability(mu, sigma, x1)
                st.write(f"**z = {z:.2f}**, P(X < x) = {less:.4f}, P(X > x) = {greater:.4f}")
        else:
            lam = st.number_input("λ:", min_value=0.0, value=2.0)
            k = st.number_input("k:", min_value=0, value=3)
            st.write(f"**P(X = {k}) = {calculate_poisson_probability(lam, k):.4f}**")
    except InvalidInputError as exc:
        st.error(str(exc))

# ------------------ DATA ANALYSIS ------------------

def render_result(result):
    if result.type == FREQUENCY:
        for stats in result.statistics:
            st.markdown(f"**{stats.name}** ({stats.type}, n = {stats.count}, missing = {stats.missing})")
            if stats.is_numeric:
                st.write(f"Mean {stats.mean} | Median {stats.median} | SD {stats.std} | Min {stats.min} | Max {stats.max}")
            else:
                st.dataframe(pd.DataFrame([f.__dict__ for f in stats.frequencies]), hide_index=True)
    elif result.type == ASSOCIATION:
        for test in result.chi2_tests:
            st.markdown(f"**{test.variable1} × {test.variable2}**: χ² = {test.chi2:.4f}, "
                        f"df = {test.degrees_of_freedom}, p = {test.p_value:.4f}")
            st.dataframe(pd.DataFrame(test.table.counts).T)
        for corr in result.correlations:
            st.markdown(f"**{corr.variable1} ~ {corr.variable2}**: r = {corr.correlation:.4f}, "
                        f"p = {corr.p_value:.4f} (n = {corr.n})")
    elif result.type == ADVANCED:
        for test in result.t_tests:
            st.markdown(f"**{test.variable}** by {test.group1}/{test.group2}: t = {test.t_statistic:.4f}, "
                        f"df = {test.degrees_of_freedom}, p = {test.p_value:.4f}")
        for test in result.anova_tests:
            st.markdown(f"**{test.dependent_variable}** by {test.independent_variable}: "
                        f"F = {test.f_statistic:.4f}, p = {test.p_value:.4f}")
            st.dataframe(pd.DataFrame([g.__dict__ for g in test.group_stats]), hide_index=True)
        for fit in result.regressions:
            st.markdown(f"**{fit.dependent_variable} ~ {fit.independent_variables[0]}**: "
                        f"R² = {fit.r_squared:.4f}, F = {fit.f_statistic:.4f}, p = {fit.p_value:.4f}")
            st.dataframe(pd.DataFrame([c.__dict__ for c in fit.coefficients]), hide_index=True)


def data_analysis_page():
    st.header("🗂️ Data Analysis")
    if "wizard" not in st.session_state:
        st.session_state.wizard = AnalysisWizard()
    wizard = st.session_state.wizard
    auth = get_auth().state

    st.progress(int(wizard.step) / len(WizardStep), text=f"Step {int(wizard.step)} of {len(WizardStep)}")

    try:
        if wizard.step is WizardStep.UPLOAD:
            file = st.file_uploader("Upload a CSV or Excel file", type=["csv", "xlsx", "xls"])
            if file is not None and st.button("Continue"):
                dataset = ingest_file(file.name, file.getvalue())
                wizard.load_dataset(dataset)
                st.rerun()

        elif wizard.step is WizardStep.SELECT_ANALYSIS_TYPE:
            dataset = wizard.dataset
            st.success(f"{dataset.file_name} - {dataset.row_count} rows and {dataset.column_count} columns")
            st.dataframe(pd.DataFrame(dataset.preview))
            kind = st.radio("Analysis type", [FREQUENCY, ASSOCIATION, ADVANCED], horizontal=True)
            sub_types = analyses.ANALYSIS_SUBTYPES[kind]
            sub_type = st.selectbox("Method", sub_types) if sub_types else None
            col1, col2 = st.columns(2)
            if col1.button("Back"):
                wizard.back()
                st.rerun()
            if col2.button("Continue"):
                wizard.choose_analysis(kind, sub_type)
                st.rerun()

        elif wizard.step is WizardStep.SELECT_VARIABLES:
            columns = wizard.dataset.columns
            if wizard.error:
                st.error(wizard.error)
            if wizard.uses_crossing:
                base = st.selectbox("Base variable", columns)
                wizard.set_base_variable(base)
                crossing = st.multiselect("Crossing variables", [c for c in columns if c != base])
                for name in set(crossing) ^ set(wizard.crossing_variables):
                    wizard.toggle_crossing_variable(name)
            else:
                wizard.select_variables(st.multiselect("Variables", columns, default=wizard.selected_variables))
            col1, col2 = st.columns(2)
            if col1.button("Back"):
                wizard.back()
                st.rerun()
            if col2.button("Run Analysis", disabled=not wizard.can_run()):
                wizard.run()
                st.success(f"{wizard.analyzed_variable_count} variable(s) analyzed successfully")
                st.rerun()

        else:
            render_result(wizard.result)
            if auth.authenticated:
                name = st.text_input("Analysis name")
                if st.button("Save Analysis"):
                    file_name = wizard.dataset.file_name if wizard.dataset else None
                    store.save_analysis(auth.user.id, name, wizard.analysis_type, file_name,
                                        wizard.selected_variables or wizard.crossing_variables,
                                        wizard.result.to_dict(), db_path=SETTINGS.db_path)
                    st.success(f'"{name}" was saved')
            if st.button("New Analysis"):
                wizard.reset()
                st.rerun()
    except InvalidInputError as exc:
        st.error(str(exc))

    if auth.authenticated:
        saved = store.list_saved_analyses(auth.user.id, db_path=SETTINGS.db_path)
        if saved:
            st.markdown("---")
            st.subheader("Saved analyses")
            for record in saved:
                with st.expander(f"**{record['analysis_name']}** - {record['file_name']} - *{record['created_at'].split('T')[0]}*"):
                    col1, col2 = st.columns(2)
                    if col1.button("Load", key=f"load_{record['id']}"):
                        wizard.load_saved(record['analysis_type'], record['selected_variables'],
                                          analyses.result_from_dict(record['results']))
                        st.rerun()
                    if col2.button("Delete", key=f"delete_{record['id']}"):
                        store.delete_saved_analysis(auth.user.id, record['id'], db_path=SETTINGS.db_path)
                        st.rerun()

# ------------------ THESIS WRITING ------------------

SECTIONS = {
    "Context and justification": "context",
    "State of the question": "state_of_question",
    "Objectives": "objectives",
    "Methodology": "methodology",
}


def thesis_writing_page():
    st.header("✍️ Thesis Writing")
    if not SETTINGS.completion_enabled:
        st.info("The writing assistant is not configured (set SAIDISTAT_COMPLETION_URL).")
        return

    topic = st.text_input("Research topic")
    with st.expander("Study context"):
        context = StudyContext(
            domain=st.text_input("Domain", "medical"),
            objective=st.text_input("Objective"),
            population=st.text_input("Population"),
            period=st.text_input("Period"),
            location=st.text_input("Location"),
            variables=[v.strip() for v in st.text_input("Variables (comma-separated)").split(',') if v.strip()],
        )
    action = st.radio("Action", ["Identify study type", "Generate a section", "Generate references"], horizontal=True)
    request = None
    if action == "Identify study type":
        request = CompletionRequest(action='identify_study', topic=topic)
    elif action == "Generate a section":
        section = st.selectbox("Section", list(SECTIONS))
        study_type = st.text_input("Study type", st.session_state.get("study_type", ""))
        request = CompletionRequest(action='generate_section', topic=topic, section=SECTIONS[section],
                                    study_type=study_type, context=context)
    else:
        request = CompletionRequest(action='generate_references', topic=topic, context=context)

    if st.button("Ask the Assistant", disabled=not topic):
        try:
            with st.spinner("Writing..."):
                result = request_completion(request, SETTINGS)
        except (CompletionError, ConfigurationError) as exc:
            st.error(str(exc))
            return
        if 'studyType' in result.payload:
            st.session_state.study_type = result.payload['studyType']
        st.markdown(result.content or "_No text returned._")
        for citation in result.citations:
            st.markdown(f"* {citation.citation}: {citation.full_reference}")

# ------------------ MAIN APP LOGIC ------------------

def main():
    st.set_page_config(page_title="SaidiStat", layout="wide", initial_sidebar_state="expanded")
    st.markdown(CSS, unsafe_allow_html=True)
    store.init_db(SETTINGS.db_path)
    auth = get_auth()
    refresh_session_if_due()

    if "page" not in st.session_state:
        st.session_state.page = "Home"

    # Login/Register/Continue
    if auth.state.user is None:
        st.sidebar.title("Login / Register")
        username = st.sidebar.text_input("Username")
        password = st.sidebar.text_input("Password", type="password")

        col1, col2 = st.sidebar.columns(2)
        with col1:
            if st.button("Login"):
                user_id = store.authenticate_user(username, password, db_path=SETTINGS.db_path)
                if user_id:
                    sign_in(user_id, username)
                    st.rerun()
                else:
                    st.error("Invalid credentials.")
        with col2:
            if st.button("Register"):
                try:
                    if store.create_user(username, password, db_path=SETTINGS.db_path):
                        st.success("User registered successfully! Please log in.")
                    else:
                        st.error("Username already exists.")
                except InvalidInputError as exc:
                    st.error(str(exc))

        st.sidebar.markdown("---")
        if st.sidebar.button("Continue to App"):
            sign_in("guest", "guest", guest=True)
            st.rerun()
        return

    st.sidebar.title("Navigation")
    st.session_state.page = st.sidebar.radio("Go to", PAGES, index=PAGES.index(st.session_state.page))
    if auth.state.user.guest:
        st.sidebar.caption("Guest mode: saving analyses is disabled.")

    st.title("SaidiStat - Biostatistics & Epidemiology")
    page = st.session_state.page
    if page == "Home":
        home_page()
    elif page == "Descriptive Statistics":
        descriptive_stats_page()
    elif page == "Percentiles & Z-score":
        percentiles_page()
    elif page == "Sample Size & Mean Comparison":
        sample_size_page()
    elif page == "Epidemiological Measures":
        epidemiological_measures_page()
    elif page == "Hypothesis Testing":
        hypothesis_testing_page()
    elif page == "Probability":
        probability_page()
    elif page == "Data Analysis":
        data_analysis_page()
    elif page == "Thesis Writing":
        thesis_writing_page()

    if st.sidebar.button("Logout"):
        auth.dispatch(AuthEvent.SIGNED_OUT)
        st.rerun()


if __name__ == "__main__":
    main()
