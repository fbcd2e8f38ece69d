"""Step-by-step flow of the data analysis page.

    UPLOAD -> SELECT_ANALYSIS_TYPE -> SELECT_VARIABLES -> SHOW_RESULTS

Every transition checks its guard and raises WizardTransitionError instead
of leaving the flow half-updated.
"""

import enum
import logging

from . import analyses
from .analyses import ADVANCED, ANALYSIS_SUBTYPES, ASSOCIATION, FREQUENCY
from .errors import WizardTransitionError

logger = logging.getLogger(__name__)


class WizardStep(enum.IntEnum):
    UPLOAD = 1
    SELECT_ANALYSIS_TYPE = 2
    SELECT_VARIABLES = 3
    SHOW_RESULTS = 4


# Minimum number of selected variables per analysis
MIN_VARIABLES = {
    None: 1,
    'correlation': 2,
    'ttest': 2,
    'anova': 2,
    'regression': 2,
}


class AnalysisWizard:

    def __init__(self):
        self.reset()

    def reset(self):
        self.step = WizardStep.UPLOAD
        self.dataset = None
        self.analysis_type = None
        self.sub_type = None
        self.selected_variables = []
        self.base_variable = None
        self.crossing_variables = []
        self.result = None
        self.error = None

    # -- guards ---------------------------------------------------------

    def _expect(self, *steps):
        if self.step not in steps:
            allowed = ', '.join(step.name for step in steps)
            raise WizardTransitionError(f"Not allowed from {self.step.name} (expected {allowed}).")

    @property
    def uses_crossing(self):
        return self.analysis_type == ASSOCIATION and self.sub_type == 'chi2'

    def can_run(self):
        if self.step is not WizardStep.SELECT_VARIABLES or self.dataset is None:
            return False
        if self.uses_crossing:
            return self.base_variable is not None and len(self.crossing_variables) > 0
        return len(self.selected_variables) >= MIN_VARIABLES.get(self.sub_type, 1)

    @property
    def analyzed_variable_count(self):
        if self.uses_crossing:
            return len(self.crossing_variables)
        return len(self.selected_variables)

    # -- transitions ----------------------------------------------------

    def load_dataset(self, dataset):
        self._expect(WizardStep.UPLOAD)
        if dataset is None or dataset.row_count == 0:
            raise WizardTransitionError("Upload a file with at least one row first.")
        self.dataset = dataset
        self.step = WizardStep.SELECT_ANALYSIS_TYPE

    def choose_analysis(self, analysis_type, sub_type=None):
        self._expect(WizardStep.SELECT_ANALYSIS_TYPE)
        if analysis_type not in ANALYSIS_SUBTYPES:
            raise WizardTransitionError(f"Unknown analysis type: {analysis_type!r}")
        allowed = ANALYSIS_SUBTYPES[analysis_type]
        if allowed and sub_type not in allowed:
            raise WizardTransitionError(f"Choose one of {', '.join(allowed)} for a {analysis_type} analysis.")
        if not allowed:
            sub_type = None
        if (analysis_type, sub_type) != (self.analysis_type, self.sub_type):
            self.selected_variables = []
            self.base_variable = None
            self.crossing_variables = []
        self.analysis_type = analysis_type
        self.sub_type = sub_type
        self.step = WizardStep.SELECT_VARIABLES

    def _check_column(self, name):
        if self.dataset is None:
            raise WizardTransitionError("Upload a data file first.")
        if name not in self.dataset.columns:
            raise WizardTransitionError(f"Unknown variable: {name!r}")

    def select_variables(self, variables):
        self._expect(WizardStep.SELECT_VARIABLES)
        if self.uses_crossing:
            raise WizardTransitionError("Chi-squared analysis uses a base variable and crossing variables.")
        for name in variables:
            self._check_column(name)
        self.selected_variables = list(dict.fromkeys(variables))

    def toggle_variable(self, variable):
        selected = list(self.selected_variables)
        if variable in selected:
            selected.remove(variable)
        else:
            selected.append(variable)
        self.select_variables(selected)

    def set_base_variable(self, variable):
        self._expect(WizardStep.SELECT_VARIABLES)
        if not self.uses_crossing:
            raise WizardTransitionError("A base variable only applies to chi-squared analysis.")
        self._check_column(variable)
        self.base_variable = variable
        self.crossing_variables = [v for v in self.crossing_variables if v != variable]

    def toggle_crossing_variable(self, variable):
        self._expect(WizardStep.SELECT_VARIABLES)
        if not self.uses_crossing:
            raise WizardTransitionError("Crossing variables only apply to chi-squared analysis.")
        self._check_column(variable)
        if variable == self.base_variable:
            # a variable cannot be crossed with itself
            return
        if variable in self.crossing_variables:
            self.crossing_variables.remove(variable)
        else:
            self.crossing_variables.append(variable)

    def back(self):
        if self.step is WizardStep.UPLOAD:
            raise WizardTransitionError("Already at the first step.")
        self.step = WizardStep(self.step - 1)
        if self.step is WizardStep.UPLOAD:
            self.dataset = None

    def run(self):
        """Computes the result and moves to SHOW_RESULTS.

        On failure the wizard stays on SELECT_VARIABLES with `error` set and
        the exception propagates.
        """
        self._expect(WizardStep.SELECT_VARIABLES)
        if not self.can_run():
            if self.uses_crossing:
                raise WizardTransitionError("Select a base variable and at least one crossing variable.")
            needed = MIN_VARIABLES.get(self.sub_type, 1)
            raise WizardTransitionError(f"Select at least {needed} variable(s).")
        self.error = None
        try:
            self.result = self._compute()
        except Exception as exc:
            self.fail(str(exc))
            raise
        self.step = WizardStep.SHOW_RESULTS
        logger.info("%s analysis completed on %d variable(s)", self.analysis_type, self.analyzed_variable_count)
        return self.result

    def _compute(self):
        frame = self.dataset.frame
        if self.analysis_type == FREQUENCY:
            return analyses.frequency_analysis(self.dataset, self.selected_variables)
        if self.analysis_type == ASSOCIATION:
            return analyses.association_analysis(
                frame,
                self.sub_type,
                variables=self.selected_variables,
                base_variable=self.base_variable,
                crossing_variables=self.crossing_variables,
            )
        if self.analysis_type == ADVANCED:
            return analyses.advanced_analysis(frame, self.sub_type, self.selected_variables)
        raise WizardTransitionError(f"Unknown analysis type: {self.analysis_type!r}")

    def fail(self, message):
        self.error = message
        self.result = None
        self.step = WizardStep.SELECT_VARIABLES

    def load_saved(self, analysis_type, selected_variables, result):
        """Shows a previously saved result regardless of the current step."""
        if analysis_type not in ANALYSIS_SUBTYPES:
            raise WizardTransitionError(f"Unknown analysis type: {analysis_type!r}")
        self.analysis_type = analysis_type
        self.sub_type = getattr(result, 'sub_type', None)
        self.selected_variables = list(selected_variables)
        self.result = result
        self.error = None
        self.step = WizardStep.SHOW_RESULTS
