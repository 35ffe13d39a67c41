"""Trade-in wizard: option cascade, form state, and submission pipeline."""

from tradein.wizard.attribution import AttributionChannel
from tradein.wizard.controller import WizardController
from tradein.wizard.form import FormStore
from tradein.wizard.options import OptionResolver
from tradein.wizard.valuation import SubmissionError, ValuationPipeline

__all__ = [
    "AttributionChannel",
    "FormStore",
    "OptionResolver",
    "SubmissionError",
    "ValuationPipeline",
    "WizardController",
]
