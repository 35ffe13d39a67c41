"""Required-field checks for each wizard step."""

from __future__ import annotations

from typing import Any

from tradein.core.types import WizardStep
from tradein.wizard.models import FormState, ValidationResult

REQUIRED_FIELDS: dict[WizardStep, tuple[str, ...]] = {
    WizardStep.VEHICLE: ("year", "make", "model", "state", "miles"),
    WizardStep.CONTACT: ("name", "email", "phone"),
}


def validate_required(value: Any) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return "This field is required."
    return None


def validate_step(step: WizardStep, form: FormState) -> ValidationResult:
    """Check that every required field of ``step`` is filled in.

    Missing names are reported in the step's declared field order.
    """
    missing = [
        name
        for name in REQUIRED_FIELDS[step]
        if validate_required(getattr(form, name)) is not None
    ]
    return ValidationResult(valid=not missing, missing=missing)
