"""Form state: the single source of truth for entered values and the step."""

from __future__ import annotations

import logging

from tradein.core.types import WizardStep
from tradein.wizard.models import FIELD_NAMES, FormState

logger = logging.getLogger(__name__)


def digits_only(value: str) -> str:
    """Strip every character that is not a decimal digit."""
    return "".join(ch for ch in value if ch in "0123456789")


class FormStore:
    """Holds the current FormState and wizard step.

    With ``strict`` set, unknown field names raise ``KeyError``; otherwise
    they are logged and ignored.
    """

    def __init__(self, strict: bool = True) -> None:
        self._strict = strict
        self._form = FormState()
        self._step = WizardStep.VEHICLE

    @property
    def form(self) -> FormState:
        return self._form

    @property
    def step(self) -> WizardStep:
        return self._step

    def get(self, name: str) -> str:
        return getattr(self._form, name)

    def set_field(self, name: str, value: str) -> None:
        if name not in FIELD_NAMES:
            if self._strict:
                raise KeyError(f"Unknown form field: {name!r}")
            logger.warning("Ignoring update to unknown form field %r", name)
            return
        if name == "miles":
            value = digits_only(value)
        setattr(self._form, name, value)

    def set_step(self, step: WizardStep) -> None:
        self._step = step

    def reset(self) -> None:
        self._form = FormState()
        self._step = WizardStep.VEHICLE

    def snapshot(self) -> FormState:
        return self._form.model_copy()
