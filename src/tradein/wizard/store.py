"""In-memory store for live wizard controllers."""

from __future__ import annotations

import uuid

from tradein.wizard.controller import WizardController


class WizardStore:
    """In-memory dict store keyed by wizard id.

    Nothing survives a restart; suitable for single-instance deployment.
    """

    def __init__(self) -> None:
        self._wizards: dict[str, WizardController] = {}

    def add(self, controller: WizardController) -> str:
        wizard_id = str(uuid.uuid4())
        self._wizards[wizard_id] = controller
        return wizard_id

    def get(self, wizard_id: str) -> WizardController | None:
        return self._wizards.get(wizard_id)

    def pop(self, wizard_id: str) -> WizardController | None:
        return self._wizards.pop(wizard_id, None)

    def list_ids(self) -> list[str]:
        return list(self._wizards)

    def __len__(self) -> int:
        return len(self._wizards)
