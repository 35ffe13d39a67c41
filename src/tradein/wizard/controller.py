"""Two-step wizard controller: field rules, step transitions, submission."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from tradein.core.types import WizardStep
from tradein.wizard.attribution import AttributionChannel, Subscription
from tradein.wizard.form import FormStore
from tradein.wizard.models import (
    FIELD_NAMES,
    PLACEHOLDERS,
    AttributionMetadata,
    FormState,
    OptionSet,
    RedirectTarget,
    WizardSnapshot,
)
from tradein.wizard.options import OptionResolver
from tradein.wizard.validation import validate_step
from tradein.wizard.valuation import SubmissionError, ValuationPipeline

logger = logging.getLogger(__name__)


class WizardController:
    """Orchestrates the vehicle → contact flow.

    Field changes drive the option cascade: a new ``year`` refetches makes and
    models, a new ``make`` refetches models. Those fetches run as background
    tasks and never gate :meth:`advance`.

    ``loading`` reflects outstanding option fetches (a blocking overlay in a
    UI). ``submitting`` is true only while the final submission runs (the
    submit button label). They are kept separate so option fetches never
    block the contact step's own submit.
    """

    def __init__(
        self,
        resolver: OptionResolver,
        pipeline: ValuationPipeline,
        channel: AttributionChannel | None = None,
        strict: bool = True,
    ) -> None:
        self._store = FormStore(strict=strict)
        self._resolver = resolver
        self._pipeline = pipeline
        self._channel = channel
        self._subscription: Subscription | None = None
        self._attribution = AttributionMetadata()
        self._tasks: set[asyncio.Task[None]] = set()
        self.error = ""
        self.submitting = False
        self.redirect: RedirectTarget | None = None

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to attribution updates and begin loading years."""
        if self._channel is not None and self._subscription is None:
            self._subscription = self._channel.subscribe(self._on_attribution)
        self._spawn(self._resolver.list_years())

    async def close(self) -> None:
        """Release the attribution subscription and drop pending fetches."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def __aenter__(self) -> WizardController:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- state ---------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return self._store.step

    @property
    def form(self) -> FormState:
        return self._store.form

    @property
    def options(self) -> OptionSet:
        return self._resolver.options

    @property
    def loading(self) -> bool:
        return self._resolver.loading

    @property
    def attribution(self) -> AttributionMetadata:
        return self._attribution

    @property
    def channel(self) -> AttributionChannel | None:
        return self._channel

    def snapshot(self, wizard_id: str = "") -> WizardSnapshot:
        return WizardSnapshot(
            id=wizard_id,
            step=self.step,
            form=self._store.snapshot(),
            options=self.options.model_copy(deep=True),
            loading=self.loading,
            submitting=self.submitting,
            error=self.error,
            redirect=self.redirect,
        )

    # -- input ---------------------------------------------------------------

    def set_field(self, name: str, value: str) -> None:
        """Store a field value and apply the option cascade rules.

        Raises:
            KeyError: If ``name`` is not a form field and the store is strict.
        """
        if name not in FIELD_NAMES:
            self._store.set_field(name, value)
            return

        # The placeholder heads the list but is not a selection.
        if value == PLACEHOLDERS.get(name):
            value = ""

        previous = self._store.get(name)
        self._store.set_field(name, value)
        if self._store.get(name) == previous:
            return

        form = self._store.form
        if name == "year":
            self._resolver.invalidate("makes")
            self._resolver.invalidate("models")
            self._spawn(self._resolver.list_makes(form.year))
            self._spawn(self._resolver.list_models(form.year, form.make))
        elif name == "make":
            self._resolver.invalidate("models")
            self._spawn(self._resolver.list_models(form.year, form.make))

    async def settle(self) -> None:
        """Wait until no option fetch is outstanding."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # -- transitions ---------------------------------------------------------

    async def advance(self) -> WizardSnapshot:
        """Submit the current step.

        From the vehicle step this moves to contact once the vehicle fields are
        filled in. From the contact step it runs the valuation pipeline; on
        success ``redirect`` is set and the form is reset, on failure the
        entered data stays and ``error`` holds a generic message.
        """
        if self.submitting:
            logger.warning("Ignoring advance while a submission is in flight")
            return self.snapshot()

        self.redirect = None
        step = self._store.step
        result = validate_step(step, self._store.form)
        if not result.valid:
            self.error = result.message
            return self.snapshot()

        self.error = ""
        if step == WizardStep.VEHICLE:
            self._store.set_step(WizardStep.CONTACT)
            return self.snapshot()

        self.submitting = True
        target: RedirectTarget | None = None
        try:
            target = await self._pipeline.submit(self._store.form, self._attribution)
        except SubmissionError as exc:
            self.error = str(exc)
        finally:
            self.submitting = False

        if target is None:
            return self.snapshot()

        self.redirect = target
        self._store.reset()
        self._resolver.invalidate("makes")
        self._resolver.invalidate("models")
        return self.snapshot()

    def back(self) -> WizardSnapshot:
        """Return to the vehicle step, keeping the entered data.

        Raises:
            ValueError: If already at the first step or a submission is running.
        """
        if self.submitting:
            raise ValueError("Cannot go back while submitting.")
        if self._store.step == WizardStep.VEHICLE:
            raise ValueError("Already at the first step.")
        self._store.set_step(WizardStep.VEHICLE)
        self.error = ""
        return self.snapshot()

    # -- internal ------------------------------------------------------------

    def _on_attribution(self, metadata: AttributionMetadata) -> None:
        self._attribution = metadata

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Option fetch crashed", exc_info=task.exception())
