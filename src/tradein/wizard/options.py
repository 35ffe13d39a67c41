"""Option resolver for the year → make → model cascade."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import httpx

from tradein.catalog.client import CatalogResponseError, VehicleCatalog
from tradein.wizard.models import (
    MAKES_PLACEHOLDER,
    MODELS_PLACEHOLDER,
    YEARS_PLACEHOLDER,
    OptionSet,
)

logger = logging.getLogger(__name__)


class OptionResolver:
    """Fetches dependent option lists and owns their loading state.

    Each list carries a generation counter. Invalidating a list clears it and
    bumps the counter; a fetch only applies its result if the counter has not
    moved since the fetch was issued, so late responses for an outdated
    year/make are dropped instead of overwriting a newer list.

    Failed fetches are logged and leave the list empty. The user recovers by
    re-selecting the parent field.
    """

    def __init__(self, catalog: VehicleCatalog) -> None:
        self._catalog = catalog
        self.options = OptionSet()
        self._generations: dict[str, int] = {"years": 0, "makes": 0, "models": 0}
        self._pending = 0

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def invalidate(self, name: str) -> int:
        """Clear list ``name`` and return its new generation."""
        self._generations[name] += 1
        setattr(self.options, name, [])
        return self._generations[name]

    async def list_years(self) -> None:
        generation = self.invalidate("years")
        await self._load("years", generation, YEARS_PLACEHOLDER, self._catalog.list_years)

    async def list_makes(self, year: str) -> None:
        generation = self.invalidate("makes")
        if not year:
            return
        await self._load(
            "makes", generation, MAKES_PLACEHOLDER, self._catalog.list_makes, year
        )

    async def list_models(self, year: str, make: str) -> None:
        generation = self.invalidate("models")
        if not year or not make:
            return
        await self._load(
            "models", generation, MODELS_PLACEHOLDER, self._catalog.list_models, year, make
        )

    async def _load(
        self,
        name: str,
        generation: int,
        placeholder: str,
        fetch: Callable[..., Awaitable[list[str]]],
        *args: str,
    ) -> None:
        self._pending += 1
        try:
            values = await fetch(*args)
        except (httpx.HTTPError, CatalogResponseError) as exc:
            logger.warning("Error fetching %r options for %s: %s", name, args, exc)
            return
        finally:
            self._pending -= 1

        if generation != self._generations[name]:
            logger.debug("Discarding stale %r options for %s", name, args)
            return
        setattr(self.options, name, [placeholder, *values])
