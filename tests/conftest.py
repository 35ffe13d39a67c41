"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from tradein.core.config import RedirectConfig, SinkConfig

WEBHOOK_URL = "https://hooks.example.com/trade-in"
END_URL = "https://trade-in.example.com/"

# One trim, one condition: the smallest valuation the service returns.
LX_ENTRIES: list[dict[str, Any]] = [
    {
        "trim": "LX",
        "market value": [
            {
                "Condition": "Good",
                "Trade-In": 100,
                "Private Party": 150,
                "Dealer Retail": 200,
            }
        ],
    }
]


class FakeCatalog:
    """In-memory catalog with optional per-call gates and failures.

    ``hold(kind, *args)`` returns an event the matching call waits on, so a
    test can decide the order in which responses arrive.
    """

    def __init__(self) -> None:
        self.years = ["2021", "2020"]
        self.makes = {"2020": ["Honda", "Toyota"], "2021": ["Ford"]}
        self.models = {
            ("2020", "Honda"): ["Accord", "Civic"],
            ("2020", "Toyota"): ["Camry"],
            ("2021", "Ford"): ["F-150"],
        }
        self.entries: list[dict[str, Any]] = LX_ENTRIES
        self.calls: list[tuple[str, ...]] = []
        self.failing: set[tuple[str, ...]] = set()
        self._gates: dict[tuple[str, ...], asyncio.Event] = {}

    def hold(self, *key: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[key] = event
        return event

    async def _enter(self, *key: str) -> None:
        self.calls.append(key)
        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.failing:
            raise httpx.ConnectError(f"catalog unavailable for {key}")

    async def list_years(self) -> list[str]:
        await self._enter("years")
        return list(self.years)

    async def list_makes(self, year: str) -> list[str]:
        await self._enter("makes", year)
        return list(self.makes.get(year, []))

    async def list_models(self, year: str, make: str) -> list[str]:
        await self._enter("models", year, make)
        return list(self.models.get((year, make), []))

    async def market_value(
        self, year: str, make: str, model: str, state: str, miles: str
    ) -> list[dict[str, Any]]:
        await self._enter("market_value", year, make, model, state, miles)
        return self.entries


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def sink_config() -> SinkConfig:
    return SinkConfig(webhook_url=WEBHOOK_URL)


@pytest.fixture
def redirect_config() -> RedirectConfig:
    return RedirectConfig(end_url=END_URL)


@pytest.fixture
def lx_entries() -> list[dict[str, Any]]:
    return LX_ENTRIES
