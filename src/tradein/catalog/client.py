"""Async client for the vehicle catalog and market-value service."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from tradein.core.config import CatalogConfig

AUTH_HEADER = "x-AuthKey"


class CatalogResponseError(ValueError):
    """The service answered, but not with the structure we consume."""


@runtime_checkable
class VehicleCatalog(Protocol):
    """What the option resolver and valuation pipeline need from the service."""

    async def list_years(self) -> list[str]: ...

    async def list_makes(self, year: str) -> list[str]: ...

    async def list_models(self, year: str, make: str) -> list[str]: ...

    async def market_value(
        self, year: str, make: str, model: str, state: str, miles: str
    ) -> list[dict[str, Any]]: ...


def _segment(value: str) -> str:
    return quote(value, safe="")


class CatalogClient:
    """Talks to the year/make/model catalog and the valuation endpoint.

    One ``httpx.AsyncClient`` per instance, configured with the service base
    URL and credential. Every call is a single attempt; callers decide what a
    failure means for them.
    """

    def __init__(self, config: CatalogConfig) -> None:
        self.config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers={AUTH_HEADER: config.auth_key},
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    # -- options -------------------------------------------------------------

    async def list_years(self) -> list[str]:
        body = await self._get("/ymm-specs/options/v2/year")
        return _string_list(body, "years")

    async def list_makes(self, year: str) -> list[str]:
        body = await self._get(f"/ymm-specs/options/v2/make/{_segment(year)}")
        return _string_list(body, "makes")

    async def list_models(self, year: str, make: str) -> list[str]:
        body = await self._get(
            f"/ymm-specs/options/v2/model/{_segment(year)}/{_segment(make)}"
        )
        return _string_list(body, "models")

    # -- valuation -----------------------------------------------------------

    async def market_value(
        self, year: str, make: str, model: str, state: str, miles: str
    ) -> list[dict[str, Any]]:
        """Return the per-trim market value entries for a vehicle.

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx status.
            CatalogResponseError: If the body lacks ``market_value_data``.
        """
        body = await self._get(
            f"/market-value/v2/ymm/{_segment(year)}/{_segment(make)}/{_segment(model)}",
            params={"state": state, "mileage": miles},
        )
        try:
            entries = body["data"]["market_value"]["market_value_data"]
        except (KeyError, TypeError) as exc:
            raise CatalogResponseError("Response is missing market_value_data") from exc
        if not isinstance(entries, list):
            raise CatalogResponseError("market_value_data is not a list")
        return entries

    async def is_available(self) -> bool:
        try:
            r = await self._http.get("/ymm-specs/options/v2/year")
            return r.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        await self._http.aclose()

    # -- internal ------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        resp = await self._http.get(path, params=params)
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError as exc:
            raise CatalogResponseError(f"Invalid JSON from {path}") from exc


def _string_list(body: Any, field: str) -> list[str]:
    if not isinstance(body, dict) or not isinstance(body.get(field), list):
        raise CatalogResponseError(f"Response is missing the {field!r} list")
    return [str(v) for v in body[field]]
