"""Health check for the configured catalog service."""

from __future__ import annotations

import time

from tradein.catalog.client import CatalogClient
from tradein.core.types import HealthStatus


async def check_catalog_health(client: CatalogClient) -> HealthStatus:
    """Probe the catalog backend and return a HealthStatus."""

    start = time.monotonic()
    available = await client.is_available()
    latency_ms = (time.monotonic() - start) * 1000

    return HealthStatus(
        service="catalog",
        healthy=available,
        latency_ms=round(latency_ms, 2),
        details={"base_url": client.config.base_url},
    )
