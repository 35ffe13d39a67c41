"""FastAPI application for the trade-in valuation wizard.

Hosts live wizard controllers behind a small REST surface. The embedding
page drives field changes and step submissions, forwards campaign
attribution, and performs the final top-level redirect itself.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tradein.catalog.client import CatalogClient, VehicleCatalog
from tradein.catalog.health import check_catalog_health
from tradein.core.config import Settings
from tradein.core.types import HealthStatus
from tradein.web.wizard_router import router as wizard_router
from tradein.wizard.attribution import AttributionChannel
from tradein.wizard.controller import WizardController
from tradein.wizard.options import OptionResolver
from tradein.wizard.store import WizardStore
from tradein.wizard.valuation import ValuationPipeline


def create_app(
    settings: Settings | None = None,
    catalog: VehicleCatalog | None = None,
    http: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with mock dependencies.

    Args:
        settings: Application settings. Defaults to Settings().
        catalog: Optional catalog implementation. Defaults to a CatalogClient
            built from ``settings.catalog``.
        http: Optional client used to reach the webhook.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("tradein").setLevel(settings.log_level.upper())

    if catalog is None:
        catalog = CatalogClient(settings.catalog)

    pipeline = ValuationPipeline(
        catalog=catalog,
        sink=settings.sink,
        redirect=settings.redirect,
        http=http,
    )
    wizard_store = WizardStore()

    def wizard_factory() -> WizardController:
        return WizardController(
            resolver=OptionResolver(catalog),
            pipeline=pipeline,
            channel=AttributionChannel(),
            strict=settings.strict_fields,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        for wizard_id in wizard_store.list_ids():
            controller = wizard_store.pop(wizard_id)
            if controller is not None:
                await controller.close()
        await pipeline.close()
        if isinstance(catalog, CatalogClient):
            await catalog.close()

    app = FastAPI(
        title="Trade-In Wizard",
        description="Vehicle trade-in valuation wizard",
        version="0.1.0",
        lifespan=lifespan,
    )

    # The wizard is embedded in third-party pages.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store on app state for access in route handlers
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.pipeline = pipeline
    app.state.wizard_store = wizard_store
    app.state.wizard_factory = wizard_factory

    app.include_router(wizard_router)

    @app.get("/api/health")
    async def health() -> HealthStatus:
        if isinstance(catalog, CatalogClient):
            return await check_catalog_health(catalog)
        return HealthStatus(service="catalog", healthy=True, details={"provider": "injected"})

    return app
