"""Vehicle catalog and valuation service client."""

from tradein.catalog.client import CatalogClient, CatalogResponseError, VehicleCatalog

__all__ = ["CatalogClient", "CatalogResponseError", "VehicleCatalog"]
