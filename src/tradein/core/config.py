"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class CatalogConfig(BaseSettings):
    """Vehicle catalog and valuation service configuration."""

    model_config = {"env_prefix": "TRADEIN_CATALOG_"}

    base_url: str = "https://api.vehicledatabases.com"
    auth_key: str = ""
    timeout_seconds: int = 30


class SinkConfig(BaseSettings):
    """Downstream webhook that receives the assembled submission."""

    model_config = {"env_prefix": "TRADEIN_SINK_"}

    webhook_url: str = ""
    timeout_seconds: int = 30


class RedirectConfig(BaseSettings):
    """Where the caller is sent once a submission is acknowledged."""

    model_config = {"env_prefix": "TRADEIN_REDIRECT_"}

    end_url: str = "https://trade-in.airparkdodgechryslerjeeps.com/"


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "TRADEIN_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    redirect: RedirectConfig = Field(default_factory=RedirectConfig)

    @property
    def strict_fields(self) -> bool:
        """Unknown form field names fail fast outside production."""
        return self.debug or self.environment != "production"
