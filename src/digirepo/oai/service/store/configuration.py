from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from digirepo.oai.service.configuration.service_configuration import (
    ServiceConfiguration,
)


class StoreConfiguration(ServiceConfiguration):
    model_config = SettingsConfigDict(env_prefix="DIGIREPO_STORE_")

    database_url: str = "sqlite://"
    """SQLAlchemy URL of the repository database."""
    pool_pre_ping: bool = True
