from __future__ import annotations

from pydantic import Field, PositiveInt
from pydantic_settings import SettingsConfigDict

from digirepo.oai.protocol.formats import DEFAULT_FORMATS, MetadataFormatConfiguration
from digirepo.oai.protocol.identifiers import OaiIdentifierScheme
from digirepo.oai.protocol.types import OaiIdentifierDescription
from digirepo.oai.service.configuration.service_configuration import (
    ServiceConfiguration,
)


class ProviderConfiguration(ServiceConfiguration):
    model_config = SettingsConfigDict(env_prefix="DIGIREPO_OAI_")

    repository_name: str = "Digital Repository"
    base_url: str = "http://localhost:6500/oai"
    admin_emails: tuple[str, ...] = ()

    # oai-identifier description, see
    # http://www.openarchives.org/OAI/2.0/guidelines-oai-identifier.htm
    scheme: str = "oai"
    repository_identifier: str = "localhost"
    delimiter: str = ":"
    identifier_prefix: str | None = None
    """Overrides the `<scheme>:<repository_identifier>:` identifier prefix."""
    sample_identifier: str | None = None

    max_page_size: PositiveInt = 100
    sets_enabled: bool = True
    search_enabled: bool = False

    metadata_formats: tuple[MetadataFormatConfiguration, ...] = Field(
        default=DEFAULT_FORMATS, min_length=1
    )
    dc_identifier_format: str | None = None
    """Format string for an extra dc:identifier, given the object's local name."""
    landing_page_format: str | None = None
    """Format string for the object's HTML landing page, given its local name."""

    @property
    def oai_identifier_prefix(self) -> str:
        if self.identifier_prefix is not None:
            return self.identifier_prefix
        return (
            f"{self.scheme}{self.delimiter}"
            f"{self.repository_identifier}{self.delimiter}"
        )

    @property
    def identifier_scheme(self) -> OaiIdentifierScheme:
        return OaiIdentifierScheme(prefix=self.oai_identifier_prefix)

    @property
    def identifier_description(self) -> OaiIdentifierDescription:
        return OaiIdentifierDescription(
            scheme=self.scheme,
            repository_identifier=self.repository_identifier,
            delimiter=self.delimiter,
            sample_identifier=self.sample_identifier
            or f"{self.oai_identifier_prefix}ab12cd34",
        )
