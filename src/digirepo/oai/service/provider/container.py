from __future__ import annotations

from typing import Any

from dependency_injector import providers
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Provider

from digirepo.oai.crosswalk.base import CrosswalkGenerator
from digirepo.oai.crosswalk.dublin_core import DublinCoreGenerator
from digirepo.oai.crosswalk.etdms import EtdmsGenerator
from digirepo.oai.crosswalk.ore import OreGenerator
from digirepo.oai.protocol.formats import MetadataFormatRegistry
from digirepo.oai.protocol.provider import OaiProvider
from digirepo.oai.serializer.xml import OaiPmhSerializer
from digirepo.oai.service.provider.configuration import ProviderConfiguration
from digirepo.oai.store.base import ObjectStore


def create_configuration(settings: dict[str, Any]) -> ProviderConfiguration:
    return ProviderConfiguration(**settings)


def create_generators(
    configuration: ProviderConfiguration,
) -> dict[str, CrosswalkGenerator]:
    """The crosswalks that ship with the provider, by metadata prefix."""
    return {
        "oai_dc": DublinCoreGenerator(
            identifier_format=configuration.dc_identifier_format
        ),
        "oai_etdms": EtdmsGenerator(),
        "ore": OreGenerator(
            base_url=configuration.base_url,
            identifier_prefix=configuration.oai_identifier_prefix,
            repository_name=configuration.repository_name,
            landing_page_format=configuration.landing_page_format,
        ),
    }


def create_registry(
    configuration: ProviderConfiguration,
    generators: dict[str, CrosswalkGenerator],
) -> MetadataFormatRegistry:
    return MetadataFormatRegistry.from_configuration(
        configuration.metadata_formats, generators
    )


class ProviderContainer(DeclarativeContainer):
    config = providers.Configuration()

    object_store: Provider[ObjectStore] = providers.Dependency(instance_of=ObjectStore)

    configuration: Provider[ProviderConfiguration] = providers.Singleton(
        create_configuration, settings=config
    )

    generators: Provider[dict[str, CrosswalkGenerator]] = providers.Singleton(
        create_generators, configuration=configuration
    )

    registry: Provider[MetadataFormatRegistry] = providers.Singleton(
        create_registry, configuration=configuration, generators=generators
    )

    serializer: Provider[OaiPmhSerializer] = providers.Singleton(OaiPmhSerializer)

    provider: Provider[OaiProvider] = providers.Singleton(
        OaiProvider,
        configuration=configuration,
        store=object_store,
        registry=registry,
    )
