from dependency_injector import providers
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Container

from digirepo.oai.service.logging.configuration import LoggingConfiguration
from digirepo.oai.service.logging.container import Logging
from digirepo.oai.service.provider.configuration import ProviderConfiguration
from digirepo.oai.service.provider.container import ProviderContainer
from digirepo.oai.service.store.configuration import StoreConfiguration
from digirepo.oai.service.store.container import StoreContainer


class Services(DeclarativeContainer):
    config = providers.Configuration()

    logging = Container(
        Logging,
        config=config.logging,
    )

    store = Container(
        StoreContainer,
        config=config.store,
    )

    provider = Container(
        ProviderContainer,
        config=config.provider,
        object_store=store.object_store,
    )


def create_container() -> Services:
    container = Services()
    container.config.from_dict(
        {
            "logging": LoggingConfiguration().model_dump(),
            "store": StoreConfiguration().model_dump(),
            "provider": ProviderConfiguration().model_dump(),
        }
    )
    return container


_container_instance: Services | None = None


def container_instance() -> Services:
    # A singleton container instance for the web application. Tests build
    # their own container with create_container instead.
    global _container_instance
    if _container_instance is None:
        _container_instance = create_container()
    return _container_instance
