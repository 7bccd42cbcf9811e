from __future__ import annotations

from logging import Formatter, Handler

from dependency_injector import providers
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Provider, Singleton

from digirepo.oai.service.logging.log import (
    create_stream_handler,
    select_formatter,
    setup_logging,
)


class Logging(DeclarativeContainer):
    config = providers.Configuration()

    formatter: Provider[Formatter] = Singleton(
        select_formatter, json_format=config.json_format
    )

    stream_handler: Provider[Handler] = Singleton(
        create_stream_handler, formatter=formatter
    )

    logging = providers.Resource(
        setup_logging,
        level=config.level,
        verbose_level=config.verbose_level,
        stream=stream_handler,
    )
