from __future__ import annotations

from digirepo.oai.api.app_server import ApplicationVersionController
from digirepo.oai.api.controller.oai import OaiController
from digirepo.oai.service.container import Services
from digirepo.oai.util.log import LoggerMixin


class OaiManager(LoggerMixin):
    """Holds the services and controllers the web application routes to."""

    def __init__(self, services: Services) -> None:
        self.services = services
        self.setup_controllers()

    def setup_controllers(self) -> None:
        provider = self.services.provider
        self.oai_controller = OaiController(
            provider.provider(), provider.serializer()
        )
        self.version = ApplicationVersionController()
