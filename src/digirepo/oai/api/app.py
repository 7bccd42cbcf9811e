import logging

from digirepo.oai.api.app_server import ErrorHandler
from digirepo.oai.api.manager import OaiManager
from digirepo.oai.api.util.flask import OaiFlask
from digirepo.oai.service.container import Services, container_instance

app = OaiFlask(__name__)

# Initialize the applications error handler. This has to happen before the
# first request is handled, so it is done when the app is created.
error_handler = ErrorHandler(app)
app.register_error_handler(Exception, error_handler.handle)


def initialize_manager(services: Services) -> None:
    if getattr(app, "manager", None) is None:
        try:
            app.manager = OaiManager(services)
        except Exception:
            logging.exception("Error instantiating the OAI-PMH provider!")
            raise


from digirepo.oai.api import routes  # noqa


def initialize_application(services: Services | None = None) -> OaiFlask:
    with app.app_context():
        # Load the application service container
        services = services or container_instance()

        # Initialize the application services container, this will make sure
        # that the logging system is initialized.
        services.init_resources()

        initialize_manager(services)
    return app
