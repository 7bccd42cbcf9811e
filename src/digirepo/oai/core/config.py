from digirepo.oai.core.exceptions import IntegrationException


class CannotLoadConfiguration(IntegrationException):
    """The provider could not be configured from its settings, so it
    cannot serve harvesting requests.
    """
