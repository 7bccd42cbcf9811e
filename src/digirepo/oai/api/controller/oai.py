from __future__ import annotations

import flask

from digirepo.oai.protocol.provider import OaiProvider
from digirepo.oai.serializer.xml import OaiPmhSerializer
from digirepo.oai.util.flask_util import XmlResponse
from digirepo.oai.util.log import LoggerMixin


class OaiController(LoggerMixin):
    """Answer OAI-PMH requests made with GET or a form-encoded POST."""

    def __init__(self, provider: OaiProvider, serializer: OaiPmhSerializer) -> None:
        self.provider = provider
        self.serializer = serializer

    def handle(self) -> XmlResponse:
        # Keep every value of every argument, repeated arguments are an error.
        arguments = flask.request.values.to_dict(flat=False)
        response = self.provider.handle(arguments)
        # Protocol errors are part of a successful response.
        return XmlResponse(
            self.serializer.serialize(response),
            status=200,
            content_type=self.serializer.CONTENT_TYPE,
        )
