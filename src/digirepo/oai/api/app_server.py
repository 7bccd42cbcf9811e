"""Implement logic common to more than one of the Flask applications."""

from __future__ import annotations

from typing import Any

from flask import make_response
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers import Response

import digirepo.oai
from digirepo.oai.api.util.flask import OaiFlask
from digirepo.oai.util.log import LoggerMixin


class ErrorHandler(LoggerMixin):
    def __init__(self, app: OaiFlask) -> None:
        """Constructor.

        :param app: The Flask application object.
        """
        self.app = app

    def handle(self, exception: Exception) -> Response | HTTPException:
        """Something very bad has happened. Notify the client."""
        if isinstance(exception, HTTPException):
            # This isn't an exception we need to handle, it's werkzeug's way
            # of interrupting normal control flow with a specific HTTP response.
            # Return the exception and it will be used as the response.
            return exception

        # By default, the error will be logged at log level ERROR.
        log_method = self.log.error

        if isinstance(exception, (OperationalError, SQLAlchemyError)):
            # Most likely the database dropped our connection, which happens
            # when it is restarted for maintenance. Harvesters retry, so we'll
            # log it at log level WARN.
            log_method = self.log.warning
            body = "Service temporarily unavailable. Please try again later."
            response = make_response(body, 503, {"Content-Type": "text/plain"})
        else:
            # Protocol errors never get here, so this is probably
            # indicative of a bug in our software.
            body = "An internal error occurred"
            response = make_response(body, 500, {"Content-Type": "text/plain"})

        log_method("Exception in web app: %s", exception, exc_info=exception)
        return response


class ApplicationVersionController:
    @staticmethod
    def version() -> dict[str, Any]:
        return {
            "version": digirepo.oai.__version__,
            "commit": digirepo.oai.__commit__,
        }
