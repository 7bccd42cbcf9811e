"""Utilities for Flask applications."""

import datetime
from typing import Any
from wsgiref.handlers import format_date_time

from flask import Response as FlaskResponse
from lxml import etree

from digirepo.oai.util.datetime_helpers import utc_now


class Response(FlaskResponse):
    """A Flask Response object with some conveniences added.

    The conveniences:

       * It's easy to calculate header values such as Cache-Control.
       * A response can be easily converted into a string for use in
         tests.
    """

    def __init__(
        self,
        response: Any = None,
        status: int | None = None,
        headers: dict[str, Any] | None = None,
        mimetype: str | None = None,
        content_type: str | None = None,
        direct_passthrough: bool = False,
        max_age: int | str = 0,
    ) -> None:
        """Constructor.

        All parameters are the same as for the Flask/Werkzeug Response class,
        with this addition:

        :param max_age: The number of seconds for which clients should
            cache this response. Used to set a value for the
            Cache-Control header.
        """
        max_age = max_age or 0
        try:
            max_age = int(max_age)
        except ValueError:
            max_age = 0
        self.max_age = max_age

        body = response
        if isinstance(body, etree._Element):
            body = etree.tostring(body, encoding="UTF-8", xml_declaration=True)
        elif not isinstance(body, (bytes, str)):
            body = str(body)

        super().__init__(
            response=body,
            status=status,
            headers=self._headers(headers or {}),
            mimetype=mimetype,
            content_type=content_type,
            direct_passthrough=direct_passthrough,
        )

    def __str__(self) -> str:
        """This object can be treated as a string, e.g. in tests.

        :return: The entity-body portion of the response.
        """
        return self.get_data(as_text=True)

    def _headers(self, headers: dict[str, Any] | None = None) -> dict[str, str]:
        """Build an appropriate set of HTTP response headers."""
        if headers is None:
            headers = {}
        # Don't modify the underlying dictionary; it came from somewhere else.
        headers = dict(headers)

        if self.max_age:
            # Intermediaries can cache for half as long as the end-user.
            cache_control = "public, no-transform, max-age=%d, s-maxage=%d" % (
                self.max_age,
                self.max_age / 2,
            )

            # Explicitly set Expires based on max-age; some clients need this.
            expires_at = utc_now() + datetime.timedelta(seconds=self.max_age)
            headers["Expires"] = format_date_time(expires_at.timestamp())
        else:
            # Harvesting responses depend on the time of the request, so by
            # default they are not cached at all.
            cache_control = "public, no-cache"
        headers["Cache-Control"] = cache_control

        return headers


class XmlResponse(Response):
    """A convenience specialization of Response for OAI-PMH documents."""

    def __init__(self, response: Any = None, **kwargs: Any) -> None:
        kwargs.setdefault("content_type", "text/xml; charset=utf-8")
        super().__init__(response, **kwargs)
