import datetime
from typing import Any, cast

import pytz
from lxml import builder, etree
from lxml.etree import _Element


class ElementMaker(builder.ElementMaker):  # type: ignore[misc]
    """A helper object for creating etree elements."""

    def __getstate__(self) -> dict[str, Any]:
        # Remove default_typemap from the dictionary -- it contains functions
        # that can't be pickled.
        return {
            k: v
            for k, v in super(ElementMaker, self).__dict__.items()
            if k != "default_typemap"
        }


class XMLWriter:
    """Namespaces and helpers shared by everything that writes OAI-PMH XML."""

    TIME_FORMAT_UTC = "%Y-%m-%dT%H:%M:%SZ"

    OAI_NS = "http://www.openarchives.org/OAI/2.0/"
    OAI_SCHEMA = "http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd"
    OAI_IDENTIFIER_NS = "http://www.openarchives.org/OAI/2.0/oai-identifier"
    OAI_IDENTIFIER_SCHEMA = "http://www.openarchives.org/OAI/2.0/oai-identifier.xsd"
    DC_NS = "http://purl.org/dc/elements/1.1/"
    XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

    SCHEMA_LOCATION = etree.QName(XSI_NS, "schemaLocation").text

    nsmap: dict[str | None, str] = {
        None: OAI_NS,
        "xsi": XSI_NS,
    }

    E = ElementMaker(namespace=OAI_NS, nsmap=nsmap)

    @classmethod
    def _strftime(cls, date: datetime.datetime) -> str:
        """Format a timestamp at second granularity, in UTC."""
        if date.tzinfo is not None:
            date = date.astimezone(pytz.UTC)
        return date.strftime(cls.TIME_FORMAT_UTC)

    @classmethod
    def schema_location(cls, namespace: str, schema_url: str) -> dict[str, str]:
        return {cls.SCHEMA_LOCATION: f"{namespace} {schema_url}"}

    @staticmethod
    def to_string(element: _Element, pretty_print: bool = False) -> bytes:
        # etree.tostring with an encoding returns bytes
        return cast(
            bytes,
            etree.tostring(
                element,
                encoding="UTF-8",
                xml_declaration=True,
                pretty_print=pretty_print,
            ),
        )
