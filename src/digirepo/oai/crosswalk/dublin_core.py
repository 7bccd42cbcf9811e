from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from frozendict import frozendict
from lxml import etree

from digirepo.oai.crosswalk.base import CrosswalkGenerator
from digirepo.oai.util.xml_writer import ElementMaker

if TYPE_CHECKING:
    from digirepo.oai.protocol.formats import MetadataFormat
    from digirepo.oai.store.base import RepositoryObject


class DublinCoreGenerator(CrosswalkGenerator):
    """Simple Dublin Core (oai_dc) built straight from object properties.

    Each of the fifteen elements takes its values from the first listed
    property the object has.
    """

    ELEMENT_SOURCES: Mapping[str, Sequence[str]] = frozendict(
        {
            "title": ("dcterms:title", "dc:title"),
            "creator": ("dc:creator", "dcterms:creator", "ual:dissertant"),
            "subject": ("dc:subject", "dcterms:subject"),
            "description": ("dcterms:description", "dc:description", "dcterms:abstract"),
            "publisher": ("dc:publisher", "dcterms:publisher", "swrc:institution"),
            "contributor": ("dc:contributor", "ual:supervisor"),
            "date": ("dcterms:created", "dcterms:dateAccepted", "dc:date"),
            "type": ("dcterms:type", "dc:type"),
            "format": ("dcterms:format", "dc:format"),
            "identifier": ("dc:identifier", "dcterms:identifier"),
            "source": ("dcterms:source", "dc:source"),
            "language": ("dcterms:language", "dc:language"),
            "relation": ("dcterms:relation", "dc:relation", "dcterms:isVersionOf"),
            "coverage": ("dcterms:spatial", "dcterms:temporal", "dc:coverage"),
            "rights": ("dc:rights", "dcterms:rights", "dcterms:license"),
        }
    )

    DC = ElementMaker(namespace=CrosswalkGenerator.DC_NS)

    def __init__(self, identifier_format: str | None = None):
        """Constructor.

        :param identifier_format: When given, `identifier_format.format(local_name)`
            is added as a dc:identifier, typically the object's landing page.
        """
        self.identifier_format = identifier_format

    def generate(
        self, obj: RepositoryObject, format: MetadataFormat
    ) -> etree._Element | None:
        nsmap = {
            "oai_dc": format.namespace,
            "dc": self.DC_NS,
            "xsi": self.XSI_NS,
        }
        root = etree.Element(
            etree.QName(format.namespace, "dc"),
            self.schema_location(format.namespace, format.schema_url),
            nsmap=nsmap,
        )

        for element, sources in self.ELEMENT_SOURCES.items():
            for value in self._values(obj, sources):
                root.append(getattr(self.DC, element)(value))
        if self.identifier_format:
            root.append(
                self.DC.identifier(self.identifier_format.format(obj.local_name))
            )

        if len(root) == 0:
            self.log.info("Object %s has no Dublin Core properties.", obj.path)
            return None
        return root

    @staticmethod
    def _values(obj: RepositoryObject, sources: Sequence[str]) -> tuple[str, ...]:
        for source in sources:
            if values := obj.values(source):
                return values
        return ()
