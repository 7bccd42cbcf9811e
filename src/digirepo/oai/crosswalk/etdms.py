from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from digirepo.oai.crosswalk.base import CrosswalkError, CrosswalkGenerator
from digirepo.oai.util.xml_writer import ElementMaker

if TYPE_CHECKING:
    from digirepo.oai.protocol.formats import MetadataFormat
    from digirepo.oai.store.base import RepositoryObject


class EtdmsGenerator(CrosswalkGenerator):
    """ETD-MS thesis records. Elements are written in schema order."""

    THESIS_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
        ("title", ("dcterms:title",)),
        ("alternativeTitle", ("dcterms:alternative",)),
        ("creator", ("ual:dissertant", "dcterms:creator")),
        ("subject", ("dc:subject", "dcterms:temporal", "dcterms:spatial")),
        ("description", ("dcterms:abstract", "dcterms:description")),
        ("publisher", ("swrc:institution",)),
        ("contributor", ("ual:supervisor", "ual:commiteeMember", "dc:contributor")),
        ("date", ("dcterms:dateAccepted",)),
        ("type", ("dcterms:type",)),
        ("format", ("dcterms:format",)),
        ("identifier", ("dcterms:identifier", "prism:doi")),
        ("language", ("dcterms:language",)),
        ("rights", ("dc:rights", "dcterms:license")),
    )

    DEGREE_FIELDS: tuple[tuple[str, str], ...] = (
        ("name", "bibo:degree"),
        ("level", "ual:thesisLevel"),
        ("discipline", "ual:department"),
        ("grantor", "swrc:institution"),
    )

    def generate(
        self, obj: RepositoryObject, format: MetadataFormat
    ) -> etree._Element | None:
        # Title is the only element the schema requires.
        if not obj.values("dcterms:title"):
            raise CrosswalkError(f"Thesis {obj.path} has no title.")

        etdms = ElementMaker(
            namespace=format.namespace,
            nsmap={None: format.namespace, "xsi": self.XSI_NS},
        )
        thesis = etdms.thesis(self.schema_location(format.namespace, format.schema_url))

        for element, sources in self.THESIS_FIELDS:
            for source in sources:
                for value in obj.values(source):
                    thesis.append(getattr(etdms, element)(value))

        degree = etdms.degree()
        for element, source in self.DEGREE_FIELDS:
            if value := obj.first(source):
                degree.append(getattr(etdms, element)(value))
        if len(degree):
            thesis.append(degree)
        return thesis
