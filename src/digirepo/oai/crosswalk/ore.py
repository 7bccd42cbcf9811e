from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode

from lxml import etree

from digirepo.oai.crosswalk.base import CrosswalkError, CrosswalkGenerator
from digirepo.oai.util.xml_writer import ElementMaker

if TYPE_CHECKING:
    from digirepo.oai.protocol.formats import MetadataFormat
    from digirepo.oai.store.base import RepositoryObject


class OreGenerator(CrosswalkGenerator):
    """OAI-ORE resource map of an object, serialized as an Atom entry.

    The entry describes the aggregation of the object's files, its landing
    page and its Dublin Core record. See
    http://www.openarchives.org/ore/1.0/atom
    """

    ATOM_NS = "http://www.w3.org/2005/Atom"
    ORE_TERMS_NS = "http://www.openarchives.org/ore/terms/"
    ORE_ATOM_NS = "http://www.openarchives.org/ore/atom/"
    BIBO_NS = "http://purl.org/ontology/bibo/"

    AGGREGATES = f"{ORE_TERMS_NS}aggregates"
    DESCRIBES = f"{ORE_TERMS_NS}describes"

    FILE_PROPERTY = "pcdm:hasFile"
    """Values are the URLs of the object's files."""

    CREATOR_SOURCES = ("ual:dissertant", "dcterms:creator", "dc:creator")
    CONTRIBUTOR_SOURCES = ("ual:supervisor", "ual:commiteeMember")
    CREATED_SOURCES = ("dcterms:dateAccepted", "dcterms:created")

    ATOM = ElementMaker(
        namespace=ATOM_NS, nsmap={"atom": ATOM_NS, "xsi": CrosswalkGenerator.XSI_NS}
    )

    def __init__(
        self,
        base_url: str,
        identifier_prefix: str,
        repository_name: str,
        landing_page_format: str | None = None,
    ):
        """Constructor.

        :param base_url: The provider's OAI-PMH endpoint. The resource map
            and the aggregated Dublin Core record are GetRecord requests
            against it.
        :param identifier_prefix: Prefix of the object's OAI identifier.
        :param repository_name: Named as the author of the resource map.
        :param landing_page_format: When given, `landing_page_format.format(local_name)`
            is the object's HTML landing page.
        """
        self.base_url = base_url
        self.identifier_prefix = identifier_prefix
        self.repository_name = repository_name
        self.landing_page_format = landing_page_format

    def record_url(self, identifier: str, prefix: str) -> str:
        query = urlencode(
            {"verb": "GetRecord", "metadataPrefix": prefix, "identifier": identifier}
        )
        return f"{self.base_url}?{query}"

    def generate(
        self, obj: RepositoryObject, format: MetadataFormat
    ) -> etree._Element | None:
        title = obj.first("dcterms:title") or obj.first("dc:title")
        if not title:
            raise CrosswalkError(f"{obj.path} has no title.")

        atom = self.ATOM
        identifier = f"{self.identifier_prefix}{obj.local_name}"
        resource_map = self.record_url(identifier, format.prefix)
        modified = self._strftime(obj.last_modified)
        landing_page = (
            self.landing_page_format.format(obj.local_name)
            if self.landing_page_format
            else None
        )

        entry = atom.entry(self.schema_location(format.namespace, format.schema_url))
        entry.append(atom.id(identifier))
        if landing_page:
            entry.append(atom.link(href=landing_page, rel="alternate"))

        # Resource map metadata
        entry.append(
            atom.link(href=resource_map, rel="self", type="application/atom+xml")
        )
        entry.append(atom.link(href=resource_map, rel=self.DESCRIBES))
        entry.append(
            atom.source(
                atom.author(atom.name(self.repository_name), atom.uri(self.base_url)),
                atom.generator(self.repository_name),
                atom.updated(modified),
                atom.id(resource_map),
            )
        )

        # Aggregation metadata
        entry.append(atom.title(title))
        for name in self._values(obj, self.CREATOR_SOURCES):
            entry.append(atom.author(atom.name(name)))
        for source in self.CONTRIBUTOR_SOURCES:
            for name in obj.values(source):
                entry.append(atom.contributor(atom.name(name)))
        entry.append(atom.updated(modified))

        # Categories of the aggregation
        entry.append(
            atom.category(
                term=modified,
                scheme=f"{self.ORE_ATOM_NS}modified",
                label="Aggregation Last Modified",
            )
        )
        if created := self._first(obj, self.CREATED_SOURCES):
            entry.append(
                atom.category(
                    term=created,
                    scheme=f"{self.ORE_ATOM_NS}created",
                    label="Aggregation Creation",
                )
            )
        entry.append(
            atom.category(
                term=f"{self.ORE_TERMS_NS}Aggregation",
                scheme=self.ORE_TERMS_NS,
                label="Aggregation",
            )
        )
        for type_ in obj.values("dcterms:type"):
            entry.append(atom.category(term=type_, scheme=self.BIBO_NS, label=type_))

        # Aggregated resources
        for url in obj.values(self.FILE_PROPERTY):
            entry.append(
                atom.link(
                    href=url,
                    rel=self.AGGREGATES,
                    title=url.rstrip("/").rsplit("/", 1)[-1],
                )
            )
        if landing_page:
            entry.append(
                atom.link(
                    href=landing_page,
                    rel=self.AGGREGATES,
                    type="text/html",
                    title=title,
                )
            )
        entry.append(
            atom.link(
                href=self.record_url(identifier, "oai_dc"),
                rel=self.AGGREGATES,
                type="application/xml",
                title=title,
            )
        )
        return entry

    @staticmethod
    def _values(obj: RepositoryObject, sources: tuple[str, ...]) -> tuple[str, ...]:
        for source in sources:
            if values := obj.values(source):
                return values
        return ()

    @classmethod
    def _first(cls, obj: RepositoryObject, sources: tuple[str, ...]) -> str | None:
        values = cls._values(obj, sources)
        return values[0] if values else None
