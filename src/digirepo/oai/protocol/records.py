from __future__ import annotations

from lxml import etree

from digirepo.oai.crosswalk.base import CrosswalkError
from digirepo.oai.protocol.formats import (
    InProcessFormat,
    LinkedBinaryFormat,
    MetadataFormat,
    MetadataFormatRegistry,
)
from digirepo.oai.protocol.identifiers import OaiIdentifierScheme
from digirepo.oai.protocol.types import Header, Record
from digirepo.oai.store.base import ObjectStore, RepositoryObject
from digirepo.oai.util.datetime_helpers import second_timestamp
from digirepo.oai.util.log import LoggerMixin


class RecordAssembler(LoggerMixin):
    """Join an object's header with its metadata in a given format.

    A record whose metadata can't be produced is still returned, with no
    metadata, so that one bad object doesn't fail a whole page.
    """

    def __init__(
        self,
        store: ObjectStore,
        registry: MetadataFormatRegistry,
        identifier_scheme: OaiIdentifierScheme,
    ):
        self.store = store
        self.registry = registry
        self.identifier_scheme = identifier_scheme
        # Stored documents are untrusted: no network access, no entity expansion.
        self.parser = etree.XMLParser(
            resolve_entities=False, no_network=True, remove_blank_text=True
        )

    def header(self, obj: RepositoryObject) -> Header:
        return Header(
            identifier=self.identifier_scheme.identifier_for(obj),
            datestamp=second_timestamp(obj.last_modified),
            set_specs=obj.set_specs,
        )

    def assemble(self, format: MetadataFormat, obj: RepositoryObject) -> Record:
        return Record(header=self.header(obj), metadata=self.metadata(format, obj))

    def metadata(
        self, format: MetadataFormat, obj: RepositoryObject
    ) -> etree._Element | None:
        if isinstance(format, InProcessFormat):
            return self._generate(format, obj)
        return self._read_linked_binary(format, obj)

    def _generate(
        self, format: InProcessFormat, obj: RepositoryObject
    ) -> etree._Element | None:
        generator = self.registry.generator_for(format)
        if generator is None:
            self.log.warning(
                "No crosswalk is registered for %s, omitting metadata for %s.",
                format.prefix,
                obj.path,
            )
            return None
        try:
            metadata = generator.generate(obj, format)
        except CrosswalkError as e:
            self.log.warning(
                "Unable to generate %s metadata for %s: %s",
                format.prefix,
                obj.path,
                e.message,
            )
            return None
        if metadata is None:
            self.log.warning(
                "The %s crosswalk produced no metadata for %s.", format.prefix, obj.path
            )
        return metadata

    def _read_linked_binary(
        self, format: LinkedBinaryFormat, obj: RepositoryObject
    ) -> etree._Element | None:
        binary_path = obj.first(format.source_property or "")
        if not binary_path:
            self.log.warning(
                "Object %s has no %s property, omitting %s metadata.",
                obj.path,
                format.source_property,
                format.prefix,
            )
            return None

        content = self.store.read_binary(binary_path)
        if content is None:
            self.log.warning(
                "The %s metadata binary %s of object %s does not exist.",
                format.prefix,
                binary_path,
                obj.path,
            )
            return None

        try:
            return etree.fromstring(self._strip_declaration(content), self.parser)
        except etree.XMLSyntaxError as e:
            self.log.warning(
                "The %s metadata binary %s of object %s is not well-formed XML: %s",
                format.prefix,
                binary_path,
                obj.path,
                e,
            )
            return None

    @staticmethod
    def _strip_declaration(content: bytes) -> bytes:
        """Drop a leading XML declaration, the document is embedded in another."""
        content = content.lstrip()
        if content.startswith(b"<?xml"):
            end = content.find(b"?>")
            if end != -1:
                content = content[end + 2 :].lstrip()
        return content
