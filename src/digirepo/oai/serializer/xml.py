from __future__ import annotations

import copy
from functools import singledispatchmethod

from lxml.etree import _Element

from digirepo.oai.protocol.formats import MetadataFormat
from digirepo.oai.protocol.types import (
    GetRecordPayload,
    Header,
    IdentifyPayload,
    ListIdentifiersPayload,
    ListMetadataFormatsPayload,
    ListRecordsPayload,
    ListSetsPayload,
    OaiIdentifierDescription,
    OaiResponse,
    Record,
    RequestEcho,
    ResumptionInfo,
)
from digirepo.oai.store.base import RepositorySet
from digirepo.oai.util.xml_writer import ElementMaker, XMLWriter


class OaiPmhSerializer(XMLWriter):
    """Write an OaiResponse as an OAI-PMH 2.0 document."""

    CONTENT_TYPE = "text/xml; charset=utf-8"

    OAI_ID = ElementMaker(
        namespace=XMLWriter.OAI_IDENTIFIER_NS,
        nsmap={None: XMLWriter.OAI_IDENTIFIER_NS, "xsi": XMLWriter.XSI_NS},
    )

    def __init__(self, pretty_print: bool = False) -> None:
        self.pretty_print = pretty_print

    def serialize(self, response: OaiResponse) -> bytes:
        return self.to_string(self.to_element(response), pretty_print=self.pretty_print)

    def to_element(self, response: OaiResponse) -> _Element:
        root = self.E("OAI-PMH", self.schema_location(self.OAI_NS, self.OAI_SCHEMA))
        root.append(self.E.responseDate(self._strftime(response.response_date)))
        root.append(self._request(response.request))
        if response.errors:
            for error in response.errors:
                root.append(self.E.error(error.message, code=error.code.value))
        elif response.payload is not None:
            root.append(self._payload(response.payload))
        return root

    def _request(self, echo: RequestEcho) -> _Element:
        return self.E.request(echo.base_url, **dict(echo.arguments))

    @singledispatchmethod
    def _payload(self, payload: object) -> _Element:
        raise TypeError(f"Cannot serialize {type(payload).__name__}")

    @_payload.register
    def _identify(self, payload: IdentifyPayload) -> _Element:
        identify = self.E.Identify(
            self.E.repositoryName(payload.repository_name),
            self.E.baseURL(payload.base_url),
            self.E.protocolVersion(payload.protocol_version),
            *[self.E.adminEmail(email) for email in payload.admin_emails],
            self.E.earliestDatestamp(self._strftime(payload.earliest_datestamp)),
            self.E.deletedRecord(payload.deleted_record),
            self.E.granularity(payload.granularity),
        )
        if payload.description is not None:
            identify.append(
                self.E.description(self._oai_identifier(payload.description))
            )
        return identify

    def _oai_identifier(self, description: OaiIdentifierDescription) -> _Element:
        return self.OAI_ID(
            "oai-identifier",
            self.schema_location(self.OAI_IDENTIFIER_NS, self.OAI_IDENTIFIER_SCHEMA),
            self.OAI_ID.scheme(description.scheme),
            self.OAI_ID.repositoryIdentifier(description.repository_identifier),
            self.OAI_ID.delimiter(description.delimiter),
            self.OAI_ID.sampleIdentifier(description.sample_identifier),
        )

    @_payload.register
    def _list_metadata_formats(self, payload: ListMetadataFormatsPayload) -> _Element:
        return self.E.ListMetadataFormats(
            *[self._metadata_format(format) for format in payload.formats]
        )

    def _metadata_format(self, format: MetadataFormat) -> _Element:
        return self.E.metadataFormat(
            self.E.metadataPrefix(format.prefix),
            self.E.schema(format.schema_url),
            self.E.metadataNamespace(format.namespace),
        )

    @_payload.register
    def _get_record(self, payload: GetRecordPayload) -> _Element:
        return self.E.GetRecord(self._record(payload.record))

    @_payload.register
    def _list_identifiers(self, payload: ListIdentifiersPayload) -> _Element:
        element = self.E.ListIdentifiers(
            *[self._header(header) for header in payload.headers]
        )
        self._add_resumption_token(element, payload.resumption)
        return element

    @_payload.register
    def _list_records(self, payload: ListRecordsPayload) -> _Element:
        element = self.E.ListRecords(
            *[self._record(record) for record in payload.records]
        )
        self._add_resumption_token(element, payload.resumption)
        return element

    @_payload.register
    def _list_sets(self, payload: ListSetsPayload) -> _Element:
        element = self.E.ListSets(
            *[self._set(repository_set) for repository_set in payload.sets]
        )
        self._add_resumption_token(element, payload.resumption)
        return element

    def _set(self, repository_set: RepositorySet) -> _Element:
        return self.E.set(
            self.E.setSpec(repository_set.spec),
            self.E.setName(repository_set.display_name),
        )

    def _header(self, header: Header) -> _Element:
        return self.E.header(
            self.E.identifier(header.identifier),
            self.E.datestamp(self._strftime(header.datestamp)),
            *[self.E.setSpec(spec) for spec in header.set_specs],
        )

    def _record(self, record: Record) -> _Element:
        element = self.E.record(self._header(record.header))
        if record.metadata is not None:
            # Appending moves an element, so the record keeps its own copy.
            element.append(self.E.metadata(copy.deepcopy(record.metadata)))
        return element

    def _add_resumption_token(
        self, element: _Element, resumption: ResumptionInfo | None
    ) -> None:
        if resumption is None:
            return
        element.append(
            self.E.resumptionToken(
                resumption.token,
                cursor=str(resumption.cursor),
                completeListSize=str(resumption.complete_list_size),
            )
        )
