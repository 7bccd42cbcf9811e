from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from frozendict import frozendict
from lxml import etree

from digirepo.oai.protocol.errors import OaiError
from digirepo.oai.protocol.formats import MetadataFormat
from digirepo.oai.protocol.harvest import GRANULARITY
from digirepo.oai.store.base import RepositorySet


class Verb(StrEnum):
    IDENTIFY = "Identify"
    LIST_METADATA_FORMATS = "ListMetadataFormats"
    GET_RECORD = "GetRecord"
    LIST_IDENTIFIERS = "ListIdentifiers"
    LIST_RECORDS = "ListRecords"
    LIST_SETS = "ListSets"
    SEARCH = "Search"

    @classmethod
    def from_value(cls, value: str | None) -> Verb | None:
        try:
            return cls(value)
        except ValueError:
            return None


# Verbs whose lists can be resumed, and so may appear inside a token.
TOKEN_VERBS = frozenset(
    {Verb.LIST_IDENTIFIERS, Verb.LIST_RECORDS, Verb.LIST_SETS, Verb.SEARCH}
)


@dataclass(frozen=True)
class VerbArguments:
    required: frozenset[str] = frozenset()
    optional: frozenset[str] = frozenset()
    exclusive: str | None = None

    @property
    def allowed(self) -> frozenset[str]:
        allowed = self.required | self.optional
        if self.exclusive:
            allowed |= {self.exclusive}
        return allowed


VERB_ARGUMENTS: Mapping[Verb, VerbArguments] = frozendict(
    {
        Verb.IDENTIFY: VerbArguments(),
        Verb.LIST_METADATA_FORMATS: VerbArguments(optional=frozenset({"identifier"})),
        Verb.GET_RECORD: VerbArguments(
            required=frozenset({"identifier", "metadataPrefix"})
        ),
        Verb.LIST_IDENTIFIERS: VerbArguments(
            required=frozenset({"metadataPrefix"}),
            optional=frozenset({"from", "until", "set"}),
            exclusive="resumptionToken",
        ),
        Verb.LIST_RECORDS: VerbArguments(
            required=frozenset({"metadataPrefix"}),
            optional=frozenset({"from", "until", "set"}),
            exclusive="resumptionToken",
        ),
        Verb.LIST_SETS: VerbArguments(exclusive="resumptionToken"),
        Verb.SEARCH: VerbArguments(
            required=frozenset({"metadataPrefix", "property", "value"}),
            exclusive="resumptionToken",
        ),
    }
)


@dataclass(frozen=True)
class Header:
    identifier: str
    datestamp: datetime
    set_specs: tuple[str, ...] = ()


@dataclass(frozen=True)
class Record:
    header: Header
    metadata: etree._Element | None = None


@dataclass(frozen=True)
class ResumptionInfo:
    """The resumptionToken element of an incomplete list.

    An empty `token` marks the last page of a resumed list.
    """

    token: str
    cursor: int
    complete_list_size: int


@dataclass(frozen=True)
class RequestEcho:
    base_url: str
    arguments: Mapping[str, str] = field(default_factory=frozendict)


@dataclass(frozen=True)
class OaiIdentifierDescription:
    scheme: str
    repository_identifier: str
    delimiter: str
    sample_identifier: str


@dataclass(frozen=True)
class IdentifyPayload:
    repository_name: str
    base_url: str
    earliest_datestamp: datetime
    admin_emails: tuple[str, ...] = ()
    protocol_version: str = "2.0"
    deleted_record: str = "no"
    granularity: str = GRANULARITY
    description: OaiIdentifierDescription | None = None


@dataclass(frozen=True)
class ListMetadataFormatsPayload:
    formats: Sequence[MetadataFormat]


@dataclass(frozen=True)
class GetRecordPayload:
    record: Record


@dataclass(frozen=True)
class ListIdentifiersPayload:
    headers: Sequence[Header]
    resumption: ResumptionInfo | None = None


@dataclass(frozen=True)
class ListRecordsPayload:
    records: Sequence[Record]
    resumption: ResumptionInfo | None = None


@dataclass(frozen=True)
class ListSetsPayload:
    sets: Sequence[RepositorySet]
    resumption: ResumptionInfo | None = None


Payload = (
    IdentifyPayload
    | ListMetadataFormatsPayload
    | GetRecordPayload
    | ListIdentifiersPayload
    | ListRecordsPayload
    | ListSetsPayload
)


@dataclass(frozen=True)
class OaiResponse:
    """One response: a payload, or the errors that prevented one."""

    request: RequestEcho
    response_date: datetime
    payload: Payload | None = None
    errors: tuple[OaiError, ...] = ()

    def __post_init__(self) -> None:
        if (self.payload is None) == (not self.errors):
            raise ValueError("A response has either a payload or errors.")

    @property
    def error_codes(self) -> list[str]:
        return [error.code.value for error in self.errors]
