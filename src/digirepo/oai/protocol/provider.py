"""The OAI-PMH protocol engine.

Each request is handled on its own: everything needed to continue a list
travels in the resumption token, so any provider instance can resume any
list.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from frozendict import frozendict

from digirepo.oai.protocol.errors import (
    BAD_ARGUMENT,
    BAD_RESUMPTION_TOKEN,
    BAD_VERB,
    CANNOT_DISSEMINATE_FORMAT,
    ID_DOES_NOT_EXIST,
    NO_METADATA_FORMATS,
    NO_RECORDS_MATCH,
    NO_SET_HIERARCHY,
    OaiError,
    OaiErrorCode,
    OaiException,
    ResumptionTokenDecodeError,
)
from digirepo.oai.protocol.formats import MetadataFormatRegistry
from digirepo.oai.protocol.harvest import (
    HarvestFilter,
    HarvestQueryBuilder,
    SearchCriterion,
    SearchFilter,
)
from digirepo.oai.protocol.pagination import Pagination
from digirepo.oai.protocol.records import RecordAssembler
from digirepo.oai.protocol.token import ResumptionToken
from digirepo.oai.protocol.types import (
    TOKEN_VERBS,
    VERB_ARGUMENTS,
    GetRecordPayload,
    IdentifyPayload,
    ListIdentifiersPayload,
    ListMetadataFormatsPayload,
    ListRecordsPayload,
    ListSetsPayload,
    OaiResponse,
    Payload,
    RequestEcho,
    ResumptionInfo,
    Verb,
)
from digirepo.oai.service.logging.configuration import LogLevel
from digirepo.oai.store.base import ObjectStore, Page, RepositoryObject
from digirepo.oai.util.datetime_helpers import second_timestamp, utc_now
from digirepo.oai.util.log import (
    HarvestRequestLoggerAdapter,
    LoggerMixin,
    log_elapsed_time,
    pluralize,
)

if TYPE_CHECKING:
    from digirepo.oai.service.provider.configuration import ProviderConfiguration

RESUMPTION_TOKEN = "resumptionToken"

# The errors that mean the request itself is malformed. Their responses
# must not echo the request's arguments.
_MALFORMED_REQUEST = frozenset({OaiErrorCode.BAD_VERB, OaiErrorCode.BAD_ARGUMENT})

_ECHOED_ARGUMENTS = frozenset(
    {"identifier", "metadataPrefix", "from", "until", "set", RESUMPTION_TOKEN}
)


@contextmanager
def _token_arguments() -> Generator[None, None, None]:
    """Arguments taken from a resumption token were valid when the token
    was issued. If they no longer are, the token is what's wrong.
    """
    try:
        yield
    except OaiException as e:
        raise OaiException(
            BAD_RESUMPTION_TOKEN.detailed(
                f"The resumption token is no longer valid: {e.error.message}"
            )
        ) from e


class OaiProvider(LoggerMixin):
    def __init__(
        self,
        configuration: ProviderConfiguration,
        store: ObjectStore,
        registry: MetadataFormatRegistry,
    ):
        self.configuration = configuration
        self.store = store
        self.registry = registry
        self.identifier_scheme = configuration.identifier_scheme
        self.query_builder = HarvestQueryBuilder(
            registry, sets_enabled=configuration.sets_enabled
        )
        self.assembler = RecordAssembler(store, registry, self.identifier_scheme)
        self.handlers: Mapping[Verb, Callable[[Mapping[str, str]], Payload]] = (
            frozendict(
                {
                    Verb.IDENTIFY: self.identify,
                    Verb.LIST_METADATA_FORMATS: self.list_metadata_formats,
                    Verb.GET_RECORD: self.get_record,
                    Verb.LIST_IDENTIFIERS: self.list_identifiers,
                    Verb.LIST_RECORDS: self.list_records,
                    Verb.LIST_SETS: self.list_sets,
                    Verb.SEARCH: self.search,
                }
            )
        )

    @property
    def page_size(self) -> int:
        return self.configuration.max_page_size

    @log_elapsed_time(
        log_level=LogLevel.debug, message_prefix="handle", skip_start=True
    )
    def handle(self, arguments: Mapping[str, str | Sequence[str]]) -> OaiResponse:
        """Answer one harvesting request.

        Protocol problems are reported in the response, never raised. Any
        other exception, such as the store being unavailable, propagates.

        :param arguments: The request's arguments. Sequence values hold
            every value of an argument that was given more than once.
        """
        response_date = second_timestamp(utc_now())
        base_echo = RequestEcho(base_url=self.configuration.base_url)

        verb_values = self._values(arguments.get("verb"))
        verb = Verb.from_value(verb_values[0]) if len(verb_values) == 1 else None
        if verb is None:
            return self._error_response(
                base_echo,
                response_date,
                BAD_VERB.detailed(self._bad_verb_message(verb_values)),
            )

        log = HarvestRequestLoggerAdapter(
            self.log, dict(verb=verb.value, arguments=self._loggable(arguments))
        )
        try:
            args = self._validate_arguments(verb, arguments)
        except OaiException as e:
            log.info("Rejected request: %s", e.error.message)
            return self._error_response(base_echo, response_date, e.error)

        echo = self._echo(verb, args)
        try:
            payload = self.handlers[verb](args)
        except OaiException as e:
            log.info("Request failed with %s: %s", e.code, e.error.message)
            if e.code in _MALFORMED_REQUEST:
                echo = base_echo
            return self._error_response(echo, response_date, e.error)

        log.info("Request succeeded.")
        return OaiResponse(request=echo, response_date=response_date, payload=payload)

    @staticmethod
    def _bad_verb_message(verb_values: Sequence[str]) -> str:
        if not verb_values:
            return "The verb argument is missing."
        if len(verb_values) > 1:
            return "The verb argument is repeated."
        return f"'{verb_values[0]}' is not a legal OAI-PMH verb."

    @staticmethod
    def _values(value: str | Sequence[str] | None) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    def _loggable(
        self, arguments: Mapping[str, str | Sequence[str]]
    ) -> dict[str, str]:
        return {
            key: ",".join(self._values(value))
            for key, value in arguments.items()
            if key != "verb"
        }

    def _validate_arguments(
        self, verb: Verb, arguments: Mapping[str, str | Sequence[str]]
    ) -> dict[str, str]:
        """Check the arguments against what `verb` accepts.

        A resumption token replaces every other argument, so the others
        are dropped rather than validated.

        :return: The single-valued arguments, without the verb.
        """
        expected = VERB_ARGUMENTS[verb]
        args: dict[str, str] = {}
        for key, value in arguments.items():
            if key == "verb":
                continue
            values = self._values(value)
            if len(values) > 1:
                raise OaiException(
                    BAD_ARGUMENT.detailed(f"The '{key}' argument is repeated.")
                )
            if key not in expected.allowed:
                raise OaiException(
                    BAD_ARGUMENT.detailed(
                        f"The '{key}' argument is not allowed for the {verb} verb."
                    )
                )
            if values:
                args[key] = values[0]

        if expected.exclusive and expected.exclusive in args:
            return {expected.exclusive: args[expected.exclusive]}

        missing = sorted(key for key in expected.required if not args.get(key))
        if missing:
            raise OaiException(
                BAD_ARGUMENT.detailed(
                    f"The {verb} verb requires the {', '.join(missing)} argument(s)."
                )
            )
        return args

    def _echo(self, verb: Verb, args: Mapping[str, str]) -> RequestEcho:
        # Search answers with a ListRecords payload, echo it that way so the
        # response stays schema valid.
        echo_verb = Verb.LIST_RECORDS if verb == Verb.SEARCH else verb
        echoed = {"verb": echo_verb.value}
        echoed.update(
            (key, value) for key, value in args.items() if key in _ECHOED_ARGUMENTS
        )
        return RequestEcho(
            base_url=self.configuration.base_url, arguments=frozendict(echoed)
        )

    @staticmethod
    def _error_response(
        echo: RequestEcho, response_date: datetime, error: OaiError
    ) -> OaiResponse:
        return OaiResponse(request=echo, response_date=response_date, errors=(error,))

    def identify(self, args: Mapping[str, str]) -> IdentifyPayload:
        configuration = self.configuration
        earliest = self.store.earliest_datestamp()
        return IdentifyPayload(
            repository_name=configuration.repository_name,
            base_url=configuration.base_url,
            earliest_datestamp=second_timestamp(earliest or utc_now()),
            admin_emails=configuration.admin_emails,
            description=configuration.identifier_description,
        )

    def list_metadata_formats(
        self, args: Mapping[str, str]
    ) -> ListMetadataFormatsPayload:
        identifier = args.get("identifier")
        if not identifier:
            return ListMetadataFormatsPayload(formats=self.registry.list_all())

        obj = self._resolve(identifier)
        formats = self.registry.supported_formats_for(obj)
        if not formats:
            raise OaiException(
                NO_METADATA_FORMATS.detailed(
                    f"There are no metadata formats available for '{identifier}'."
                )
            )
        return ListMetadataFormatsPayload(formats=formats)

    def get_record(self, args: Mapping[str, str]) -> GetRecordPayload:
        format = self.query_builder.resolve_format(args.get("metadataPrefix"))
        identifier = args["identifier"]
        obj = self._resolve(identifier)
        # A format restricted to one type of object can't see any other.
        if not format.applies_to(obj):
            raise OaiException(self._unknown_identifier(identifier))
        if format not in self.registry.supported_formats_for(obj):
            raise OaiException(
                CANNOT_DISSEMINATE_FORMAT.detailed(
                    f"'{identifier}' is not available in the {format.prefix} format."
                )
            )
        return GetRecordPayload(record=self.assembler.assemble(format, obj))

    def list_identifiers(self, args: Mapping[str, str]) -> ListIdentifiersPayload:
        template, filter, resumed = self._harvest_filter(Verb.LIST_IDENTIFIERS, args)
        headers, resumption = self._paginate(
            template,
            Pagination(filter.offset, filter.limit),
            lambda offset, limit: self.store.match(
                replace(filter, offset=offset, limit=limit)
            ),
            self.assembler.header,
            resumed,
        )
        return ListIdentifiersPayload(headers=headers, resumption=resumption)

    def list_records(self, args: Mapping[str, str]) -> ListRecordsPayload:
        template, filter, resumed = self._harvest_filter(Verb.LIST_RECORDS, args)
        format = self.query_builder.resolve_format(filter.metadata_prefix)
        records, resumption = self._paginate(
            template,
            Pagination(filter.offset, filter.limit),
            lambda offset, limit: self.store.match(
                replace(filter, offset=offset, limit=limit)
            ),
            lambda obj: self.assembler.assemble(format, obj),
            resumed,
        )
        return ListRecordsPayload(records=records, resumption=resumption)

    def list_sets(self, args: Mapping[str, str]) -> ListSetsPayload:
        if not self.configuration.sets_enabled:
            raise OaiException(
                NO_SET_HIERARCHY.detailed("Set support is disabled in this repository.")
            )
        if RESUMPTION_TOKEN in args:
            template = self._decode_token(Verb.LIST_SETS, args[RESUMPTION_TOKEN])
            resumed = True
        else:
            template = ResumptionToken(verb=Verb.LIST_SETS.value)
            resumed = False
        sets, resumption = self._paginate(
            template,
            Pagination(template.offset, self.page_size),
            self.store.list_sets,
            lambda repository_set: repository_set,
            resumed,
        )
        return ListSetsPayload(sets=sets, resumption=resumption)

    def search(self, args: Mapping[str, str]) -> ListRecordsPayload:
        if not self.configuration.search_enabled:
            # Harvesters built against earlier releases expect this code.
            raise OaiException(
                NO_SET_HIERARCHY.detailed("Search is not enabled in this repository.")
            )
        template, filter, resumed = self._search_filter(args)
        format = self.query_builder.resolve_format(filter.metadata_prefix)
        records, resumption = self._paginate(
            template,
            Pagination(filter.offset, filter.limit),
            lambda offset, limit: self.store.search(
                replace(filter, offset=offset, limit=limit)
            ),
            lambda obj: self.assembler.assemble(format, obj),
            resumed,
        )
        return ListRecordsPayload(records=records, resumption=resumption)

    def _harvest_filter(
        self, verb: Verb, args: Mapping[str, str]
    ) -> tuple[ResumptionToken, HarvestFilter, bool]:
        if RESUMPTION_TOKEN in args:
            token = self._decode_token(verb, args[RESUMPTION_TOKEN])
            with _token_arguments():
                filter = self.query_builder.build(
                    token.metadata_prefix,
                    token.from_ or None,
                    token.until or None,
                    token.set_spec or None,
                    limit=self.page_size,
                    offset=token.offset,
                )
            return token, filter, True

        filter = self.query_builder.build(
            args.get("metadataPrefix"),
            args.get("from") or None,
            args.get("until") or None,
            args.get("set") or None,
            limit=self.page_size,
        )
        token = ResumptionToken(
            verb=verb.value,
            metadata_prefix=args.get("metadataPrefix", ""),
            from_=args.get("from", ""),
            until=args.get("until", ""),
            set_spec=args.get("set", ""),
        )
        return token, filter, False

    def _search_filter(
        self, args: Mapping[str, str]
    ) -> tuple[ResumptionToken, SearchFilter, bool]:
        if RESUMPTION_TOKEN in args:
            token = self._decode_token(Verb.SEARCH, args[RESUMPTION_TOKEN])
            try:
                criterion = SearchCriterion.from_token_field(token.set_spec)
            except ValueError as e:
                raise OaiException(
                    BAD_RESUMPTION_TOKEN.detailed(
                        "The resumption token does not carry a search criterion."
                    )
                ) from e
            with _token_arguments():
                filter = self.query_builder.build_search(
                    token.metadata_prefix,
                    criterion.property,
                    criterion.value,
                    limit=self.page_size,
                    offset=token.offset,
                )
            return token, filter, True

        filter = self.query_builder.build_search(
            args.get("metadataPrefix"),
            args.get("property"),
            args.get("value"),
            limit=self.page_size,
        )
        token = ResumptionToken(
            verb=Verb.SEARCH.value,
            metadata_prefix=filter.metadata_prefix,
            set_spec=filter.criterion.to_token_field(),
        )
        return token, filter, False

    def _decode_token(self, verb: Verb, value: str) -> ResumptionToken:
        try:
            token = ResumptionToken.decode(value)
        except ResumptionTokenDecodeError as e:
            raise OaiException(
                BAD_RESUMPTION_TOKEN.detailed(
                    f"The resumption token '{value}' is invalid: {e.message}"
                )
            ) from e
        if (
            Verb.from_value(token.verb) not in TOKEN_VERBS
            or token.verb != verb.value
        ):
            raise OaiException(
                BAD_RESUMPTION_TOKEN.detailed(
                    f"The resumption token was issued for {token.verb or 'another verb'}, not {verb}."
                )
            )
        return token

    def _paginate[T, R](
        self,
        template: ResumptionToken,
        pagination: Pagination,
        fetch_page: Callable[[int, int], Page[T]],
        assemble_item: Callable[[T], R],
        resumed: bool,
    ) -> tuple[list[R], ResumptionInfo | None]:
        """Fetch one page of a list and work out how it continues.

        :param template: The token describing this list. The next page's
            token is this one at the next offset.
        :param fetch_page: Called with (offset, limit), returns that page.
        :param assemble_item: Turns one stored item into a response item.
        :param resumed: Whether this request continues an earlier one. The
            last page of a resumed list carries an empty resumption token.
        """
        page = fetch_page(pagination.offset, pagination.size)
        pagination.page_loaded(page)
        if not page.items:
            if resumed:
                raise OaiException(
                    BAD_RESUMPTION_TOKEN.detailed(
                        "The list this resumption token belongs to has changed."
                    )
                )
            raise OaiException(NO_RECORDS_MATCH)

        items = [assemble_item(item) for item in page.items]
        self.log.debug(
            "Assembled %s at offset %d of %d.",
            pluralize(len(items), "item"),
            pagination.offset,
            page.total,
        )

        if pagination.has_next_page:
            return items, ResumptionInfo(
                token=template.advance(pagination.next_offset).encode(),
                cursor=pagination.offset,
                complete_list_size=page.total,
            )
        if resumed:
            return items, ResumptionInfo(
                token="", cursor=pagination.offset, complete_list_size=page.total
            )
        return items, None

    def _resolve(self, identifier: str) -> RepositoryObject:
        local_name = self.identifier_scheme.local_name_for(identifier)
        obj = self.store.find(local_name) if local_name else None
        if obj is None:
            raise OaiException(self._unknown_identifier(identifier))
        return obj

    @staticmethod
    def _unknown_identifier(identifier: str) -> OaiError:
        return ID_DOES_NOT_EXIST.detailed(
            f"The identifier '{identifier}' does not exist in this repository."
        )

