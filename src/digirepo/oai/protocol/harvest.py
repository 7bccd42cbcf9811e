"""Selective harvesting: turn request arguments into store filters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from urllib.parse import quote, unquote

from digirepo.oai.protocol.errors import (
    BAD_ARGUMENT,
    CANNOT_DISSEMINATE_FORMAT,
    NO_SET_HIERARCHY,
    OaiException,
)
from digirepo.oai.protocol.formats import MetadataFormat, MetadataFormatRegistry
from digirepo.oai.store.base import RepositoryObject
from digirepo.oai.util.datetime_helpers import strptime_utc

GRANULARITY = "YYYY-MM-DDThh:mm:ssZ"
DATESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_DATESTAMP = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z")
# The last whole second datetime can represent.
_LAST_SECOND = datetime.max.replace(microsecond=0)


def parse_datestamp(value: str, argument: str) -> datetime:
    """Parse a UTC datestamp at second granularity.

    :raises OaiException: badArgument if `value` is not exactly
        YYYY-MM-DDThh:mm:ssZ, or is not a real date.
    """
    if not _DATESTAMP.fullmatch(value):
        raise OaiException(
            BAD_ARGUMENT.detailed(
                f"The '{argument}' argument '{value}' does not match the granularity {GRANULARITY}."
            )
        )
    try:
        return strptime_utc(value, DATESTAMP_FORMAT)
    except ValueError as e:
        raise OaiException(
            BAD_ARGUMENT.detailed(
                f"The '{argument}' argument '{value}' is not a valid date."
            )
        ) from e


@dataclass(frozen=True)
class HarvestFilter:
    """What a ListIdentifiers or ListRecords request asks the store for."""

    metadata_prefix: str
    from_: datetime | None = None
    until: datetime | None = None
    set_spec: str | None = None
    offset: int = 0
    limit: int = 100
    object_type: str | None = None

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError("offset must be non-negative")
        if self.limit < 1:
            raise ValueError("limit must be positive")
        if self.from_ and self.until and self.from_ > self.until:
            raise ValueError("from must not be later than until")

    @property
    def until_exclusive(self) -> datetime | None:
        """The first instant after the `until` second.

        Stored modification times have sub-second precision, while the
        protocol only deals in whole seconds. None when `until` is the last
        representable second, which leaves no upper bound.
        """
        if self.until is None or self.until.replace(tzinfo=None) >= _LAST_SECOND:
            return None
        return self.until + timedelta(seconds=1)

    def matches(self, obj: RepositoryObject) -> bool:
        if self.from_ is not None and obj.last_modified < self.from_:
            return False
        until_exclusive = self.until_exclusive
        if until_exclusive is not None and obj.last_modified >= until_exclusive:
            return False
        if self.set_spec and self.set_spec not in obj.set_specs:
            return False
        if self.object_type is not None and obj.object_type != self.object_type:
            return False
        return True


@dataclass(frozen=True)
class SearchCriterion:
    """A property whose values must contain `value`."""

    property: str
    value: str

    def to_token_field(self) -> str:
        return f"{quote(self.property, safe='')}={quote(self.value, safe='')}"

    @classmethod
    def from_token_field(cls, field: str) -> SearchCriterion:
        property, separator, value = field.partition("=")
        if not separator or not property:
            raise ValueError(f"'{field}' is not a search criterion.")
        return cls(property=unquote(property), value=unquote(value))


@dataclass(frozen=True)
class SearchFilter:
    """What a Search request asks the store for."""

    metadata_prefix: str
    criterion: SearchCriterion
    offset: int = 0
    limit: int = 100
    object_type: str | None = None

    def matches(self, obj: RepositoryObject) -> bool:
        if self.object_type is not None and obj.object_type != self.object_type:
            return False
        return any(
            self.criterion.value in value
            for value in obj.values(self.criterion.property)
        )


class HarvestQueryBuilder:
    """Validate harvesting arguments and build store filters from them.

    Validation never touches the store.
    """

    def __init__(self, registry: MetadataFormatRegistry, sets_enabled: bool = True):
        self.registry = registry
        self.sets_enabled = sets_enabled

    def resolve_format(self, prefix: str | None) -> MetadataFormat:
        if not prefix:
            raise OaiException(
                BAD_ARGUMENT.detailed("The metadataPrefix argument is required.")
            )
        format = self.registry.resolve(prefix)
        if format is None:
            raise OaiException(
                CANNOT_DISSEMINATE_FORMAT.detailed(
                    f"The metadata format '{prefix}' is not supported by this repository."
                )
            )
        return format

    @staticmethod
    def _check_page(limit: int, offset: int) -> None:
        if offset < 0:
            raise OaiException(
                BAD_ARGUMENT.detailed("The offset must not be negative.")
            )
        if limit < 1:
            raise OaiException(BAD_ARGUMENT.detailed("The page size must be positive."))

    def build(
        self,
        prefix: str | None,
        from_: str | None,
        until: str | None,
        set_spec: str | None,
        limit: int,
        offset: int = 0,
    ) -> HarvestFilter:
        format = self.resolve_format(prefix)

        set_spec = (set_spec.strip() or None) if set_spec else None
        if set_spec and not self.sets_enabled:
            raise OaiException(
                NO_SET_HIERARCHY.detailed("Set support is disabled in this repository.")
            )

        from_date = parse_datestamp(from_, "from") if from_ else None
        until_date = parse_datestamp(until, "until") if until else None
        if from_date and until_date and from_date > until_date:
            raise OaiException(
                BAD_ARGUMENT.detailed(
                    f"The 'from' argument '{from_}' is later than the 'until' argument '{until}'."
                )
            )
        self._check_page(limit, offset)

        return HarvestFilter(
            metadata_prefix=format.prefix,
            from_=from_date,
            until=until_date,
            set_spec=set_spec,
            offset=offset,
            limit=limit,
            object_type=format.object_type,
        )

    def build_search(
        self,
        prefix: str | None,
        property: str | None,
        value: str | None,
        limit: int,
        offset: int = 0,
    ) -> SearchFilter:
        format = self.resolve_format(prefix)
        if not property or value is None:
            raise OaiException(
                BAD_ARGUMENT.detailed("Search needs both a property and a value.")
            )
        self._check_page(limit, offset)
        return SearchFilter(
            metadata_prefix=format.prefix,
            criterion=SearchCriterion(property=property, value=value),
            offset=offset,
            limit=limit,
            object_type=format.object_type,
        )
