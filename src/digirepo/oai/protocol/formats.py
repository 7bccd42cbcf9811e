from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Annotated, Literal

from frozendict import frozendict
from pydantic import BaseModel, ConfigDict, Field, model_validator

from digirepo.oai.core.config import CannotLoadConfiguration
from digirepo.oai.util.log import LoggerMixin

if TYPE_CHECKING:
    from digirepo.oai.crosswalk.base import CrosswalkGenerator
    from digirepo.oai.store.base import RepositoryObject


class BaseMetadataFormat(BaseModel):
    """A metadata format the repository can disseminate.

    Formats are loaded once at startup and never change afterwards.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    prefix: str = Field(..., min_length=1)
    namespace: str
    schema_url: str
    source_property: str | None = None
    object_type: str | None = None
    """When set, only objects of this type can be disseminated in this format."""

    def applies_to(self, obj: RepositoryObject) -> bool:
        return self.object_type is None or obj.object_type == self.object_type


class InProcessFormat(BaseMetadataFormat):
    """Generated on request by a registered crosswalk."""

    kind: Literal["in_process"] = "in_process"


class LinkedBinaryFormat(BaseMetadataFormat):
    """Pre-generated and stored as a binary. The object's value for
    `source_property` is the path of that binary.
    """

    kind: Literal["linked_binary"] = "linked_binary"

    @model_validator(mode="after")
    def _source_property_required(self) -> LinkedBinaryFormat:
        if not self.source_property:
            raise ValueError(
                f"Linked binary format '{self.prefix}' requires a source_property."
            )
        return self


MetadataFormat = InProcessFormat | LinkedBinaryFormat

MetadataFormatConfiguration = Annotated[
    InProcessFormat | LinkedBinaryFormat, Field(discriminator="kind")
]
"""Field type for formats loaded from configuration, tagged on `kind`."""


OAI_DC = InProcessFormat(
    prefix="oai_dc",
    namespace="http://www.openarchives.org/OAI/2.0/oai_dc/",
    schema_url="http://www.openarchives.org/OAI/2.0/oai_dc.xsd",
)

OAI_ETDMS = InProcessFormat(
    prefix="oai_etdms",
    namespace="http://www.ndltd.org/standards/metadata/etdms/1.0/",
    schema_url="http://www.ndltd.org/standards/metadata/etdms/1-0/etdms.xsd",
    object_type="Thesis",
)

OAI_ORE = InProcessFormat(
    prefix="ore",
    namespace="http://www.w3.org/2005/Atom",
    schema_url="http://www.kbcafe.com/rss/atom.xsd.xml",
    object_type="Thesis",
)

DEFAULT_FORMATS: tuple[MetadataFormat, ...] = (OAI_DC, OAI_ETDMS, OAI_ORE)


class MetadataFormatRegistry(LoggerMixin):
    """The metadata formats this provider supports, keyed by prefix."""

    def __init__(self) -> None:
        self._formats: dict[str, MetadataFormat] = {}
        self._generators: dict[str, CrosswalkGenerator] = {}

    def register(
        self, format: MetadataFormat, generator: CrosswalkGenerator | None = None
    ) -> None:
        if format.prefix in self._formats:
            raise ValueError(
                f"Metadata prefix '{format.prefix}' is already registered."
            )
        if isinstance(format, InProcessFormat):
            if generator is None:
                raise ValueError(
                    f"In-process format '{format.prefix}' needs a crosswalk generator."
                )
            self._generators[format.prefix] = generator
        self._formats[format.prefix] = format
        self.log.debug(
            "Registered metadata format %s (%s).", format.prefix, format.kind
        )

    def resolve(self, prefix: str | None) -> MetadataFormat | None:
        if not prefix:
            return None
        return self._formats.get(prefix)

    def list_all(self) -> Sequence[MetadataFormat]:
        return tuple(self._formats.values())

    def supported_formats_for(self, obj: RepositoryObject) -> Sequence[MetadataFormat]:
        """Every in-process format, plus the linked binary formats whose
        source property is present on `obj`.
        """
        return tuple(
            format
            for format in self._formats.values()
            if isinstance(format, InProcessFormat)
            or obj.has_property(format.source_property)
        )

    def generator_for(self, format: MetadataFormat) -> CrosswalkGenerator | None:
        return self._generators.get(format.prefix)

    def snapshot(self) -> Mapping[str, MetadataFormat]:
        return frozendict(self._formats)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._formats

    def __len__(self) -> int:
        return len(self._formats)

    @classmethod
    def from_configuration(
        cls,
        formats: Iterable[MetadataFormat],
        generators: Mapping[str, CrosswalkGenerator],
    ) -> MetadataFormatRegistry:
        """Build the registry at startup.

        :raises CannotLoadConfiguration: If an in-process format has no
            crosswalk, or a prefix is configured twice.
        """
        registry = cls()
        for format in formats:
            generator = generators.get(format.prefix)
            if isinstance(format, InProcessFormat) and generator is None:
                raise CannotLoadConfiguration(
                    f"No crosswalk is available for metadata format '{format.prefix}'."
                )
            try:
                registry.register(format, generator)
            except ValueError as e:
                raise CannotLoadConfiguration(str(e)) from e
        return registry
