from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from frozendict import frozendict

if TYPE_CHECKING:
    from digirepo.oai.protocol.harvest import HarvestFilter, SearchFilter


@dataclass(frozen=True)
class RepositoryObject:
    """A public object of the repository, as seen by the provider."""

    path: str
    local_name: str
    last_modified: datetime
    object_type: str | None = None
    set_specs: tuple[str, ...] = ()
    properties: frozendict[str, tuple[str, ...]] = field(default_factory=frozendict)

    def has_property(self, name: str | None) -> bool:
        return bool(name) and bool(self.properties.get(name))

    def values(self, name: str) -> tuple[str, ...]:
        return self.properties.get(name, ())

    def first(self, name: str) -> str | None:
        values = self.values(name)
        return values[0] if values else None


@dataclass(frozen=True)
class RepositorySet:
    spec: str
    name: str | None = None
    community_name: str | None = None

    @property
    def display_name(self) -> str:
        if self.community_name and self.name:
            return f"{self.community_name} / {self.name}"
        return self.name or ""


@dataclass(frozen=True)
class Page[T]:
    """One page of results and the size of the whole result list."""

    items: Sequence[T]
    total: int

    def __len__(self) -> int:
        return len(self.items)


class ObjectStore(ABC):
    """The repository the provider exposes.

    Implementations only return public objects, and must return the same
    order for the same filter on every call, since resumption depends on it.
    """

    @abstractmethod
    def match(self, filter: HarvestFilter) -> Page[RepositoryObject]:
        """Return the page of objects matching a selective harvesting filter."""

    @abstractmethod
    def search(self, filter: SearchFilter) -> Page[RepositoryObject]:
        """Return the page of objects with a property value containing the
        criterion's value.
        """

    @abstractmethod
    def find(self, local_name: str) -> RepositoryObject | None: ...

    @abstractmethod
    def list_sets(self, offset: int, limit: int) -> Page[RepositorySet]: ...

    @abstractmethod
    def earliest_datestamp(self) -> datetime | None:
        """The oldest modification time of any object, or None if there are none."""

    @abstractmethod
    def read_binary(self, path: str) -> bytes | None: ...
