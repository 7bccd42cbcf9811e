from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime

from digirepo.oai.protocol.harvest import HarvestFilter, SearchFilter
from digirepo.oai.store.base import ObjectStore, Page, RepositoryObject, RepositorySet
from digirepo.oai.util.datetime_helpers import to_utc


class InMemoryObjectStore(ObjectStore):
    """An object store holding everything in memory. Objects are always
    listed in path order.
    """

    def __init__(
        self,
        objects: Iterable[RepositoryObject] = (),
        sets: Iterable[RepositorySet] = (),
        binaries: Mapping[str, bytes] | None = None,
    ):
        self._objects: dict[str, RepositoryObject] = {}
        self._sets: dict[str, RepositorySet] = {}
        self._binaries: dict[str, bytes] = dict(binaries or {})
        for obj in objects:
            self.add(obj)
        for repository_set in sets:
            self.add_set(repository_set)

    def add(self, obj: RepositoryObject) -> None:
        self._objects[obj.path] = obj

    def add_set(self, repository_set: RepositorySet) -> None:
        self._sets[repository_set.spec] = repository_set

    def add_binary(self, path: str, content: bytes) -> None:
        self._binaries[path] = content

    def _page(
        self, predicate: Callable[[RepositoryObject], bool], offset: int, limit: int
    ) -> Page[RepositoryObject]:
        matching = [
            obj for _, obj in sorted(self._objects.items()) if predicate(obj)
        ]
        return Page(items=tuple(matching[offset : offset + limit]), total=len(matching))

    def match(self, filter: HarvestFilter) -> Page[RepositoryObject]:
        return self._page(filter.matches, filter.offset, filter.limit)

    def search(self, filter: SearchFilter) -> Page[RepositoryObject]:
        return self._page(filter.matches, filter.offset, filter.limit)

    def find(self, local_name: str) -> RepositoryObject | None:
        for obj in self._objects.values():
            if obj.local_name == local_name:
                return obj
        return None

    def list_sets(self, offset: int, limit: int) -> Page[RepositorySet]:
        sets = [repository_set for _, repository_set in sorted(self._sets.items())]
        return Page(items=tuple(sets[offset : offset + limit]), total=len(sets))

    def earliest_datestamp(self) -> datetime | None:
        if not self._objects:
            return None
        return min(to_utc(obj.last_modified) for obj in self._objects.values())

    def read_binary(self, path: str) -> bytes | None:
        return self._binaries.get(path)
