from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from frozendict import frozendict
from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from digirepo.oai.protocol.harvest import HarvestFilter, SearchFilter
from digirepo.oai.store.base import ObjectStore, Page, RepositoryObject, RepositorySet
from digirepo.oai.store.sqlalchemy.model import (
    Binary,
    Collection,
    ItemProperty,
    RepositoryItem,
)
from digirepo.oai.util.datetime_helpers import to_utc
from digirepo.oai.util.log import LoggerMixin


class SqlAlchemyObjectStore(ObjectStore, LoggerMixin):
    """An object store backed by a relational database.

    Every call uses its own session, so one store can serve concurrent
    requests.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @staticmethod
    def _public_items() -> Select[tuple[RepositoryItem]]:
        return select(RepositoryItem).where(RepositoryItem.is_public.is_(True))

    @staticmethod
    def to_repository_object(item: RepositoryItem) -> RepositoryObject:
        properties: defaultdict[str, list[str]] = defaultdict(list)
        for item_property in item.properties:
            properties[item_property.name].append(item_property.value)
        return RepositoryObject(
            path=item.path,
            local_name=item.local_name,
            last_modified=to_utc(item.last_modified),
            object_type=item.object_type,
            set_specs=tuple(
                sorted(
                    collection.spec
                    for collection in item.collections
                    if collection.is_official
                )
            ),
            properties=frozendict(
                {name: tuple(values) for name, values in properties.items()}
            ),
        )

    def _page(
        self, query: Select[tuple[RepositoryItem]], offset: int, limit: int
    ) -> Page[RepositoryObject]:
        with self.session_factory() as session:
            total = session.scalar(
                select(func.count()).select_from(query.order_by(None).subquery())
            )
            items = session.scalars(
                query.options(
                    selectinload(RepositoryItem.properties),
                    selectinload(RepositoryItem.collections),
                )
                .order_by(RepositoryItem.path)
                .offset(offset)
                .limit(limit)
            ).all()
            return Page(
                items=tuple(self.to_repository_object(item) for item in items),
                total=total or 0,
            )

    def match(self, filter: HarvestFilter) -> Page[RepositoryObject]:
        query = self._public_items()
        if filter.from_ is not None:
            query = query.where(RepositoryItem.last_modified >= filter.from_)
        if (until_exclusive := filter.until_exclusive) is not None:
            query = query.where(RepositoryItem.last_modified < until_exclusive)
        if filter.set_spec:
            query = query.where(
                RepositoryItem.collections.any(
                    and_(
                        Collection.spec == filter.set_spec,
                        Collection.is_official.is_(True),
                    )
                )
            )
        if filter.object_type is not None:
            query = query.where(RepositoryItem.object_type == filter.object_type)
        return self._page(query, filter.offset, filter.limit)

    def search(self, filter: SearchFilter) -> Page[RepositoryObject]:
        criterion = filter.criterion
        query = self._public_items().where(
            RepositoryItem.properties.any(
                and_(
                    ItemProperty.name == criterion.property,
                    ItemProperty.value.contains(criterion.value, autoescape=True),
                )
            )
        )
        if filter.object_type is not None:
            query = query.where(RepositoryItem.object_type == filter.object_type)
        return self._page(query, filter.offset, filter.limit)

    def find(self, local_name: str) -> RepositoryObject | None:
        with self.session_factory() as session:
            item = session.scalars(
                self._public_items()
                .where(RepositoryItem.local_name == local_name)
                .options(
                    selectinload(RepositoryItem.properties),
                    selectinload(RepositoryItem.collections),
                )
            ).one_or_none()
            if item is None:
                return None
            return self.to_repository_object(item)

    def list_sets(self, offset: int, limit: int) -> Page[RepositorySet]:
        query = select(Collection).where(Collection.is_official.is_(True))
        with self.session_factory() as session:
            total = session.scalar(
                select(func.count()).select_from(query.subquery())
            )
            collections = session.scalars(
                query.options(selectinload(Collection.community))
                .order_by(Collection.spec)
                .offset(offset)
                .limit(limit)
            ).all()
            return Page(
                items=tuple(
                    RepositorySet(
                        spec=collection.spec,
                        name=collection.name,
                        community_name=(
                            collection.community.name if collection.community else None
                        ),
                    )
                    for collection in collections
                ),
                total=total or 0,
            )

    def earliest_datestamp(self) -> datetime | None:
        with self.session_factory() as session:
            earliest = session.scalar(
                select(func.min(RepositoryItem.last_modified)).where(
                    RepositoryItem.is_public.is_(True)
                )
            )
        return to_utc(earliest)

    def read_binary(self, path: str) -> bytes | None:
        with self.session_factory() as session:
            return session.scalar(select(Binary.content).where(Binary.path == path))
