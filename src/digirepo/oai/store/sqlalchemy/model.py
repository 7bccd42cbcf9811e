from __future__ import annotations

import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    Table,
    Unicode,
)
from sqlalchemy.orm import Mapped, declarative_base, relationship

from digirepo.oai.util.datetime_helpers import utc_now

Base = declarative_base()


item_set_memberships: Table = Table(
    "item_set_memberships",
    Base.metadata,
    Column(
        "item_id",
        Integer,
        ForeignKey("repository_items.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
        primary_key=True,
    ),
    Column(
        "collection_id",
        Integer,
        ForeignKey("collections.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
        primary_key=True,
    ),
)


class Community(Base):
    """A top level grouping of collections."""

    __tablename__ = "communities"
    id: Mapped[int] = Column(Integer, primary_key=True)
    name: Mapped[str] = Column(Unicode, nullable=False)

    collections: Mapped[list[Collection]] = relationship(
        "Collection", back_populates="community"
    )

    def __repr__(self) -> str:
        return f"<Community id={self.id} name={self.name}>"


class Collection(Base):
    """A collection of items. Official collections are exposed as sets."""

    __tablename__ = "collections"
    id: Mapped[int] = Column(Integer, primary_key=True)
    spec: Mapped[str] = Column(Unicode, unique=True, index=True, nullable=False)
    name: Mapped[str | None] = Column(Unicode)
    is_official: Mapped[bool] = Column(Boolean, default=True, nullable=False)

    community_id: Mapped[int | None] = Column(
        Integer, ForeignKey("communities.id"), index=True
    )
    community: Mapped[Community | None] = relationship(
        "Community", back_populates="collections"
    )

    items: Mapped[list[RepositoryItem]] = relationship(
        "RepositoryItem", secondary=item_set_memberships, back_populates="collections"
    )

    def __repr__(self) -> str:
        return f"<Collection id={self.id} spec={self.spec}>"


class RepositoryItem(Base):
    __tablename__ = "repository_items"
    id: Mapped[int] = Column(Integer, primary_key=True)

    # Where the item lives in the repository. Items are always listed in
    # path order.
    path: Mapped[str] = Column(Unicode, unique=True, index=True, nullable=False)

    # The last part of the item's OAI identifier.
    local_name: Mapped[str] = Column(Unicode, unique=True, index=True, nullable=False)

    object_type: Mapped[str | None] = Column(Unicode, index=True)

    # Only public items are ever harvested.
    is_public: Mapped[bool] = Column(Boolean, default=True, nullable=False, index=True)

    created: Mapped[datetime.datetime] = Column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    last_modified: Mapped[datetime.datetime] = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )

    properties: Mapped[list[ItemProperty]] = relationship(
        "ItemProperty",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemProperty.position",
    )
    collections: Mapped[list[Collection]] = relationship(
        "Collection", secondary=item_set_memberships, back_populates="items"
    )

    def __repr__(self) -> str:
        return f"<RepositoryItem id={self.id} path={self.path}>"


class ItemProperty(Base):
    """One value of one property of an item. Multi-valued properties
    have one row per value.
    """

    __tablename__ = "item_properties"
    id: Mapped[int] = Column(Integer, primary_key=True)
    item_id: Mapped[int] = Column(
        Integer,
        ForeignKey("repository_items.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    item: Mapped[RepositoryItem] = relationship(
        "RepositoryItem", back_populates="properties"
    )
    name: Mapped[str] = Column(Unicode, index=True, nullable=False)
    value: Mapped[str] = Column(Unicode, nullable=False)
    position: Mapped[int] = Column(Integer, default=0, nullable=False)


class Binary(Base):
    """Stored content, such as a pre-generated metadata document."""

    __tablename__ = "binaries"
    id: Mapped[int] = Column(Integer, primary_key=True)
    path: Mapped[str] = Column(Unicode, unique=True, index=True, nullable=False)
    content: Mapped[bytes] = Column(LargeBinary, nullable=False)
