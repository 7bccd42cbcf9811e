from dependency_injector import providers
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Provider
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from digirepo.oai.store.base import ObjectStore
from digirepo.oai.store.sqlalchemy.session import SessionManager
from digirepo.oai.store.sqlalchemy.store import SqlAlchemyObjectStore


class StoreContainer(DeclarativeContainer):
    config = providers.Configuration()

    engine: Provider[Engine] = providers.Singleton(
        SessionManager.engine,
        url=config.database_url,
        pool_pre_ping=config.pool_pre_ping,
    )

    session_factory: Provider[sessionmaker[Session]] = providers.Singleton(
        SessionManager.sessionmaker, engine=engine
    )

    object_store: Provider[ObjectStore] = providers.Singleton(
        SqlAlchemyObjectStore, session_factory=session_factory
    )
