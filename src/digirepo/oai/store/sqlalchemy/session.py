from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import Pool, StaticPool

from digirepo.oai.store.sqlalchemy.model import Base
from digirepo.oai.util.json import json_serializer
from digirepo.oai.util.log import LoggerMixin, elapsed_time_logging

DEBUG = False


class SessionManager(LoggerMixin):
    @classmethod
    def engine(
        cls,
        url: str,
        poolclass: type[Pool] | None = None,
        pool_pre_ping: bool = True,
    ) -> Engine:
        connect_args: dict[str, object] = {}
        if url in ("sqlite://", "sqlite:///:memory:") and poolclass is None:
            # Each connection to an in-memory database gets its own empty
            # database, so every thread has to share one connection.
            poolclass = StaticPool
            connect_args["check_same_thread"] = False
        return create_engine(
            url,
            connect_args=connect_args,
            echo=DEBUG,
            json_serializer=json_serializer,
            pool_pre_ping=pool_pre_ping,
            poolclass=poolclass,
        )

    @classmethod
    def sessionmaker(cls, engine: Engine) -> sessionmaker[Session]:
        return sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def initialize_schema(cls, engine: Engine) -> None:
        """Initialize the database schema."""
        with elapsed_time_logging(
            log_method=cls.logger().info,
            message_prefix=f"Initializing schema on {engine.url}",
        ):
            Base.metadata.create_all(engine)
