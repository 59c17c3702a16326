import logging
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine for one relational store and hands out sessions."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        # check_same_thread is needed for SQLite, remove for PostgreSQL
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, echo=echo, connect_args=connect_args)

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    def create_all(self) -> None:
        SQLModel.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        SQLModel.metadata.drop_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unit of work: everything done with the yielded session is committed
        together when the block exits, or rolled back if it raises.
        """
        with Session(self.engine) as session:
            with session.begin():
                yield session

    def dispose(self) -> None:
        self.engine.dispose()
        logger.debug(f"Disposed engine for {self.engine.url!r}")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    logger.debug("Database connection established")
