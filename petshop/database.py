# petshop/database.py
import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, Set, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from petshop.errors import StorageError
from petshop.utils.live import ChangeNotifier, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")

Base = declarative_base()

PENDING_KEY = "pending_changes"
COMMITTED_KEY = "committed_changes"


def normalize_url(url: str) -> str:
    # SQLAlchemy requires the postgresql:// scheme
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _changed_tables(session: Session) -> Set[str]:
    tables = set()
    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        table = getattr(obj, "__table__", None)
        if table is not None:
            tables.add(table.name)
    return tables


def _on_after_flush(session, flush_context):
    session.info.setdefault(PENDING_KEY, set()).update(_changed_tables(session))


def _on_after_commit(session):
    pending = session.info.pop(PENDING_KEY, set())
    session.info.setdefault(COMMITTED_KEY, set()).update(pending)


def _on_after_rollback(session):
    session.info.pop(PENDING_KEY, None)


class Store:
    """Local relational store: engine, session factory and change feed.

    Build one per process at startup and hand it to the services.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.url = normalize_url(database_url)
        engine_kwargs = {"echo": echo}

        # SQLite-only connection settings
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.url or self.url.rstrip("/") == "sqlite:":
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.url, **engine_kwargs)

        if self.engine.dialect.name == "sqlite":
            # Cascading deletes rely on the FK pragma being on for every connection
            @event.listens_for(self.engine, "connect")
            def receive_connect(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine)
        event.listen(self.SessionLocal, "after_flush", _on_after_flush)
        event.listen(self.SessionLocal, "after_commit", _on_after_commit)
        event.listen(self.SessionLocal, "after_rollback", _on_after_rollback)

        import petshop.models  # noqa: F401  registers every table on Base

        self.notifier = ChangeNotifier()
        self._dependents = self._cascade_dependents()

    def init_db(self):
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready at %s", self.engine.url.render_as_string(hide_password=True))

    def dispose(self):
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            changed = db.info.pop(COMMITTED_KEY, set())
            db.close()
            if changed:
                self.notifier.publish(self.expand_changes(changed))

    def read(self, query: Callable[[Session], T]) -> T:
        try:
            with self.session() as db:
                return query(db)
        except SQLAlchemyError as e:
            logger.error("Store read failed: %s", e)
            raise StorageError(str(e)) from e

    def watch(self, tables: Iterable[str], query: Callable[[Session], T], callback: Callable[[T], None]) -> Subscription:
        """Run ``query`` now and again after every commit touching ``tables``."""

        def refresh():
            callback(self.read(query))

        sub = self.notifier.subscribe(tables, refresh)
        try:
            refresh()
        except Exception:
            sub.cancel()
            raise
        return sub

    # Tables whose rows the database itself rewrites when a parent row goes away
    def _cascade_dependents(self) -> Dict[str, Set[str]]:
        direct: Dict[str, Set[str]] = {}
        for table in Base.metadata.tables.values():
            for fk in table.foreign_keys:
                if fk.ondelete and fk.ondelete.upper() in ("CASCADE", "SET NULL"):
                    direct.setdefault(fk.column.table.name, set()).add(table.name)
        return direct

    def expand_changes(self, tables: Set[str]) -> Set[str]:
        result = set(tables)
        stack = list(tables)
        while stack:
            for child in self._dependents.get(stack.pop(), ()):
                if child not in result:
                    result.add(child)
                    stack.append(child)
        return result
