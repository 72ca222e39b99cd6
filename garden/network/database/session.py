import time
from contextvars import ContextVar
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session as SqlAlchemySession
from sqlalchemy.pool import StaticPool

from garden import settings


def create_db_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    engine_kwargs: Dict[str, Any] = {'pool_pre_ping': True}

    if url.get_backend_name() == 'sqlite':
        # Sync routes run in a threadpool so connections cross threads
        engine_kwargs['connect_args'] = {'check_same_thread': False}
        if url.database in (None, '', ':memory:'):
            # One shared connection or every session sees an empty database
            engine_kwargs['poolclass'] = StaticPool
    else:
        engine_kwargs['connect_args'] = {'connect_timeout': 10}

    return create_engine(url, **engine_kwargs)


engine = create_db_engine(settings.DATABASE_URL)
_session_maker = sessionmaker(autocommit=False, autoflush=False, bind=engine)

if settings.DB_LOG_STATEMENTS:

    @event.listens_for(Engine, 'before_cursor_execute')
    def before_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool
    ) -> None:
        conn.info.setdefault('query_start_time', []).append(time.time())
        logger.info(f'Start Query: {statement} {parameters}')

    @event.listens_for(Engine, 'after_cursor_execute')
    def after_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool
    ) -> None:
        total = time.time() - conn.info['query_start_time'].pop(-1)
        logger.info(f'Query Time: {total}')


# Should be thread safe as well as coroutine safe!
_session_storage: ContextVar[SqlAlchemySession | None] = ContextVar('_session_storage', default=None)


class SessionNotAvailable(Exception):
    def __init__(self) -> None:
        msg = """
        Either you are not currently in a request context, or you need to manually
        create a session context by using a `db` instance as a context manager e.g.:
        with db():
            db.session.execute(Select(User))
        """
        super().__init__(msg)


class SessionManagerMeta(type):
    """
    Access session as a property on context manager
    without having to init
    """

    @property
    def session(self) -> SqlAlchemySession:
        session = _session_storage.get()
        if session is None:
            raise SessionNotAvailable

        return session


class SessionManager(metaclass=SessionManagerMeta):
    def __init__(
        self,
        session_kwargs: Dict[str, Any] | None = None,
        commit_on_success: bool = False,
    ):
        self.session_token: Optional[Any] = None
        self.session_kwargs = session_kwargs or {}
        self.commit_on_success = commit_on_success

    def enter(self) -> Any:
        # Nested managers share the outer session and leave commit to it
        if _session_storage.get() is None:
            session = _session_maker(**self.session_kwargs)
            self.session_token = _session_storage.set(session)

        return type(self)

    def cleanup(self) -> None:
        if self.session_token is None:
            return
        session = _session_storage.get()
        if session is not None:
            session.close()
        _session_storage.reset(self.session_token)
        self.session_token = None

    def __enter__(self) -> Any:
        return self.enter()

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        session = _session_storage.get()
        is_owner = self.session_token is not None

        if session is not None and is_owner:
            if self.commit_on_success and exc_type is None:
                session.commit()
            else:
                session.rollback()

        self.cleanup()


# This is what external callers should access!
db: SessionManagerMeta = SessionManager
