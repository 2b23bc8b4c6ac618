"""SQLAlchemy-backed unit of work for claim imports and revalidation cycles.

The adapter owns one engine per process. :func:`startup` binds it (creating the
schema on first use) and every :class:`SqlAlchemyUnitOfWork` opens a fresh
session from it. A unit of work that leaves its ``with`` block without
``commit()`` discards its changes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from claimtrack.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from claimtrack.adapters.sqlalchemy.repositories import (
    SqlAlchemyBatchRecordRepository,
    SqlAlchemyClaimRepository,
    SqlAlchemyCycleRecordRepository,
)
from claimtrack.config.storage import get_database_config
from claimtrack.domain.ports.unit_of_work import ClaimRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when claim storage is used before startup() or outside an open unit of work."""


class _Binding:
    """Engine plus the session factory derived from it."""

    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    @classmethod
    def bind(cls, engine: Engine) -> None:
        if cls.engine is not None and cls.engine is not engine:
            cls.engine.dispose()
        cls.engine = engine
        # loaded claims keep their state after commit
        cls.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def unbind(cls) -> None:
        if cls.engine is not None:
            cls.engine.dispose()
        cls.engine = None
        cls.sessions = None

    @classmethod
    def open_session(cls) -> Session:
        if cls.sessions is None:
            raise StartupError(
                "Claim storage is not started; call "
                "claimtrack.adapters.sqlalchemy.startup() first."
            )
        return cls.sessions()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the claim store to ``engine`` (or one built from configuration).

    Mappers are configured and missing tables created. Calling this twice raises
    ``StartupError`` unless ``force`` is set, in which case the previous engine
    is disposed.
    """

    if _Binding.engine is not None and not force:
        raise StartupError("Claim storage already started; pass force=True to rebind.")

    if engine is None:
        config = get_database_config()
        engine = create_engine(database_uri or config.uri, echo=config.echo)
    start_mappers()
    create_all_tables(engine)
    _Binding.bind(engine)
    log.info("Claim storage bound to %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _Binding.engine


def is_started() -> bool:
    return _Binding.engine is not None


def shutdown() -> None:
    """Dispose the engine; a later :func:`startup` may bind a new one."""

    _Binding.unbind()


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session per ``with`` block; subclasses decide which repositories it serves."""

    def __init__(self) -> None:
        if not is_started():
            raise StartupError("Claim storage is not started")
        self._session: Session | None = None
        self._repositories: TRepositories | None = None
        self.committed = False

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _Binding.open_session()
        self._repositories = self._build_repositories(self._session)
        self.committed = False
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                log.debug("Rolling back unit of work after %s", exc_type.__name__)
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()
        self.committed = True

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session


class SqlAlchemyUnitOfWork(BaseSqlAlchemyUnitOfWork[ClaimRepositories]):
    """Claims, batch records and revalidation cycles sharing one session."""

    def _build_repositories(self, session: Session) -> ClaimRepositories:
        return ClaimRepositories(
            claims=SqlAlchemyClaimRepository(session),
            batches=SqlAlchemyBatchRecordRepository(session),
            cycles=SqlAlchemyCycleRecordRepository(session),
        )


if TYPE_CHECKING:
    from claimtrack.domain.ports.unit_of_work import ClaimUnitOfWork

    _uow_check: ClaimUnitOfWork = SqlAlchemyUnitOfWork()
