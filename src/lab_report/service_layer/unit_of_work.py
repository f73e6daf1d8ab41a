# pylint: disable=attribute-defined-outside-init
from __future__ import annotations
import abc
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session


import config
from lab_report.adapters import repository


class AbstractUnitOfWork(abc.ABC):
    visits: repository.AbstractVisitRepository
    patients: repository.AbstractPatientRepository
    orders: repository.AbstractOrderRepository
    catalog: repository.AbstractCatalogRepository

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(self, *args):
        self.rollback()

    def commit(self):
        self._commit()

    @abc.abstractmethod
    def _commit(self):
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self):
        raise NotImplementedError


DEFAULT_SESSION_FACTORY = sessionmaker(
    bind=create_engine(
        config.get_postgres_uri(),
        isolation_level="REPEATABLE READ",
    )
)


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    One database session per report.

    Reports only read; leaving the block always rolls back. `commit` exists
    for the seeding tool and tests that load documents.
    """

    def __init__(self, session_factory=DEFAULT_SESSION_FACTORY):
        self.session_factory = session_factory

    def __enter__(self):
        self.session = self.session_factory()  # type: Session
        self.visits = repository.SqlAlchemyVisitRepository(self.session)
        self.patients = repository.SqlAlchemyPatientRepository(self.session)
        self.orders = repository.SqlAlchemyOrderRepository(self.session)
        self.catalog = repository.SqlAlchemyCatalogRepository(self.session)
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)
        self.session.close()

    def _commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
