# pylint: disable=redefined-outer-name
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lab_report.adapters import orm
from lab_report.domain.model import (
    IndividualItem,
    Order,
    PackageDefinition,
    Patient,
    ReferenceData,
    TestDefinition,
    Visit,
    VisitRecord,
)
from lab_report.service_layer.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
def sqlite_session_factory():
    """Create SQLite in-memory database for fast testing."""
    # StaticPool: every session (and the API's worker thread) sees one database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    orm.create_tables(engine)

    yield sessionmaker(bind=engine)

    engine.dispose()


@pytest.fixture
def uow(sqlite_session_factory):
    return SqlAlchemyUnitOfWork(session_factory=sqlite_session_factory)


@pytest.fixture
def load_documents(uow):
    """Insert clinic documents through the repositories and commit."""
    def load(patients=(), visits=(), orders=(), labtests=(), labgroups=()):
        with uow:
            for document in labtests:
                uow.catalog.add_test(document)
            for document in labgroups:
                uow.catalog.add_package(document)
            for document in patients:
                uow.patients.add(document)
            for document in visits:
                uow.visits.add(document)
            for document in orders:
                uow.orders.add(document)
            uow.commit()
    return load


@pytest.fixture
def reference_data():
    """Small catalog snapshot: four tests and two lab groups."""
    tests = (
        TestDefinition(id="t-cbc", code="CBC", name="Complete Blood Count"),
        TestDefinition(id="t-fbs", code="FBS", name="Fasting Blood Sugar"),
        TestDefinition(id="t-chol", code="Cholesterol", name="Total Cholesterol"),
        TestDefinition(id="t-misc", code="X-99", name="Unmapped Test"),
    )
    packages = (
        PackageDefinition(
            id="g-checkup",
            code="PKG-CHECKUP",
            name="Basic Checkup",
            test_ids=("t-cbc", "t-fbs", "t-chol"),
        ),
        PackageDefinition(
            id="g-legacy",
            code="PKG-LIVER",
            name="Liver Panel",
            member_codes=("AST", "ALT", "ALP"),
        ),
    )
    return ReferenceData(test_definitions=tests, package_definitions=packages)


def make_record(*line_item_groups, visit_date=None, visit_number="VN001", patient=None, total_amount=0.0):
    """VisitRecord with one order (linked by number) per group of line items."""
    visit = Visit(
        id=f"visit-{visit_number}",
        visit_number=visit_number,
        patient_id=patient.id if patient else "",
        visit_date=visit_date or datetime(2024, 1, 1, 9, 30),
    )
    orders = [
        Order(
            id=f"order-{visit_number}-{index}",
            visit_number=visit_number,
            total_amount=total_amount,
            line_items=tuple(items),
        )
        for index, items in enumerate(line_item_groups)
    ]
    return VisitRecord(visit=visit, patient=patient, orders_by_number=orders)


@pytest.fixture
def patient():
    return Patient(
        id="p-1",
        ln="LN0001",
        title="นาย",
        first_name="Somchai",
        last_name="Jaidee",
        gender="M",
        age=42,
    )


@pytest.fixture
def cbc_item():
    return IndividualItem(code="CBC", name="Complete Blood Count")


@pytest.fixture
def record_factory():
    return make_record
