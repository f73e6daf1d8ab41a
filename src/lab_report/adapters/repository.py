import abc
import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import and_, insert, or_, select

from lab_report.adapters import orm
from lab_report.adapters.documents import (
    DocumentParseError,
    _text,
    document_id,
    parse_order,
    parse_package_definition,
    parse_patient,
    parse_test_definition,
    parse_visit,
    split_visit_date,
    to_json_document,
)
from lab_report.domain.model import Order, PackageDefinition, Patient, TestDefinition, Visit

logger = logging.getLogger(__name__)


def _new_id(document: Mapping[str, Any]) -> str:
    return document_id(document) or uuid.uuid4().hex


class AbstractVisitRepository(abc.ABC):
    def add(self, document: Mapping[str, Any]) -> str:
        return self._add(document)

    def list_in_window(self, window, department: Optional[str] = None) -> List[Visit]:
        """Visits inside the report window, optionally for one department."""
        return self._list_in_window(window, department)

    @abc.abstractmethod
    def _add(self, document: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def _list_in_window(self, window, department: Optional[str]) -> List[Visit]:
        raise NotImplementedError


class AbstractPatientRepository(abc.ABC):
    def add(self, document: Mapping[str, Any]) -> str:
        return self._add(document)

    def get_many(self, patient_ids: Iterable[str]) -> Dict[str, Patient]:
        wanted = sorted({patient_id for patient_id in patient_ids if patient_id})
        if not wanted:
            return {}
        return self._get_many(wanted)

    @abc.abstractmethod
    def _add(self, document: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def _get_many(self, patient_ids: List[str]) -> Dict[str, Patient]:
        raise NotImplementedError


class AbstractOrderRepository(abc.ABC):
    def add(self, document: Mapping[str, Any]) -> str:
        return self._add(document)

    def for_visit_numbers(self, visit_numbers: Iterable[str]) -> Dict[str, List[Order]]:
        """Orders linked through the old visit-number scheme."""
        wanted = sorted({number for number in visit_numbers if number})
        if not wanted:
            return {}
        return self._for_visit_numbers(wanted)

    def for_visit_ids(self, visit_ids: Iterable[str]) -> Dict[str, List[Order]]:
        """Orders linked directly to the visit id."""
        wanted = sorted({visit_id for visit_id in visit_ids if visit_id})
        if not wanted:
            return {}
        return self._for_visit_ids(wanted)

    @abc.abstractmethod
    def _add(self, document: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def _for_visit_numbers(self, visit_numbers: List[str]) -> Dict[str, List[Order]]:
        raise NotImplementedError

    @abc.abstractmethod
    def _for_visit_ids(self, visit_ids: List[str]) -> Dict[str, List[Order]]:
        raise NotImplementedError


class AbstractCatalogRepository(abc.ABC):
    def add_test(self, document: Mapping[str, Any]) -> str:
        return self._add_test(document)

    def add_package(self, document: Mapping[str, Any]) -> str:
        return self._add_package(document)

    def list_tests(self) -> List[TestDefinition]:
        return self._list_tests()

    def list_packages(self) -> List[PackageDefinition]:
        return self._list_packages()

    @abc.abstractmethod
    def _add_test(self, document: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def _add_package(self, document: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def _list_tests(self) -> List[TestDefinition]:
        raise NotImplementedError

    @abc.abstractmethod
    def _list_packages(self) -> List[PackageDefinition]:
        raise NotImplementedError


def _parse_rows(rows, parser, collection: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(parser(row))
        except DocumentParseError as e:
            logger.warning(f"Skipping unreadable {collection} record: {e}")
    return parsed


class SqlAlchemyVisitRepository(AbstractVisitRepository):
    def __init__(self, session):
        self.session = session

    def _add(self, document):
        visit_id = _new_id(document)
        visit_date, visit_date_text = split_visit_date(document.get("visitDate") or document.get("date"))
        self.session.execute(
            insert(orm.visits).values(
                id=visit_id,
                visit_number=_text(document.get("visitNumber")) or None,
                patient_id=str(document.get("patientId") or "") or None,
                department=document.get("department"),
                visit_date=visit_date,
                visit_date_text=visit_date_text,
                document=to_json_document(dict(document, _id=visit_id)),
            )
        )
        return visit_id

    def _list_in_window(self, window, department):
        visits = orm.visits
        stmt = select(visits.c.visit_date, visits.c.document).where(
            or_(
                and_(visits.c.visit_date >= window.start, visits.c.visit_date <= window.end),
                and_(visits.c.visit_date_text >= window.start_text, visits.c.visit_date_text <= window.end_text),
            )
        )
        if department is not None:
            stmt = stmt.where(visits.c.department == department)
        stmt = stmt.order_by(visits.c.visit_number, visits.c.id)

        def parse(row):
            document = row.document
            if isinstance(document, Mapping) and row.visit_date is not None:
                document = dict(document)
                document["visitDate"] = row.visit_date
            return parse_visit(document)

        return _parse_rows(self.session.execute(stmt), parse, "visit")


class SqlAlchemyPatientRepository(AbstractPatientRepository):
    def __init__(self, session):
        self.session = session

    def _add(self, document):
        patient_id = _new_id(document)
        self.session.execute(
            insert(orm.patients).values(id=patient_id, document=to_json_document(dict(document, _id=patient_id)))
        )
        return patient_id

    def _get_many(self, patient_ids):
        stmt = select(orm.patients.c.document).where(orm.patients.c.id.in_(patient_ids))
        patients = _parse_rows(
            (row.document for row in self.session.execute(stmt)), parse_patient, "patient"
        )
        return {patient.id: patient for patient in patients}


class SqlAlchemyOrderRepository(AbstractOrderRepository):
    def __init__(self, session):
        self.session = session

    def _add(self, document):
        order = parse_order(document)
        order_id = order.id or uuid.uuid4().hex
        self.session.execute(
            insert(orm.orders).values(
                id=order_id,
                visit_id=order.visit_id,
                visit_number=order.visit_number,
                status=order.status,
                total_amount=order.total_amount,
                order_date=order.order_date,
                document=to_json_document(dict(document, _id=order_id)),
            )
        )
        return order_id

    def _matching(self, column, keys) -> List[Order]:
        stmt = select(orm.orders.c.document).where(column.in_(keys)).order_by(orm.orders.c.id)
        return _parse_rows((row.document for row in self.session.execute(stmt)), parse_order, "order")

    def _for_visit_numbers(self, visit_numbers):
        grouped = defaultdict(list)
        for order in self._matching(orm.orders.c.visit_number, visit_numbers):
            grouped[order.visit_number].append(order)
        return dict(grouped)

    def _for_visit_ids(self, visit_ids):
        grouped = defaultdict(list)
        for order in self._matching(orm.orders.c.visit_id, visit_ids):
            grouped[order.visit_id].append(order)
        return dict(grouped)


class SqlAlchemyCatalogRepository(AbstractCatalogRepository):
    def __init__(self, session):
        self.session = session

    def _insert(self, table, document) -> str:
        record_id = _new_id(document)
        self.session.execute(
            insert(table).values(id=record_id, document=to_json_document(dict(document, _id=record_id)))
        )
        return record_id

    def _add_test(self, document):
        return self._insert(orm.lab_tests, document)

    def _add_package(self, document):
        return self._insert(orm.lab_groups, document)

    def _documents(self, table):
        return (row.document for row in self.session.execute(select(table.c.document).order_by(table.c.id)))

    def _list_tests(self):
        return _parse_rows(self._documents(orm.lab_tests), parse_test_definition, "lab test")

    def _list_packages(self):
        return _parse_rows(self._documents(orm.lab_groups), parse_package_definition, "lab group")
