"""Join stage - visits in range with their patient and orders."""

import logging
from typing import List, Optional

from lab_report.domain.model import VisitRecord
from lab_report.service_layer.filters import ReportWindow
from lab_report.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def load_visit_records(
    uow: AbstractUnitOfWork,
    window: ReportWindow,
    department: Optional[str] = None,
) -> List[VisitRecord]:
    """
    Fetch visits in the window joined with patient demographics and orders.

    Orders are looked up under both linkage schemes: by visit number (old
    orders) and by visit id (newer orders). The two lists are kept apart;
    an order carrying both links shows up in both.

    Must be called inside an open unit of work.
    """
    visits = uow.visits.list_in_window(window, department)
    logger.info(f"Found {len(visits)} visits between {window.start} and {window.end}")
    if not visits:
        return []

    patients = uow.patients.get_many(visit.patient_id for visit in visits)
    orders_by_number = uow.orders.for_visit_numbers(visit.visit_number for visit in visits)
    orders_by_id = uow.orders.for_visit_ids(visit.id for visit in visits)

    records = []
    for visit in visits:
        patient = patients.get(visit.patient_id)
        if patient is None and visit.patient_id:
            logger.debug(f"Visit {visit.visit_number}: patient {visit.patient_id} not found")
        records.append(
            VisitRecord(
                visit=visit,
                patient=patient,
                orders_by_number=list(orders_by_number.get(visit.visit_number, [])) if visit.visit_number else [],
                orders_by_id=list(orders_by_id.get(visit.id, [])),
            )
        )
    return records
