"""Matrix builder - one row of test flags per visit."""

import logging
from collections import Counter
from typing import Optional

from lab_report.domain.model import ReportRow, VisitRecord
from lab_report.domain.resolver import LineItemResolver

logger = logging.getLogger(__name__)

MALE = "ชาย"
FEMALE = "หญิง"

GENDER_SYNONYMS = {
    "male": MALE,
    "m": MALE,
    MALE: MALE,
    "female": FEMALE,
    "f": FEMALE,
    FEMALE: FEMALE,
}


def normalize_gender(gender: Optional[str]) -> str:
    """Map recognised gender spellings to the two display values."""
    if not gender:
        return ""
    return GENDER_SYNONYMS.get(gender.strip().lower(), gender)


class MatrixBuilder:
    """
    Builds report rows and remembers which line items resolved to nothing.

    Flags are only ever set, so an order reached through both linkage
    schemes does not change the row.
    """

    def __init__(self, resolver: LineItemResolver):
        self.resolver = resolver
        self.unresolved = Counter()

    def build(self, record: VisitRecord) -> ReportRow:
        lab_tests = self.resolver.catalog.empty_matrix()

        for order in record.orders:
            for item in order.line_items:
                columns = self.resolver.resolve(item)
                if not columns:
                    self.unresolved[item.descriptor or "<blank>"] += 1
                for column in columns:
                    lab_tests[column] = True

        visit = record.visit
        patient = record.patient
        return ReportRow(
            visit_number=visit.visit_number,
            ln=patient.ln if patient else "",
            title=patient.title if patient else "",
            first_name=patient.first_name if patient else "",
            last_name=patient.last_name if patient else "",
            gender=normalize_gender(patient.gender if patient else ""),
            age=patient.age if patient else "",
            height=visit.height,
            rights=visit.patient_rights,
            lab_tests=lab_tests,
        )
