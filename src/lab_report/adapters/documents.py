"""Document parser - reconcile historical record shapes into domain objects."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from lab_report.domain.model import (
    PACKAGE,
    EmbeddedPackageItem,
    IndividualItem,
    LineItem,
    Order,
    PackageDefinition,
    PackageMember,
    PackageReference,
    Patient,
    ReferencedPackageItem,
    TestDefinition,
    Visit,
)

logger = logging.getLogger(__name__)


class DocumentParseError(Exception):
    """Raised when a stored document cannot be read at all."""
    pass


def _require_mapping(document: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(document, Mapping):
        raise DocumentParseError(f"{kind} document is not a mapping: {type(document).__name__}")
    return document


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric amount {value!r}")
        return 0.0


def document_id(document: Mapping[str, Any]) -> str:
    """Stringified record id; stores used both `_id` and `id`."""
    return _text(document.get("_id") or document.get("id"))


def _first(document: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = document.get(key)
        if value:
            return value
    return None


def _timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def parse_test_definition(document: Any) -> TestDefinition:
    document = _require_mapping(document, "Lab test")
    return TestDefinition(
        id=document_id(document),
        code=_text(document.get("code")),
        name=_text(document.get("name")),
        category=_text(document.get("category")),
        price=_number(document.get("price")),
    )


def parse_package_definition(document: Any) -> PackageDefinition:
    document = _require_mapping(document, "Lab group")
    test_ids = _first(document, "labTests", "testIds")
    if not isinstance(test_ids, list):
        test_ids = []
    legacy_tests = document.get("tests")
    if not isinstance(legacy_tests, list):
        legacy_tests = []
    return PackageDefinition(
        id=document_id(document),
        code=_text(document.get("code")),
        name=_text(document.get("name")),
        price=_number(document.get("price")),
        test_ids=tuple(_text(test_id) for test_id in test_ids if test_id),
        member_codes=tuple(
            _text(test.get("code"))
            for test in legacy_tests
            if isinstance(test, Mapping) and test.get("code")
        ),
    )


def parse_patient(document: Any) -> Patient:
    document = _require_mapping(document, "Patient")
    age = document.get("age")
    if age is None:
        age = ""
    elif isinstance(age, bool) or not isinstance(age, (int, float, str)):
        age = _text(age)
    return Patient(
        id=document_id(document),
        ln=_text(document.get("ln")),
        title=_text(document.get("title")),
        first_name=_text(document.get("firstName")),
        last_name=_text(document.get("lastName")),
        gender=_text(document.get("gender")),
        age=age,
    )


def split_visit_date(value: Any) -> Tuple[Optional[datetime], Optional[str]]:
    """Split a stored visit date into (timestamp, legacy text) - one is None."""
    if isinstance(value, datetime):
        return value, None
    if value:
        return None, _text(value)
    return None, None


def parse_visit(document: Any) -> Visit:
    document = _require_mapping(document, "Visit")
    visit_date, visit_date_text = split_visit_date(_first(document, "visitDate", "date"))
    vital_signs = document.get("vitalSigns")
    height = document.get("height")
    if not height and isinstance(vital_signs, Mapping):
        height = vital_signs.get("height")
    return Visit(
        id=document_id(document),
        visit_number=_text(document.get("visitNumber")),
        patient_id=_text(document.get("patientId")),
        department=_text(document.get("department")),
        visit_date=visit_date,
        visit_date_text=visit_date_text,
        height=_text(height),
        patient_rights=_text(document.get("patientRights")),
    )


def _parse_members(raw_members: Any) -> Tuple[PackageMember, ...]:
    if not isinstance(raw_members, list):
        return ()
    return tuple(
        PackageMember(
            code=_text(_first(member, "code", "testCode")),
            name=_text(_first(member, "name", "testName")),
        )
        for member in raw_members
        if isinstance(member, Mapping)
    )


def parse_line_item(document: Any) -> LineItem:
    """
    Parse one order line item into its tagged variant.

    Old orders stored `code`/`name`, some stored `testCode`/`testName`;
    `type` is missing on the oldest records and then means individual.
    """
    document = _require_mapping(document, "Line item")
    code = _text(_first(document, "code", "testCode"))
    name = _text(_first(document, "name", "testName"))
    test_id = _text(document.get("testId"))
    price = _number(document.get("price"))
    kind = _text(_first(document, "type", "kind")).lower()

    if kind != PACKAGE:
        return IndividualItem(code=code, name=name, test_id=test_id, price=price)

    members = _parse_members(_first(document, "individualTests", "embeddedMembers", "tests"))
    if members:
        return EmbeddedPackageItem(code=code, name=name, test_id=test_id, price=price, members=members)

    details = _first(document, "groupDetails", "packageReference")
    if isinstance(details, Mapping):
        reference = PackageReference(
            id=document_id(details),
            code=_text(details.get("code")),
            name=_text(details.get("name")),
        )
    else:
        reference = PackageReference(id=test_id, code=code, name=name)
    return ReferencedPackageItem(code=code, name=name, test_id=test_id, price=price, reference=reference)


def _raw_line_items(document: Mapping[str, Any]) -> List[Any]:
    items = document.get("items")
    if isinstance(items, list) and items:
        return items
    lab_orders = document.get("labOrders")
    if isinstance(lab_orders, list):
        return lab_orders
    return items if isinstance(items, list) else []


def parse_order(document: Any) -> Order:
    document = _require_mapping(document, "Order")
    order_id = document_id(document)

    line_items = []
    for raw_item in _raw_line_items(document):
        try:
            line_items.append(parse_line_item(raw_item))
        except DocumentParseError as e:
            logger.warning(f"Skipping line item of order {order_id}: {e}")

    order_date = _timestamp(_first(document, "orderDate", "createdAt"))
    return Order(
        id=order_id,
        visit_id=_text(document.get("visitId")) or None,
        visit_number=_text(document.get("visitNumber")) or None,
        status=_text(document.get("status")),
        total_amount=_number(document.get("totalAmount")),
        order_date=order_date,
        line_items=tuple(line_items),
    )


def to_json_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a document with timestamps rendered as ISO strings."""
    def convert(value):
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Mapping):
            return {key: convert(inner) for key, inner in value.items()}
        if isinstance(value, (list, tuple)):
            return [convert(inner) for inner in value]
        return value

    return convert(document)
