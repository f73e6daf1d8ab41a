"""
Lab report domain model.

Read-only views of the clinic's stored records (tests, packages, patients,
visits, orders) plus the derived report types. Nothing here is persisted
by the report.
"""
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Dict, List, Optional, Tuple, Union

INDIVIDUAL = "individual"
PACKAGE = "package"

# Last representable millisecond of a calendar day
END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class TestDefinition:
    """A single orderable lab test from the test catalog."""
    __test__ = False

    id: str
    code: str
    name: str
    category: str = ""
    price: float = 0.0


@dataclass(frozen=True)
class PackageDefinition:
    """A priced bundle of tests (a "lab group")."""
    id: str
    code: str
    name: str
    price: float = 0.0
    test_ids: Tuple[str, ...] = ()
    member_codes: Tuple[str, ...] = ()  # legacy groups embedded member codes

    @property
    def member_count(self) -> int:
        return len(self.test_ids) or len(self.member_codes)


@dataclass(frozen=True)
class PackageMember:
    code: str = ""
    name: str = ""


@dataclass(frozen=True)
class PackageReference:
    id: str = ""
    code: str = ""
    name: str = ""


@dataclass(frozen=True)
class _LineItemBase:
    code: str = ""
    name: str = ""
    test_id: str = ""
    price: float = 0.0

    @property
    def descriptor(self) -> str:
        """Raw text the keyword panels are matched against."""
        return self.code or self.name


@dataclass(frozen=True)
class IndividualItem(_LineItemBase):
    kind = INDIVIDUAL


@dataclass(frozen=True)
class EmbeddedPackageItem(_LineItemBase):
    """Package line item that carries its member tests inline."""
    members: Tuple[PackageMember, ...] = ()
    kind = PACKAGE


@dataclass(frozen=True)
class ReferencedPackageItem(_LineItemBase):
    """Package line item that only points at a package definition."""
    reference: PackageReference = PackageReference()
    kind = PACKAGE


LineItem = Union[IndividualItem, EmbeddedPackageItem, ReferencedPackageItem]


@dataclass(frozen=True)
class Patient:
    id: str
    ln: str = ""
    title: str = ""
    first_name: str = ""
    last_name: str = ""
    gender: str = ""
    age: Union[int, str] = ""


@dataclass(frozen=True)
class Visit:
    id: str
    visit_number: str = ""
    patient_id: str = ""
    department: str = ""
    visit_date: Optional[datetime] = None       # true timestamp
    visit_date_text: Optional[str] = None       # legacy string date, verbatim
    height: str = ""
    patient_rights: str = ""

    @property
    def occurred_at(self) -> Optional[datetime]:
        """Visit time, interpreting legacy string dates when possible."""
        if self.visit_date is not None:
            return self.visit_date
        if not self.visit_date_text:
            return None
        try:
            parsed = datetime.fromisoformat(self.visit_date_text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed


@dataclass(frozen=True)
class Order:
    id: str
    visit_id: Optional[str] = None
    visit_number: Optional[str] = None
    status: str = ""
    total_amount: float = 0.0
    order_date: Optional[datetime] = None
    line_items: Tuple[LineItem, ...] = ()


@dataclass
class VisitRecord:
    """A visit joined with its patient and the orders of both linkage schemes."""
    visit: Visit
    patient: Optional[Patient] = None
    orders_by_number: List[Order] = field(default_factory=list)
    orders_by_id: List[Order] = field(default_factory=list)

    @property
    def orders(self) -> List[Order]:
        # An order reachable through both schemes appears twice on purpose.
        return self.orders_by_number + self.orders_by_id


@dataclass(frozen=True)
class ReferenceData:
    """Snapshot of the test and package catalogs taken for one report."""
    test_definitions: Tuple[TestDefinition, ...] = ()
    package_definitions: Tuple[PackageDefinition, ...] = ()

    def find_test_by_id(self, test_id: str) -> Optional[TestDefinition]:
        if not test_id:
            return None
        return next((t for t in self.test_definitions if t.id == test_id), None)

    def find_test_by_descriptor(self, code: str, name: str) -> Optional[TestDefinition]:
        """Four-way match: historical records swapped code and name."""
        wanted = {value for value in (code, name) if value}
        if not wanted:
            return None
        return next(
            (t for t in self.test_definitions if t.code in wanted or t.name in wanted),
            None,
        )

    def find_package(self, reference: PackageReference) -> Optional[PackageDefinition]:
        """Locate a package by id, then code, then name."""
        for attr in ("id", "code", "name"):
            value = getattr(reference, attr)
            if not value:
                continue
            found = next((p for p in self.package_definitions if getattr(p, attr) == value), None)
            if found is not None:
                return found
        return None

    def find_package_by_descriptor(self, code: str, name: str) -> Optional[PackageDefinition]:
        wanted = {value for value in (code, name) if value}
        if not wanted:
            return None
        return next(
            (p for p in self.package_definitions if p.code in wanted or p.name in wanted),
            None,
        )


@dataclass
class ReportRow:
    visit_number: str
    ln: str = ""
    title: str = ""
    first_name: str = ""
    last_name: str = ""
    gender: str = ""
    age: Union[int, str] = ""
    height: str = ""
    rights: str = ""
    lab_tests: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "visitNumber": self.visit_number,
            "ln": self.ln,
            "title": self.title,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "gender": self.gender,
            "age": self.age,
            "height": self.height,
            "rights": self.rights,
            "labTests": dict(self.lab_tests),
        }


@dataclass(frozen=True)
class AggregateStats:
    today_patients: int = 0
    today_tests: int = 0
    today_revenue: float = 0.0
    growth: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "todayPatients": self.today_patients,
            "todayTests": self.today_tests,
            "todayRevenue": self.today_revenue,
            "growth": self.growth,
        }
