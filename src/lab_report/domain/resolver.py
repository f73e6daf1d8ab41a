"""
Line-item resolution: map one order line item onto report columns.

Resolution is an ordered chain of strategies. Each strategy takes the item,
the reference data snapshot and the catalog, and returns a (possibly empty)
set of columns; results are unioned. Nothing in the chain raises on missing
data - an item nobody can place simply yields no columns.

    primary    embedded_members, package_reference, direct_match
               (each applies to one line item variant only)
    fallback   reference_cross_lookup, package_descriptor
               (all applied when the primary strategies found nothing)
    override   keyword panels on the raw descriptor, always applied
"""
import logging
from typing import Callable, FrozenSet, Sequence, Set

from lab_report.domain.catalog import DEFAULT_CATALOG, TestCatalog
from lab_report.domain.model import (
    EmbeddedPackageItem,
    IndividualItem,
    LineItem,
    PackageDefinition,
    ReferenceData,
    ReferencedPackageItem,
)

logger = logging.getLogger(__name__)

Strategy = Callable[[LineItem, ReferenceData, TestCatalog], FrozenSet[str]]

NOTHING: FrozenSet[str] = frozenset()


def package_columns(package: PackageDefinition, reference: ReferenceData, catalog: TestCatalog) -> FrozenSet[str]:
    """Columns of every member test of a package definition."""
    columns: Set[str] = set()
    for test_id in package.test_ids:
        test = reference.find_test_by_id(test_id)
        if test is None:
            logger.debug(f"Lab group {package.code or package.id}: member test {test_id} not found")
            continue
        columns |= catalog.resolve(test.code)
    for code in package.member_codes:
        columns |= catalog.resolve(code)
    return frozenset(columns)


def embedded_members(item: LineItem, reference: ReferenceData, catalog: TestCatalog) -> FrozenSet[str]:
    """Package sold with its member tests copied into the order."""
    if not isinstance(item, EmbeddedPackageItem):
        return NOTHING
    columns: Set[str] = set()
    for member in item.members:
        columns |= catalog.lookup(member.code, member.name)
    return frozenset(columns)


def package_reference(item: LineItem, reference: ReferenceData, catalog: TestCatalog) -> FrozenSet[str]:
    """Package that points at a lab group definition (by id, code or name)."""
    if not isinstance(item, ReferencedPackageItem):
        return NOTHING
    package = reference.find_package(item.reference)
    if package is None:
        logger.debug(f"No lab group matches package reference {item.reference}")
        return NOTHING
    return package_columns(package, reference, catalog)


def direct_match(item: LineItem, reference: ReferenceData, catalog: TestCatalog) -> FrozenSet[str]:
    if not isinstance(item, IndividualItem):
        return NOTHING
    return catalog.lookup(item.code, item.name)


def reference_cross_lookup(item: LineItem, reference: ReferenceData, catalog: TestCatalog) -> FrozenSet[str]:
    """Find the lab test whose code or name equals the item's code or name."""
    test = reference.find_test_by_descriptor(item.code, item.name)
    if test is None:
        return NOTHING
    return catalog.resolve(test.code)


def package_descriptor(item: LineItem, reference: ReferenceData, catalog: TestCatalog) -> FrozenSet[str]:
    """Legacy records: the item names a lab group without saying it is one."""
    package = reference.find_package_by_descriptor(item.code, item.name)
    if package is None:
        return NOTHING
    return package_columns(package, reference, catalog)


PRIMARY_STRATEGIES: Sequence[Strategy] = (embedded_members, package_reference, direct_match)
FALLBACK_STRATEGIES: Sequence[Strategy] = (reference_cross_lookup, package_descriptor)


class LineItemResolver:
    """Resolve line items against one reference data snapshot."""

    def __init__(
        self,
        reference: ReferenceData,
        catalog: TestCatalog = DEFAULT_CATALOG,
        primary: Sequence[Strategy] = PRIMARY_STRATEGIES,
        fallback: Sequence[Strategy] = FALLBACK_STRATEGIES,
    ):
        self.reference = reference
        self.catalog = catalog
        self.primary = tuple(primary)
        self.fallback = tuple(fallback)

    def resolve(self, item: LineItem) -> FrozenSet[str]:
        columns: Set[str] = set()
        for strategy in self.primary:
            columns |= strategy(item, self.reference, self.catalog)

        if not columns:
            for strategy in self.fallback:
                columns |= strategy(item, self.reference, self.catalog)

        columns |= self.catalog.keyword_columns(item.descriptor)

        logger.debug(f"Resolved {item.kind} item {item.descriptor!r} -> {sorted(columns)}")
        return frozenset(columns)
