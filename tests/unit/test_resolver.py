"""Unit tests for line item resolution"""
import pytest

from lab_report.adapters.documents import parse_package_definition
from lab_report.domain.catalog import DEFAULT_CATALOG
from lab_report.domain.model import (
    EmbeddedPackageItem,
    IndividualItem,
    PackageDefinition,
    PackageMember,
    PackageReference,
    ReferenceData,
    ReferencedPackageItem,
    TestDefinition,
)
from lab_report.domain.resolver import (
    LineItemResolver,
    direct_match,
    embedded_members,
    package_descriptor,
    package_reference,
    reference_cross_lookup,
)

CHECKUP_COLUMNS = {"CBC", "FBS", "Cholesterol"}


@pytest.fixture
def resolver(reference_data):
    return LineItemResolver(reference_data)


class TestStrategies:
    def test_direct_match_code_then_name(self, reference_data):
        assert direct_match(IndividualItem(code="CBC"), reference_data, DEFAULT_CATALOG) == {"CBC"}
        assert direct_match(IndividualItem(code="?", name="UPT"), reference_data, DEFAULT_CATALOG) == {
            "Pregnancy test"
        }

    def test_strategies_only_apply_to_their_variant(self, reference_data):
        embedded = EmbeddedPackageItem(code="CBC", members=(PackageMember(code="FBS"),))

        assert direct_match(embedded, reference_data, DEFAULT_CATALOG) == frozenset()
        assert package_reference(embedded, reference_data, DEFAULT_CATALOG) == frozenset()
        assert embedded_members(IndividualItem(code="CBC"), reference_data, DEFAULT_CATALOG) == frozenset()

    def test_embedded_members_resolve_by_code_or_name(self, reference_data):
        item = EmbeddedPackageItem(
            code="PKG-X",
            members=(PackageMember(code="AST"), PackageMember(code="??", name="ALT"), PackageMember()),
        )

        assert embedded_members(item, reference_data, DEFAULT_CATALOG) == {"AST", "ALT"}

    @pytest.mark.parametrize("reference", [
        PackageReference(id="g-checkup"),
        PackageReference(code="PKG-CHECKUP"),
        PackageReference(name="Basic Checkup"),
        PackageReference(id="gone", code="PKG-CHECKUP"),
    ])
    def test_package_reference_by_id_code_or_name(self, reference_data, reference):
        item = ReferencedPackageItem(code="Checkup", reference=reference)

        assert package_reference(item, reference_data, DEFAULT_CATALOG) == CHECKUP_COLUMNS

    def test_package_reference_to_legacy_group_uses_member_codes(self, reference_data):
        item = ReferencedPackageItem(reference=PackageReference(code="PKG-LIVER"))

        assert package_reference(item, reference_data, DEFAULT_CATALOG) == {"AST", "ALT", "ALP"}

    def test_package_reference_skips_missing_member_tests(self):
        reference = ReferenceData(
            test_definitions=(TestDefinition(id="t-cbc", code="CBC", name="Complete Blood Count"),),
            package_definitions=(
                PackageDefinition(id="g", code="G", name="G", test_ids=("t-cbc", "t-deleted")),
            ),
        )
        item = ReferencedPackageItem(reference=PackageReference(id="g"))

        assert package_reference(item, reference, DEFAULT_CATALOG) == {"CBC"}

    def test_unknown_package_reference(self, reference_data):
        item = ReferencedPackageItem(reference=PackageReference(id="nope", code="NOPE"))

        assert package_reference(item, reference_data, DEFAULT_CATALOG) == frozenset()

    def test_reference_cross_lookup_matches_swapped_fields(self, reference_data):
        # the catalog name stored in the code field
        item = IndividualItem(code="Fasting Blood Sugar")

        assert reference_cross_lookup(item, reference_data, DEFAULT_CATALOG) == {"FBS"}

    def test_package_descriptor(self, reference_data):
        item = IndividualItem(name="Basic Checkup")

        assert package_descriptor(item, reference_data, DEFAULT_CATALOG) == CHECKUP_COLUMNS


class TestLineItemResolver:
    def test_individual_item(self, resolver, cbc_item):
        assert resolver.resolve(cbc_item) == {"CBC"}

    def test_flu_alias_sets_both_influenza_columns(self, resolver):
        assert resolver.resolve(IndividualItem(code="Flu A/B")) == {"Influenza A", "Influenza B"}

    def test_keyword_override_adds_panel_columns(self, resolver):
        item = IndividualItem(code="Rapid Influenza Screen")

        assert resolver.resolve(item) == {"Influenza A", "Influenza B"}

    def test_keyword_override_is_added_to_resolved_columns(self, resolver):
        item = EmbeddedPackageItem(
            code="Dengue Fever Package",
            members=(PackageMember(code="CBC"),),
        )

        assert resolver.resolve(item) == {"CBC", "Dengue IgM", "Dengue IgG", "Dengue Ns1 Ag"}

    def test_keyword_match_is_case_sensitive(self, resolver):
        assert resolver.resolve(IndividualItem(code="dengue rapid")) == frozenset()

    def test_fallback_when_primary_finds_nothing(self, resolver):
        item = IndividualItem(code="Complete Blood Count")

        assert resolver.resolve(item) == {"CBC"}

    def test_fallback_strategies_are_combined(self):
        # "Liver Panel" is both a test name and a package name
        reference = ReferenceData(
            test_definitions=(TestDefinition(id="t-liver", code="ALT", name="Liver Panel"),),
            package_definitions=(
                PackageDefinition(id="g-liver", code="PKG-LIVER", name="Liver Panel", member_codes=("AST", "ALP")),
            ),
        )

        assert LineItemResolver(reference).resolve(IndividualItem(name="Liver Panel")) == {"ALT", "AST", "ALP"}

    def test_fallback_does_not_run_after_direct_match(self):
        reference = ReferenceData(
            test_definitions=(TestDefinition(id="t-x", code="FBS", name="CBC"),),
            package_definitions=(PackageDefinition(id="g", code="CBC", name="CBC", member_codes=("AST",)),),
        )

        assert LineItemResolver(reference).resolve(IndividualItem(code="CBC")) == {"CBC"}

    def test_keyword_override_on_unknown_package(self, resolver):
        item = ReferencedPackageItem(
            code="Leptospira Screen",
            reference=PackageReference(id="gone", code="Leptospira Screen"),
        )

        assert resolver.resolve(item) == {"Leptospira IgG", "Leptospira IgM"}

    def test_malformed_group_membership_resolves_nothing(self):
        reference = ReferenceData(
            package_definitions=(parse_package_definition({"_id": "g-bad", "code": "BAD", "labTests": 5}),),
        )
        item = ReferencedPackageItem(reference=PackageReference(id="g-bad"))

        assert LineItemResolver(reference).resolve(item) == frozenset()

    def test_unresolvable_item_yields_no_columns(self, resolver):
        assert resolver.resolve(IndividualItem(code="X-99", name="Unmapped Test")) == frozenset()
        assert resolver.resolve(IndividualItem()) == frozenset()

    def test_referenced_package(self, resolver):
        item = ReferencedPackageItem(code="PKG-CHECKUP", reference=PackageReference(id="g-checkup"))

        assert resolver.resolve(item) == CHECKUP_COLUMNS

    def test_resolution_is_deterministic(self, resolver):
        item = ReferencedPackageItem(name="Flu season", reference=PackageReference(code="PKG-LIVER"))

        first = resolver.resolve(item)

        assert first == {"AST", "ALT", "ALP", "Influenza A", "Influenza B"}
        assert all(resolver.resolve(item) == first for _ in range(3))

    def test_columns_are_all_report_columns(self, resolver):
        items = [
            IndividualItem(code=code) for code in ("CBC", "PT", "INR", "Anti HIV", "Dengue", "Leptospira")
        ]

        for item in items:
            assert resolver.resolve(item) <= set(DEFAULT_CATALOG.columns)

    def test_custom_strategy_chain(self, reference_data):
        resolver = LineItemResolver(reference_data, primary=(direct_match,), fallback=())

        assert resolver.resolve(IndividualItem(code="Complete Blood Count")) == frozenset()
