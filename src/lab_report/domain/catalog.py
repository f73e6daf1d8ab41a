"""
Canonical test catalog for the lab report matrix.

The column list is versioned: names are never renamed between versions
because historical exports are keyed on them. Aliases only ever add
columns to a result, never remove them.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

CATALOG_VERSION = "2024.1"

PT_COLUMN = "ตรวจการแข็งตัวของเลือด Prothrombin Time (PT)"
INR_COLUMN = "ตรวจระยะเวลาการแข็งตัวของเลือด (INR)"

# Report column order is the table/export column order.
REPORT_COLUMNS: Tuple[str, ...] = (
    "CBC",
    "ABO",
    "BUN",
    "Creatinine",
    "AST",
    "ALT",
    "ALP",
    "eGFR",
    "FBS",
    "HDL",
    "LDL",
    "Triglyceride",
    "Cholesterol",
    "Uric acid",
    "AFP",
    "Anti HAV",
    "Anti HCV",
    "Anti HBs",
    "Anti HIV screening",
    "CA125",
    "CA15-3",
    "CA19-9",
    "CEA",
    "FT3",
    "FT4",
    "HBs Ag",
    "PSA",
    "TSH",
    "Influenza A",
    "Influenza B",
    "RSV",
    "SARS-COV-2",
    "Dengue IgM",
    "Dengue IgG",
    "Dengue Ns1 Ag",
    "Leptospira IgG",
    "Leptospira IgM",
    "Methamphetamine",
    "Pregnancy test",
    "Albumin",
    "Amylase",
    "Calcium",
    "Cholinesterase",
    "CK-MB",
    "CPK",
    "Cystatin-C",
    "Direct Bilirubin",
    "GGT",
    "Globulin",
    "HbA1C",
    "Homocysteine",
    "hs-CRP",
    "CRP",
    "LDH",
    "Magnesium",
    "Phosphorus",
    "Total Bilirubin",
    "Total Protein",
    "Microalbumin",
    "Beta - HCG",
    "NSE",
    "VDRL (RPR)",
    "Progesterone",
    "Rheumatoid Factor",
    "D-dimer",
    "Hb typing",
    "HPV DNA",
    "FOB Test",
    "Urine Analysis",
    "Rh Type",
    PT_COLUMN,
    "PTT",
    INR_COLUMN,
    "DTX",
    "Stool Culture",
    "Chest X-ray",
    "Stool Examination",
    "FSH",
    "Prolactin",
    "Testosterone",
    "Pharmacogenetics",
    "Vitamin D",
)

# Source test code (as stored in the labtests collection) -> report columns.
TEST_CODE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "CBC": ("CBC",),
    "ABO": ("ABO",),
    "BUN": ("BUN",),
    "Creatinine": ("Creatinine",),
    "AST": ("AST",),
    "ALT": ("ALT",),
    "ALP": ("ALP",),
    "eGFR": ("eGFR",),
    "FBS": ("FBS",),
    "HDL": ("HDL",),
    "LDL": ("LDL",),
    "Triglyceride": ("Triglyceride",),
    "Cholesterol": ("Cholesterol",),
    "Uric acid": ("Uric acid",),
    "AFP": ("AFP",),
    "Anti HAV": ("Anti HAV",),
    "Anti HCV": ("Anti HCV",),
    "Anti HBs": ("Anti HBs",),
    "Anti HIV": ("Anti HIV screening",),
    "CA125": ("CA125",),
    "CA15-3": ("CA15-3",),
    "CA 19-9": ("CA19-9",),
    "CEA": ("CEA",),
    "FT3": ("FT3",),
    "FT4": ("FT4",),
    "HBs Ag": ("HBs Ag",),
    "PSA": ("PSA",),
    "TSH": ("TSH",),
    "Flu A/B": ("Influenza A", "Influenza B"),
    "RSV": ("RSV",),
    "Covid-19": ("SARS-COV-2",),
    "Dengue": ("Dengue IgM", "Dengue IgG", "Dengue Ns1 Ag"),
    "Leptospira": ("Leptospira IgG", "Leptospira IgM"),
    "Methamphetamine": ("Methamphetamine",),
    "UPT": ("Pregnancy test",),
    "Albumin": ("Albumin",),
    "Amylase": ("Amylase",),
    "Calcium": ("Calcium",),
    "Cholinesterase": ("Cholinesterase",),
    "CK-MB": ("CK-MB",),
    "CPK": ("CPK",),
    "Cystatin-C": ("Cystatin-C",),
    "Bilirubin, Direct": ("Direct Bilirubin",),
    "GGT": ("GGT",),
    "Globulin": ("Globulin",),
    "HbA1C": ("HbA1C",),
    "Homocysteine": ("Homocysteine",),
    "hs-CRP": ("hs-CRP",),
    "CRP": ("CRP",),
    "LDH": ("LDH",),
    "Magnesium": ("Magnesium",),
    "Phosphorus": ("Phosphorus",),
    "Bilirubin, Total": ("Total Bilirubin",),
    "Total Protein": ("Total Protein",),
    "Microalbumin": ("Microalbumin",),
    "Beta HCG": ("Beta - HCG",),
    "NSE": ("NSE",),
    "VDRL": ("VDRL (RPR)",),
    "Progesterone": ("Progesterone",),
    "Rheumatoid Factor": ("Rheumatoid Factor",),
    "D-dimer": ("D-dimer",),
    "Hb typing": ("Hb typing",),
    "HPV DNA": ("HPV DNA",),
    "FIT Test": ("FOB Test",),
    "UA": ("Urine Analysis",),
    "Rh": ("Rh Type",),
    "PT": (PT_COLUMN,),
    "PTT": ("PTT",),
    "INR": (INR_COLUMN,),
    "DTX": ("DTX",),
    "Stool Culture": ("Stool Culture",),
    "Chest X-ray": ("Chest X-ray",),
    "Stool": ("Stool Examination",),
    "FSH": ("FSH",),
    "Prolactin": ("Prolactin",),
    "Testosterone": ("Testosterone",),
    "Pharmacogenetics": ("Pharmacogenetics",),
    "Vitamin D": ("Vitamin D",),
}

# Disease panels sold under many product names. Any descriptor containing one
# of the keywords (case-sensitive) flags every column of the panel.
KEYWORD_PANELS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("Flu", "Influenza"), ("Influenza A", "Influenza B")),
    (("Dengue",), ("Dengue IgM", "Dengue IgG", "Dengue Ns1 Ag")),
    (("Leptospira",), ("Leptospira IgG", "Leptospira IgM")),
)


def _default_name_aliases() -> Dict[str, Tuple[str, ...]]:
    # Historical orders carry the same identifiers in the name field, and a
    # report column name is always a valid name for itself.
    aliases = {column: (column,) for column in REPORT_COLUMNS}
    aliases.update(TEST_CODE_ALIASES)
    return aliases


@dataclass(frozen=True)
class TestCatalog:
    """Immutable mapping of source test identifiers to report columns."""

    __test__ = False  # not a pytest test class

    columns: Tuple[str, ...] = REPORT_COLUMNS
    code_aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: dict(TEST_CODE_ALIASES))
    name_aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=_default_name_aliases)
    keyword_panels: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = KEYWORD_PANELS
    version: str = CATALOG_VERSION

    def __post_init__(self):
        if len(set(self.columns)) != len(self.columns):
            raise ValueError("Report column names must be unique")
        known = set(self.columns)
        for table in (self.code_aliases, self.name_aliases):
            for alias, targets in table.items():
                unknown = [target for target in targets if target not in known]
                if unknown:
                    raise ValueError(f"Alias {alias!r} targets unknown columns {unknown}")
        for keywords, targets in self.keyword_panels:
            if any(target not in known for target in targets):
                raise ValueError(f"Keyword panel {keywords!r} targets unknown columns")

    def resolve_code(self, code: Optional[str]) -> FrozenSet[str]:
        if not code:
            return frozenset()
        return frozenset(self.code_aliases.get(code, ()))

    def resolve_name(self, name: Optional[str]) -> FrozenSet[str]:
        if not name:
            return frozenset()
        return frozenset(self.name_aliases.get(name, ()))

    def resolve(self, identifier: Optional[str]) -> FrozenSet[str]:
        """Resolve an identifier that may be either a code or a name.

        Code match wins; the name table is only consulted on a code miss.
        An empty result means "unresolved", never an error.
        """
        return self.resolve_code(identifier) or self.resolve_name(identifier)

    def lookup(self, code: Optional[str], name: Optional[str]) -> FrozenSet[str]:
        """Resolve a (code, name) pair: code first, then name."""
        return self.resolve(code) or self.resolve(name)

    def keyword_columns(self, text: Optional[str]) -> FrozenSet[str]:
        if not text:
            return frozenset()
        matched = set()
        for keywords, targets in self.keyword_panels:
            if any(keyword in text for keyword in keywords):
                matched.update(targets)
        return frozenset(matched)

    def empty_matrix(self) -> Dict[str, bool]:
        return dict.fromkeys(self.columns, False)


DEFAULT_CATALOG = TestCatalog()
