"""Parsed sales extract records."""

from dataclasses import dataclass, field

from sales_ingest.models.enums import PlanType


@dataclass
class LegalDescription:
    """Lot/plan description attached to a sale (C record)."""

    district_code: str | None
    property_id: str | None
    sale_sequence: int
    legal_description: str
    lot_number: str | None = None
    plan_number: str | None = None
    plan_type: str = PlanType.DEPOSITED.value


@dataclass
class InterestRecord:
    """Purchaser or vendor interest attached to a sale (D record)."""

    district_code: str | None
    property_id: str | None
    sale_sequence: int
    interest_type: str | None
    interest_detail: str | None = None


@dataclass
class SaleRecord:
    """One property transaction (B record) with its C and D children."""

    district_code: str | None
    property_id: str | None
    sale_sequence: int
    record_timestamp: str | None = None

    unit_number: str | None = None
    house_number: str | None = None
    street_name: str | None = None
    suburb: str | None = None
    postcode: str | None = None

    area: float | None = None
    area_unit: str | None = None  # M = square metres, H = hectares

    contract_date: str | None = None  # YYYY-MM-DD
    settlement_date: str | None = None
    purchase_price: int | None = None

    zone_code: str | None = None
    zone_category: str | None = None
    property_type: str | None = None
    property_description: str | None = None

    nature_of_property: str | None = None
    strata_lot_number: str | None = None
    component_code: str | None = None
    sale_code: str | None = None
    dealing_number: str | None = None

    source_file: str | None = None
    file_date: str | None = None  # YYYYMMDD, from the filename
    file_type: str | None = None

    legal_descriptions: list[LegalDescription] = field(default_factory=list)
    interests: list[InterestRecord] = field(default_factory=list)

    @property
    def natural_key(self) -> tuple[str | None, str | None, int, str | None]:
        """Identity used for duplicate suppression in storage."""
        return (self.district_code, self.property_id, self.sale_sequence, self.contract_date)


@dataclass
class HeaderRecord:
    """File header (A record)."""

    data_type: str | None
    district_code: str | None
    timestamp: str | None
    source: str | None


@dataclass
class LineError:
    """A line that could not be parsed."""

    line: int | None
    content: str | None
    error: str


@dataclass
class ParsedFile:
    """Result of parsing one extract file."""

    filename: str
    file_date: str | None = None
    district_code: str | None = None
    header: HeaderRecord | None = None
    sales: list[SaleRecord] = field(default_factory=list)
    parse_errors: list[LineError] = field(default_factory=list)


@dataclass
class FileParseError:
    """Errors collected for one file during a batch parse."""

    file: str
    errors: list[LineError]


@dataclass
class BatchParseResult:
    """Combined result of parsing several extract files."""

    total_files: int
    processed_files: int = 0
    total_sales: int = 0
    sales: list[SaleRecord] = field(default_factory=list)
    errors: list[FileParseError] = field(default_factory=list)
