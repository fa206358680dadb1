"""Synthetic NSW property sales extract files.

Produces ``SaleRecord``s with plausible NSW addresses, prices and zones,
and renders them as DAT files in the same layout the parser reads.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from pathlib import Path

from sales_ingest.generators.base import BaseGenerator
from sales_ingest.models.enums import AreaUnit, InterestType, RecordType
from sales_ingest.models.sales import InterestRecord, LegalDescription, SaleRecord
from sales_ingest.parsers.dat import parse_lot_plan
from sales_ingest.parsers.fields import sale_to_fields
from sales_ingest.store.reference import PROPERTY_TYPES, ZONE_CODES

logger = logging.getLogger(__name__)

DEFAULT_DISTRICTS = ("001", "214", "218", "240", "622")

PROPERTY_DESCRIPTIONS = ("RESIDENCE", "VACANT LAND", "UNIT", "TOWNHOUSE")

# Zones that residential sales actually occur in, weighted towards R2.
_SALE_ZONES = ("R2", "R2", "R2", "R3", "R1", "R4", "R5", "RU4", "E1", "MU1")


def extract_filename(district_code: str, file_date: date) -> str:
    """``214`` and 2025-12-15 give ``214_SALES_DATA_NNME_15122025.DAT``."""
    return f"{district_code}_SALES_DATA_NNME_{file_date:%d%m%Y}.DAT"


class SalesExtractGenerator(BaseGenerator):
    """Generate sales records and extract files.

    Property ids are unique for the lifetime of a generator, so generated
    files never contain natural-key duplicates unless a test adds them.
    """

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_AU",
        district_codes: tuple[str, ...] = DEFAULT_DISTRICTS,
    ) -> None:
        super().__init__(seed=seed, locale=locale)
        self.district_codes = district_codes
        self._used_property_ids: set[str] = set()

    def _property_id(self) -> str:
        while True:
            property_id = str(self.rng.randint(100000, 9999999))
            if property_id not in self._used_property_ids:
                self._used_property_ids.add(property_id)
                return property_id

    def generate_sale(
        self,
        district_code: str,
        file_date: date,
        timestamp: str | None = None,
    ) -> SaleRecord:
        """Generate one sale settled on or before ``file_date``."""
        timestamp = timestamp or f"{file_date:%Y%m%d} {self.rng.randint(0, 23):02d}:{self.rng.randint(0, 59):02d}"
        is_unit = self.rng.random() < 0.25
        zone_code = self.rng.choice(_SALE_ZONES)

        settlement = file_date - timedelta(days=self.rng.randint(0, 6))
        contract = settlement - timedelta(days=self.rng.randint(14, 90))

        if is_unit:
            area, area_unit = None, None
        elif zone_code.startswith("RU") and self.rng.random() < 0.5:
            area, area_unit = round(self.rng.uniform(1.0, 40.0), 2), AreaUnit.HECTARES.value
        else:
            area, area_unit = round(self.rng.uniform(200.0, 1200.0), 1), AreaUnit.SQUARE_METRES.value

        sale = SaleRecord(
            district_code=district_code,
            property_id=self._property_id(),
            sale_sequence=1,
            record_timestamp=timestamp,
            unit_number=str(self.rng.randint(1, 120)) if is_unit else None,
            house_number=self.fake.building_number(),
            street_name=self.fake.street_name().upper(),
            suburb=self.fake.city().upper(),
            postcode=str(self.rng.randint(2000, 2999)),
            area=area,
            area_unit=area_unit,
            contract_date=contract.isoformat(),
            settlement_date=settlement.isoformat(),
            purchase_price=self.rng.randrange(350_000, 4_000_000, 500),
            zone_code=zone_code,
            zone_category=ZONE_CODES[zone_code][1][0],
            property_type="UNIT" if is_unit else self.rng.choice(PROPERTY_DESCRIPTIONS),
            nature_of_property=self.rng.choice(sorted(PROPERTY_TYPES)),
            strata_lot_number=str(self.rng.randint(1, 120)) if is_unit else None,
            dealing_number=f"AV{self.rng.randint(100000, 999999)}",
        )

        plan = self.rng.randint(10000, 1999999)
        raw_legal = f"SP{plan}" if is_unit else f"{self.rng.randint(1, 400)}/{plan}"
        sale.legal_descriptions.append(
            LegalDescription(
                district_code=district_code,
                property_id=sale.property_id,
                sale_sequence=sale.sale_sequence,
                **parse_lot_plan(raw_legal),
            )
        )
        for interest_type in (InterestType.PURCHASER, InterestType.VENDOR):
            sale.interests.append(
                InterestRecord(
                    district_code=district_code,
                    property_id=sale.property_id,
                    sale_sequence=sale.sale_sequence,
                    interest_type=interest_type.value,
                )
            )
        return sale

    def generate_sales(self, district_code: str, file_date: date, count: int) -> list[SaleRecord]:
        return [self.generate_sale(district_code, file_date) for _ in range(count)]

    def render_lines(self, district_code: str, sales: list[SaleRecord], extracted_at: datetime) -> list[str]:
        """Render an A header followed by each sale's B, C and D lines."""
        timestamp = f"{extracted_at:%Y%m%d %H:%M}"
        lines = [f"{RecordType.HEADER.value};RTSALEDATA;{district_code};{timestamp};VALNET;"]

        for sale in sales:
            lines.append(";".join(sale_to_fields(sale)) + ";")
            key = f"{sale.district_code};{sale.property_id};{sale.sale_sequence};{sale.record_timestamp or ''}"
            for legal in sale.legal_descriptions:
                lines.append(f"{RecordType.LEGAL_DESCRIPTION.value};{key};{legal.legal_description};")
            for interest in sale.interests:
                lines.append(f"{RecordType.INTEREST.value};{key};{interest.interest_type};")
        return lines

    def write_file(
        self,
        output_dir: str | Path,
        district_code: str,
        file_date: date,
        sales: list[SaleRecord] | int,
    ) -> Path:
        """Write one extract file; ``sales`` may be a count to generate.

        Returns
        -------
        Path
            Path of the written file.
        """
        if isinstance(sales, int):
            sales = self.generate_sales(district_code, file_date, sales)

        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / extract_filename(district_code, file_date)

        extracted_at = datetime.combine(file_date, datetime.min.time()) + timedelta(hours=1, minutes=8)
        lines = self.render_lines(district_code, sales, extracted_at)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.debug("Wrote %d sales to %s", len(sales), path)
        return path

    def write_files(
        self,
        output_dir: str | Path,
        files: int,
        sales_per_file: int,
        end_date: date | None = None,
    ) -> list[Path]:
        """Write ``files`` weekly extracts, cycling through the districts.

        Each district's files fall on consecutive weeks ending at
        ``end_date`` (default today).
        """
        end_date = end_date or date.today()
        paths = []
        for i in range(files):
            district_code = self.district_codes[i % len(self.district_codes)]
            week = i // len(self.district_codes)
            file_date = end_date - timedelta(weeks=week)
            paths.append(self.write_file(output_dir, district_code, file_date, sales_per_file))
        logger.info("Generated %d extract files in %s", len(paths), output_dir)
        return paths
