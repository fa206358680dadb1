"""Writes parsed sale records and their children to storage."""

from __future__ import annotations

import logging

from sales_ingest.exceptions import DuplicateSaleError, StorageError
from sales_ingest.models.imports import ImportCounts
from sales_ingest.models.sales import InterestRecord, LegalDescription, SaleRecord
from sales_ingest.store.database import Database

logger = logging.getLogger(__name__)

SALE_COLUMNS = (
    "district_code",
    "property_id",
    "sale_sequence",
    "source_file",
    "file_date",
    "file_type",
    "record_timestamp",
    "unit_number",
    "house_number",
    "street_name",
    "suburb",
    "postcode",
    "area",
    "area_unit",
    "contract_date",
    "settlement_date",
    "purchase_price",
    "zone_code",
    "zone_category",
    "property_type",
    "property_description",
    "nature_of_property",
    "strata_lot_number",
    "component_code",
    "sale_code",
    "dealing_number",
)

INSERT_SALE = (
    f"INSERT INTO property_sales ({', '.join(SALE_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in SALE_COLUMNS)})"
)

INSERT_LEGAL_DESCRIPTION = (
    "INSERT INTO legal_descriptions "
    "(sale_id, district_code, property_id, sale_sequence, legal_description, lot_number, plan_number, plan_type) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
)

INSERT_INTEREST = (
    "INSERT INTO sale_interests "
    "(sale_id, district_code, property_id, sale_sequence, interest_type, interest_detail) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)


class SaleWriter:
    """Inserts sales with their legal descriptions and interests."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def insert_sale(self, sale: SaleRecord, file_type: str | None = None) -> int:
        """Insert one sale and its children; returns the new sale id.

        Raises
        ------
        DuplicateSaleError
            If a sale with the same natural key is already stored.
        StorageError
            For any other insert failure.
        """
        values = [getattr(sale, column) for column in SALE_COLUMNS]
        values[SALE_COLUMNS.index("file_type")] = file_type or sale.file_type
        sale_id = self.db.insert_returning_id(INSERT_SALE, values)

        for legal in sale.legal_descriptions:
            self._insert_legal_description(sale_id, legal)
        for interest in sale.interests:
            self._insert_interest(sale_id, interest)

        return sale_id

    def _insert_legal_description(self, sale_id: int, legal: LegalDescription) -> None:
        self.db.execute(
            INSERT_LEGAL_DESCRIPTION,
            (
                sale_id,
                legal.district_code,
                legal.property_id,
                legal.sale_sequence,
                legal.legal_description,
                legal.lot_number,
                legal.plan_number,
                legal.plan_type,
            ),
        )

    def _insert_interest(self, sale_id: int, interest: InterestRecord) -> None:
        self.db.execute(
            INSERT_INTEREST,
            (
                sale_id,
                interest.district_code,
                interest.property_id,
                interest.sale_sequence,
                interest.interest_type,
                interest.interest_detail,
            ),
        )

    def write_batch(self, sales: list[SaleRecord], file_type: str | None = None) -> ImportCounts:
        """Insert every sale, converting per-record failures into counters.

        Each sale and its children run in their own savepoint: a failed
        record leaves nothing behind and its siblings are kept. Call this
        inside ``Database.transaction()`` to make the batch atomic.
        """
        counts = ImportCounts(processed=len(sales))

        for sale in sales:
            try:
                with self.db.savepoint():
                    self.insert_sale(sale, file_type)
            except DuplicateSaleError:
                counts.skipped += 1
            except StorageError as e:
                counts.errors += 1
                logger.warning(
                    "Error inserting sale %s/%s (sequence %s): %s",
                    sale.district_code,
                    sale.property_id,
                    sale.sale_sequence,
                    e,
                )
            else:
                counts.inserted += 1

        return counts

    def total_sales(self) -> int:
        return self.db.count("property_sales")
