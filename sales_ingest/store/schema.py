"""Database schema for property sales storage.

Every statement is idempotent (``IF NOT EXISTS`` / insert-if-absent), so
``initialize_schema`` is safe to run before every ingestion.
"""

from __future__ import annotations

import logging

from sales_ingest.exceptions import StorageError
from sales_ingest.store.database import NATURAL_KEY_CONSTRAINT, Database
from sales_ingest.store.reference import PROPERTY_TYPES, ZONE_CODES

logger = logging.getLogger(__name__)

_DIALECT_TOKENS: dict[str, dict[str, str]] = {
    "sqlite": {
        "pk": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "create_view": "CREATE VIEW IF NOT EXISTS",
    },
    "postgres": {
        "pk": "BIGSERIAL PRIMARY KEY",
        "create_view": "CREATE OR REPLACE VIEW",
    },
}

TABLES = [
    # Reference tables
    """
    CREATE TABLE IF NOT EXISTS districts (
        district_code TEXT PRIMARY KEY,
        district_name TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS zone_codes (
        zone_code TEXT PRIMARY KEY,
        zone_description TEXT,
        zone_category TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS property_types (
        type_code TEXT PRIMARY KEY,
        type_description TEXT
    )
    """,
    # Sales. district_code is not a foreign key: extracts can carry codes
    # missing from the reference table.
    """
    CREATE TABLE IF NOT EXISTS property_sales (
        id {pk},
        district_code TEXT NOT NULL,
        property_id TEXT NOT NULL,
        sale_sequence INTEGER NOT NULL,
        source_file TEXT,
        file_date TEXT,
        file_type TEXT,
        record_timestamp TEXT,
        unit_number TEXT,
        house_number TEXT,
        street_name TEXT,
        suburb TEXT,
        postcode TEXT,
        area DOUBLE PRECISION,
        area_unit TEXT,
        contract_date DATE,
        settlement_date DATE,
        purchase_price BIGINT,
        zone_code TEXT,
        zone_category TEXT,
        property_type TEXT,
        property_description TEXT,
        nature_of_property TEXT,
        strata_lot_number TEXT,
        component_code TEXT,
        sale_code TEXT,
        dealing_number TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS legal_descriptions (
        id {pk},
        sale_id BIGINT NOT NULL REFERENCES property_sales(id),
        district_code TEXT NOT NULL,
        property_id TEXT NOT NULL,
        sale_sequence INTEGER NOT NULL,
        legal_description TEXT,
        lot_number TEXT,
        plan_number TEXT,
        plan_type TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sale_interests (
        id {pk},
        sale_id BIGINT NOT NULL REFERENCES property_sales(id),
        district_code TEXT NOT NULL,
        property_id TEXT NOT NULL,
        sale_sequence INTEGER NOT NULL,
        interest_type TEXT NOT NULL,
        interest_detail TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # Import ledger
    """
    CREATE TABLE IF NOT EXISTS import_log (
        id {pk},
        filename TEXT NOT NULL,
        file_path TEXT,
        file_type TEXT,
        file_date TEXT,
        district_code TEXT NOT NULL,
        records_processed INTEGER DEFAULT 0,
        records_inserted INTEGER DEFAULT 0,
        records_skipped INTEGER DEFAULT 0,
        records_error INTEGER DEFAULT 0,
        status TEXT DEFAULT 'pending',
        error_message TEXT,
        started_at TIMESTAMP,
        completed_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (filename, district_code)
    )
    """,
]

# Expression index so sales without a contract date still collide on the
# rest of the key.
NATURAL_KEY_INDEX = (
    f"CREATE UNIQUE INDEX IF NOT EXISTS {NATURAL_KEY_CONSTRAINT} ON property_sales "
    "(district_code, property_id, sale_sequence, COALESCE(contract_date, '0001-01-01'))"
)

INDEXES = [
    NATURAL_KEY_INDEX,
    "CREATE INDEX IF NOT EXISTS idx_sales_suburb ON property_sales(suburb)",
    "CREATE INDEX IF NOT EXISTS idx_sales_postcode ON property_sales(postcode)",
    "CREATE INDEX IF NOT EXISTS idx_sales_contract_date ON property_sales(contract_date)",
    "CREATE INDEX IF NOT EXISTS idx_sales_settlement_date ON property_sales(settlement_date)",
    "CREATE INDEX IF NOT EXISTS idx_sales_price ON property_sales(purchase_price)",
    "CREATE INDEX IF NOT EXISTS idx_sales_zone ON property_sales(zone_code)",
    "CREATE INDEX IF NOT EXISTS idx_sales_suburb_date ON property_sales(suburb, contract_date)",
    "CREATE INDEX IF NOT EXISTS idx_sales_postcode_date ON property_sales(postcode, contract_date)",
    "CREATE INDEX IF NOT EXISTS idx_sales_district_property ON property_sales(district_code, property_id)",
    "CREATE INDEX IF NOT EXISTS idx_legal_sale ON legal_descriptions(sale_id)",
    "CREATE INDEX IF NOT EXISTS idx_interest_sale ON sale_interests(sale_id)",
    "CREATE INDEX IF NOT EXISTS idx_import_status ON import_log(status)",
    "CREATE INDEX IF NOT EXISTS idx_import_file_date ON import_log(file_date)",
]

VIEWS = [
    """
    {create_view} v_recent_sales AS
    SELECT
        ps.id,
        ps.suburb,
        ps.postcode,
        ps.street_name,
        ps.house_number,
        ps.unit_number,
        ps.purchase_price,
        ps.contract_date,
        ps.area,
        ps.area_unit,
        ps.zone_code,
        ps.property_type,
        d.district_name,
        CASE
            WHEN ps.area > 0 AND ps.area_unit = 'M'
            THEN ROUND(CAST(ps.purchase_price AS NUMERIC) / CAST(ps.area AS NUMERIC), 2)
            ELSE NULL
        END AS price_per_sqm
    FROM property_sales ps
    LEFT JOIN districts d ON ps.district_code = d.district_code
    """,
    """
    {create_view} v_suburb_stats AS
    SELECT
        suburb,
        postcode,
        COUNT(*) AS total_sales,
        AVG(purchase_price) AS avg_price,
        MIN(purchase_price) AS min_price,
        MAX(purchase_price) AS max_price,
        AVG(area) AS avg_area,
        MIN(contract_date) AS earliest_sale,
        MAX(contract_date) AS latest_sale
    FROM property_sales
    WHERE purchase_price > 0
    GROUP BY suburb, postcode
    """,
]

SCHEMA_TABLES = (
    "districts",
    "zone_codes",
    "property_types",
    "property_sales",
    "legal_descriptions",
    "sale_interests",
    "import_log",
)

SCHEMA_VIEWS = ("v_recent_sales", "v_suburb_stats")


def schema_statements(dialect: str) -> list[str]:
    """Render the DDL for ``dialect`` ("sqlite" or "postgres")."""
    tokens = _DIALECT_TOKENS[dialect]
    statements = [sql.format(**tokens) for sql in TABLES]
    statements.extend(INDEXES)
    statements.extend(sql.format(**tokens) for sql in VIEWS)
    return [" ".join(sql.split()) for sql in statements]


def view_definitions(dialect: str) -> dict[str, str]:
    """Rendered view DDL keyed by view name."""
    tokens = _DIALECT_TOKENS[dialect]
    return {name: " ".join(sql.format(**tokens).split()) for name, sql in zip(SCHEMA_VIEWS, VIEWS)}


def create_schema(db: Database) -> None:
    """Create tables, indexes and views if they do not exist."""
    for statement in schema_statements(db.dialect):
        db.execute(statement)


def seed_reference_data(db: Database, district_codes: dict[str, str] | None = None) -> dict[str, int]:
    """Insert known district, zone and property type codes if absent.

    Parameters
    ----------
    db : Database
        Open database.
    district_codes : dict[str, str] | None
        District code -> name. Districts first seen in an extract are
        registered without a name during ingestion.

    Returns
    -------
    dict[str, int]
        Number of codes offered per table.
    """
    district_codes = district_codes or {}
    for code, name in district_codes.items():
        db.execute(
            "INSERT INTO districts (district_code, district_name) VALUES (?, ?) "
            "ON CONFLICT (district_code) DO UPDATE SET district_name = excluded.district_name "
            "WHERE districts.district_name IS NULL",
            (code, name),
        )
    for code, (description, category) in ZONE_CODES.items():
        db.execute(
            "INSERT INTO zone_codes (zone_code, zone_description, zone_category) "
            "VALUES (?, ?, ?) ON CONFLICT DO NOTHING",
            (code, description, category),
        )
    for code, description in PROPERTY_TYPES.items():
        db.execute(
            "INSERT INTO property_types (type_code, type_description) VALUES (?, ?) ON CONFLICT DO NOTHING",
            (code, description),
        )
    logger.info("Reference data seeded")
    return {
        "districts": len(district_codes),
        "zone_codes": len(ZONE_CODES),
        "property_types": len(PROPERTY_TYPES),
    }


def initialize_schema(db: Database, district_codes: dict[str, str] | None = None) -> None:
    """Create the schema and seed reference tables.

    Raises
    ------
    StorageError
        If the schema cannot be created.
    """
    try:
        with db.transaction():
            create_schema(db)
            seed_reference_data(db, district_codes)
    except StorageError as e:
        raise StorageError(f"Schema initialization failed: {e}") from e


def register_district(db: Database, district_code: str) -> None:
    """Make sure ``district_code`` has a row in the districts table."""
    db.execute(
        "INSERT INTO districts (district_code) VALUES (?) ON CONFLICT DO NOTHING",
        (district_code,),
    )
