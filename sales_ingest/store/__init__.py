"""Relational storage for parsed sales and the import ledger."""

from sales_ingest.store.database import Database, PostgresDatabase, SqliteDatabase, connect
from sales_ingest.store.ledger import ImportLedger
from sales_ingest.store.sales import SaleWriter
from sales_ingest.store.schema import initialize_schema

__all__ = [
    "Database",
    "ImportLedger",
    "PostgresDatabase",
    "SaleWriter",
    "SqliteDatabase",
    "connect",
    "initialize_schema",
]
