"""Output sinks for exported data."""

from sales_ingest.sinks.json_file import JsonFileSink

__all__ = ["JsonFileSink"]
