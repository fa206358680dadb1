"""Synthetic sales extract generation."""

from sales_ingest.generators.extract import SalesExtractGenerator, extract_filename

__all__ = ["SalesExtractGenerator", "extract_filename"]
