"""Sales extract parsers."""

from sales_ingest.parsers.dat import parse_dat_content, parse_dat_file, parse_dat_files, parse_filename
from sales_ingest.parsers.fields import SALE_FIELDS, SKIPPED_SALE_FIELD

__all__ = [
    "SALE_FIELDS",
    "SKIPPED_SALE_FIELD",
    "parse_dat_content",
    "parse_dat_file",
    "parse_dat_files",
    "parse_filename",
]
