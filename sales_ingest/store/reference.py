"""Static reference codes seeded into lookup tables."""

from __future__ import annotations

import csv
from pathlib import Path

from sales_ingest.exceptions import ConfigurationError

# NSW Standard Instrument LEP zones: code -> (description, category)
ZONE_CODES: dict[str, tuple[str, str]] = {
    "R1": ("General Residential", "Residential"),
    "R2": ("Low Density Residential", "Residential"),
    "R3": ("Medium Density Residential", "Residential"),
    "R4": ("High Density Residential", "Residential"),
    "R5": ("Large Lot Residential", "Residential"),
    "RU1": ("Primary Production", "Rural"),
    "RU2": ("Rural Landscape", "Rural"),
    "RU3": ("Forestry", "Rural"),
    "RU4": ("Primary Production Small Lots", "Rural"),
    "RU5": ("Village", "Rural"),
    "RU6": ("Transition", "Rural"),
    "B1": ("Neighbourhood Centre", "Business"),
    "B2": ("Local Centre", "Business"),
    "B3": ("Commercial Core", "Business"),
    "B4": ("Mixed Use", "Business"),
    "B5": ("Business Development", "Business"),
    "B6": ("Enterprise Corridor", "Business"),
    "B7": ("Business Park", "Business"),
    "B8": ("Metropolitan Centre", "Business"),
    "E1": ("Local Centre", "Employment"),
    "E2": ("Commercial Centre", "Employment"),
    "E3": ("Productivity Support", "Employment"),
    "E4": ("General Industrial", "Employment"),
    "E5": ("Heavy Industrial", "Employment"),
    "MU1": ("Mixed Use", "Mixed Use"),
    "IN1": ("General Industrial", "Industrial"),
    "IN2": ("Light Industrial", "Industrial"),
    "IN3": ("Heavy Industrial", "Industrial"),
    "IN4": ("Working Waterfront", "Industrial"),
    "SP1": ("Special Activities", "Special Purpose"),
    "SP2": ("Infrastructure", "Special Purpose"),
    "SP3": ("Tourist", "Special Purpose"),
    "SP4": ("Enterprise", "Special Purpose"),
    "SP5": ("Metropolitan Centre", "Special Purpose"),
    "RE1": ("Public Recreation", "Recreation"),
    "RE2": ("Private Recreation", "Recreation"),
    "C1": ("National Parks and Nature Reserves", "Conservation"),
    "C2": ("Environmental Conservation", "Conservation"),
    "C3": ("Environmental Management", "Conservation"),
    "C4": ("Environmental Living", "Conservation"),
    "W1": ("Natural Waterways", "Waterway"),
    "W2": ("Recreational Waterways", "Waterway"),
    "W3": ("Working Waterways", "Waterway"),
    "W4": ("Working Waterfront", "Waterway"),
}

# Nature of property codes
PROPERTY_TYPES: dict[str, str] = {
    "V": "Vacant land",
    "R": "Residence",
    "3": "Other",
}


def load_district_codes(path: str | Path) -> dict[str, str]:
    """Read a ``district_code,district_name`` CSV into a mapping.

    Codes are zero-padded to three digits to match extract filenames.

    Raises
    ------
    ConfigurationError
        If the file is missing or lacks the expected columns.
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        raise ConfigurationError(f"District codes file not found: {csv_path}")

    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = {"district_code", "district_name"} - set(reader.fieldnames or [])
        if missing:
            raise ConfigurationError(f"{csv_path} is missing columns: {sorted(missing)}")
        return {
            row["district_code"].strip().zfill(3): row["district_name"].strip()
            for row in reader
            if row["district_code"].strip()
        }
