"""Enumeration types for sales extract entities."""

from enum import Enum


class RecordType(str, Enum):
    HEADER = "A"
    SALE = "B"
    LEGAL_DESCRIPTION = "C"
    INTEREST = "D"


class FileType(str, Enum):
    WEEKLY = "weekly"
    ANNUAL = "annual"


class ImportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AreaUnit(str, Enum):
    SQUARE_METRES = "M"
    HECTARES = "H"


class PlanType(str, Enum):
    DEPOSITED = "DP"
    STRATA = "SP"


class InterestType(str, Enum):
    PURCHASER = "P"
    VENDOR = "V"


class FileOutcome(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"
