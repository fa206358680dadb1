"""Parser for NSW Valuer General property sales extract (DAT) files.

Each line is semicolon-delimited and tagged by its first field:

- ``A``: file header
- ``B``: sale details, starts a new sale record
- ``C``: legal description (lot/plan) for the current sale
- ``D``: interest (purchaser/vendor) for the current sale

There is no end-of-record marker. A sale is complete when the next ``B``
line or the end of the file is reached.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

from sales_ingest.exceptions import ParseError
from sales_ingest.models.enums import PlanType, RecordType
from sales_ingest.models.sales import (
    BatchParseResult,
    FileParseError,
    HeaderRecord,
    InterestRecord,
    LegalDescription,
    LineError,
    ParsedFile,
    SaleRecord,
)
from sales_ingest.parsers.fields import (
    CHILD_KEY_FIELDS,
    HEADER_FIELDS,
    INTEREST_DETAIL_START,
    INTEREST_TYPE_FIELD,
    LEGAL_DESCRIPTION_FIELD,
    field_at,
    parse_sequence,
    sale_from_fields,
)

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_LENGTH = 100

_FILE_DATE = re.compile(r"(\d{2})(\d{2})(\d{4})\.DAT$", re.IGNORECASE)
_DISTRICT_PREFIX = re.compile(r"^(\d{3})_")
_LOT_PLAN = re.compile(r"^(\d+)/(\d+)$")
_STRATA_PLAN = re.compile(r"^SP(\d+)$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Record boundary state machine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoCurrentRecord:
    """No B line seen yet (start of file)."""


@dataclass(frozen=True)
class BuildingRecord:
    """A sale has been started and is collecting C/D children."""

    sale: SaleRecord


RecordState = Union[NoCurrentRecord, BuildingRecord]


def begin_sale(state: RecordState, sale: SaleRecord) -> tuple[RecordState, SaleRecord | None]:
    """Start ``sale``; returns the new state and the sale it finalized, if any."""
    finished = state.sale if isinstance(state, BuildingRecord) else None
    return BuildingRecord(sale), finished


def end_of_input(state: RecordState) -> SaleRecord | None:
    """Finalize the in-progress sale at end of file."""
    return state.sale if isinstance(state, BuildingRecord) else None


# ---------------------------------------------------------------------------
# Line decoders
# ---------------------------------------------------------------------------


def parse_filename(filename: str) -> tuple[str | None, str | None]:
    """Extract ``(district_code, file_date)`` from an extract filename.

    ``214_SALES_DATA_NNME_15122025.DAT`` gives ``("214", "20251215")``.
    Either value is None when the name does not follow the convention.
    """
    district_code = None
    file_date = None

    date_match = _FILE_DATE.search(filename)
    if date_match:
        day, month, year = date_match.groups()
        file_date = f"{year}{month}{day}"

    district_match = _DISTRICT_PREFIX.match(filename)
    if district_match:
        district_code = district_match.group(1)

    return district_code, file_date


def parse_header(fields: list[str]) -> HeaderRecord:
    """Parse an A line, e.g. ``A;RTSALEDATA;214;20251215 01:08;VALNET;``."""
    return HeaderRecord(**{name: field_at(fields, idx) for name, idx in HEADER_FIELDS.items()})


def _child_key(fields: list[str]) -> dict:
    return {
        "district_code": field_at(fields, CHILD_KEY_FIELDS["district_code"]),
        "property_id": field_at(fields, CHILD_KEY_FIELDS["property_id"]),
        "sale_sequence": parse_sequence(field_at(fields, CHILD_KEY_FIELDS["sale_sequence"])),
    }


def parse_legal_description(fields: list[str]) -> LegalDescription:
    """Parse a C line, e.g. ``C;214;2876965;1;20251215 01:08;13/1032686;``.

    ``13/1032686`` is lot 13 in deposited plan 1032686 and ``SP12345`` is
    strata plan 12345. Other shapes keep only the raw text.
    """
    raw = field_at(fields, LEGAL_DESCRIPTION_FIELD) or ""
    return LegalDescription(**_child_key(fields), **parse_lot_plan(raw))


def parse_lot_plan(raw: str) -> dict:
    lot_number = None
    plan_number = None
    plan_type = PlanType.DEPOSITED.value

    lot_plan = _LOT_PLAN.match(raw)
    if lot_plan:
        lot_number, plan_number = lot_plan.groups()

    strata = _STRATA_PLAN.match(raw)
    if strata:
        plan_type = PlanType.STRATA.value
        plan_number = strata.group(1)

    return {
        "legal_description": raw,
        "lot_number": lot_number,
        "plan_number": plan_number,
        "plan_type": plan_type,
    }


def parse_interest(fields: list[str]) -> InterestRecord:
    """Parse a D line, e.g. ``D;214;2876965;1;20251215 01:08;P;;;;;;``."""
    detail = ";".join(fields[INTEREST_DETAIL_START:]).strip()
    return InterestRecord(
        **_child_key(fields),
        interest_type=field_at(fields, INTEREST_TYPE_FIELD),
        interest_detail=detail or None,
    )


# ---------------------------------------------------------------------------
# File parsing
# ---------------------------------------------------------------------------


def parse_dat_content(
    content: str,
    filename: str,
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
) -> ParsedFile:
    """Parse the text of one extract file.

    Malformed lines are collected in ``parse_errors``; they never stop
    the parse. Line numbers are physical, 1-based line numbers.

    Parameters
    ----------
    content : str
        Full file text.
    filename : str
        Base filename; carries the district code and file date.
    preview_length : int
        Maximum characters of an offending line kept in a LineError.

    Returns
    -------
    ParsedFile
        Header, finalized sales in file order, and line errors.
    """
    district_code, file_date = parse_filename(filename)
    result = ParsedFile(filename=filename, file_date=file_date, district_code=district_code)

    state: RecordState = NoCurrentRecord()

    for line_number, raw_line in enumerate(content.split("\n"), start=1):
        line = raw_line.strip()
        if not line:
            continue

        fields = line.split(";")
        record_type = fields[0]

        try:
            if record_type == RecordType.HEADER.value:
                result.header = parse_header(fields)
            elif record_type == RecordType.SALE.value:
                sale = sale_from_fields(fields, file_date=file_date, source_file=filename)
                state, finished = begin_sale(state, sale)
                if finished is not None:
                    result.sales.append(finished)
            elif record_type == RecordType.LEGAL_DESCRIPTION.value:
                if isinstance(state, BuildingRecord):
                    state.sale.legal_descriptions.append(parse_legal_description(fields))
            elif record_type == RecordType.INTEREST.value:
                if isinstance(state, BuildingRecord):
                    state.sale.interests.append(parse_interest(fields))
            else:
                result.parse_errors.append(
                    LineError(
                        line=line_number,
                        content=line[:preview_length],
                        error=f"Unknown record type: {record_type}",
                    )
                )
        except Exception as e:
            result.parse_errors.append(
                LineError(line=line_number, content=line[:preview_length], error=str(e))
            )

    last = end_of_input(state)
    if last is not None:
        result.sales.append(last)

    return result


def parse_dat_file(
    file_path: str | Path,
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
) -> ParsedFile:
    """Read and parse one extract file.

    Raises
    ------
    ParseError
        If the file cannot be read.
    """
    path = Path(file_path)
    try:
        # Undecodable bytes are replaced rather than failing the whole file.
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ParseError(f"Cannot read {path}: {e}") from e

    parsed = parse_dat_content(content, path.name, preview_length=preview_length)
    if parsed.parse_errors:
        logger.debug("%s: %d unparseable lines", path.name, len(parsed.parse_errors))
    return parsed


def parse_dat_files(
    file_paths: Iterable[str | Path],
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
) -> BatchParseResult:
    """Parse several extract files independently.

    A file that cannot be read is reported in ``errors`` and the
    remaining files are still parsed.
    """
    paths = list(file_paths)
    results = BatchParseResult(total_files=len(paths))

    for file_path in paths:
        try:
            parsed = parse_dat_file(file_path, preview_length=preview_length)
        except ParseError as e:
            logger.error("Failed to parse %s: %s", file_path, e)
            results.errors.append(
                FileParseError(file=str(file_path), errors=[LineError(line=None, content=None, error=str(e))])
            )
            continue

        results.sales.extend(parsed.sales)
        results.total_sales += len(parsed.sales)
        results.processed_files += 1

        if parsed.parse_errors:
            results.errors.append(FileParseError(file=str(file_path), errors=parsed.parse_errors))

    return results
