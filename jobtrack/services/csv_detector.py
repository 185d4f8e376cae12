from __future__ import annotations

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation
from typing import Dict, Iterator, List, Optional, Tuple, Union

from jobtrack.services.cost_table import DEFAULT_COST_TABLE, CostTable

logger = logging.getLogger(__name__)

LABOUR = "labour"
MATERIAL = "material"
OTHER = "other"

HEADER = "header"
METADATA = "metadata"
DATA = "data"
NOISE = "noise"

JOB_FIELDS = ("name", "address", "post_code", "project_type")

# Normalised header text -> semantic field. New export formats are added here.
HEADER_SYNONYMS: Dict[str, str] = {
    "name": "name",
    "job name": "name",
    "job": "name",
    "site name": "name",
    "client": "name",
    "client name": "name",
    "address": "address",
    "site address": "address",
    "job address": "address",
    "post code": "post_code",
    "postcode": "post_code",
    "postal code": "post_code",
    "project type": "project_type",
    "job type": "project_type",
    "build phase": "phase",
    "phase": "phase",
    "phase name": "phase",
    "stage": "phase",
    "work stage": "phase",
    "type of resource": "resource_kind",
    "resource category": "resource_kind",
    "resource kind": "resource_kind",
    "resource type": "trade",
    "trade": "trade",
    "resource description": "description",
    "description": "description",
    "order quantity": "quantity",
    "quantity": "quantity",
    "qty": "quantity",
    "hours": "labour_hours",
    "labour hours": "labour_hours",
    "labor hours": "labour_hours",
    "days": "labour_days",
    "labour days": "labour_days",
    "labor days": "labour_days",
    "required labour days": "labour_days",
    "labour": "labour_cost",
    "labour cost": "labour_cost",
    "labor cost": "labour_cost",
    "labour rate": "labour_cost",
    "labour total": "labour_cost",
    "material": "material_cost",
    "materials": "material_cost",
    "material cost": "material_cost",
    "materials cost": "material_cost",
    "parts": "material_cost",
    "parts cost": "material_cost",
    "plant": "other_cost",
    "plant cost": "other_cost",
    "other cost": "other_cost",
    "cost": "cost",
    "total": "cost",
    "total cost": "cost",
    "line total": "cost",
    "amount": "cost",
    "price": "cost",
    "order date": "order_date",
    "date required": "date_required",
    "supplier": "supplier",
}

# Cost-bearing field -> category. None: take the category from the row's resource kind.
COST_COLUMNS: Dict[str, Optional[str]] = {
    "labour_cost": LABOUR,
    "material_cost": MATERIAL,
    "other_cost": OTHER,
    "cost": None,
}

RESOURCE_KIND_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("labour", LABOUR),
    ("labor", LABOUR),
    ("material", MATERIAL),
)

_CURRENCY_SYMBOLS = "£$€"
_DESCRIPTION_PRICE = re.compile(r"[£$€]\s*([\d,]+(?:\.\d+)?)")
_BRACKETED = re.compile(r"\(.*?\)")
_NON_WORD = re.compile(r"[^0-9a-z]+")


class CsvNoDataError(ValueError):
    """Content is not readable as delimited text at all."""


@dataclass(frozen=True)
class PhaseSummary:
    name: str
    labour_cost: int = 0
    material_cost: int = 0
    labour_hours: float = 0.0
    labour_days: float = 0.0


@dataclass(frozen=True)
class DetectedJob:
    name: str
    address: str
    post_code: str
    project_type: str
    phases: Tuple[str, ...]
    resource_count: int
    total_labour_cost: int
    total_material_cost: int
    phase_breakdown: Tuple[PhaseSummary, ...] = ()


@dataclass(frozen=True)
class DetectionResult:
    jobs: Tuple[DetectedJob, ...] = ()

    @property
    def total_jobs(self) -> int:
        return len(self.jobs)


@dataclass(frozen=True)
class _ResourceLine:
    phase_name: str
    category: str
    cost: int
    labour_hours: float = 0.0
    labour_days: float = 0.0


def normalise_header(cell: str) -> str:
    text = _BRACKETED.sub(" ", str(cell or "").lower())
    return " ".join(_NON_WORD.sub(" ", text).split())


def _field_for(cell: str) -> Optional[str]:
    return HEADER_SYNONYMS.get(normalise_header(cell))


def parse_minor_units(raw: str) -> Optional[int]:
    """
    "£1,010.50" -> 101050, "(12.5)" -> -1250. None when not a number.
    Rounds half away from zero.
    """
    text = str(raw or "").strip()
    if not text:
        return None

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]

    for symbol in _CURRENCY_SYMBOLS:
        text = text.replace(symbol, "")
    text = text.replace(",", "").replace(" ", "")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None

    minor = _to_minor(amount, 100)
    if minor is None:
        return None
    return -minor if negative else minor


def _to_minor(*factors: Decimal) -> Optional[int]:
    # None when the product does not fit the decimal context (e.g. "1e30")
    try:
        product = Decimal(1)
        for factor in factors:
            product *= factor
        return int(product.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except DecimalException:
        return None


def _parse_decimal(raw: str) -> Optional[Decimal]:
    text = str(raw or "").replace(",", "").strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0 or math.isinf(float(value)):
        return None
    return value


def _coerce_text(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CsvNoDataError("Content is not UTF-8 text") from exc
    if not isinstance(content, str):
        raise CsvNoDataError("Content must be text")
    if "\x00" in content:
        raise CsvNoDataError("Content looks binary, not delimited text")
    return content.lstrip("\ufeff")


def _read_rows(text: str) -> Iterator[Tuple[int, List[str]]]:
    try:
        for row_number, cells in enumerate(csv.reader(io.StringIO(text)), start=1):
            if any(cell.strip() for cell in cells):
                yield row_number, cells
    except csv.Error as exc:
        raise CsvNoDataError(f"Content is not parseable as CSV: {exc}") from exc


def _classify(cells: List[str], mapping: Optional[Dict[int, str]]) -> str:
    fields = [_field_for(c) for c in cells]
    known = [f for f in fields if f]
    non_empty = [c for c in cells if c.strip()]

    # every cell a known header, e.g. "Name,Labour Cost"; "Name,Site A" stays metadata
    if len(known) >= 2 and len(known) == len(non_empty):
        return HEADER

    label_value = fields[0] in JOB_FIELDS and not any(f in JOB_FIELDS for f in fields[1:])
    if len(known) >= 2 and len(known) * 2 >= len(non_empty) and not (label_value and len(known) < 3):
        return HEADER
    if fields[0] in JOB_FIELDS:
        return METADATA
    if mapping:
        return DATA
    return NOISE


def _warn_multiline(row_number: int, field_name: str, value: str) -> None:
    # an unbalanced quote makes the reader swallow following rows into one cell
    if "\n" in value or "\r" in value:
        logger.warning(
            "Cell spans several lines; check for an unbalanced quote",
            extra={"row_number": row_number, "field": field_name, "raw_value": value[:200]},
        )


def _column_mapping(cells: List[str]) -> Dict[int, str]:
    mapping: Dict[int, str] = {}
    for idx, cell in enumerate(cells):
        field_name = _field_for(cell)
        if field_name:
            mapping[idx] = field_name
    return mapping


def _record(cells: List[str], mapping: Dict[int, str]) -> Dict[str, str]:
    # first non-empty cell wins when several columns share a field
    record: Dict[str, str] = {}
    for idx in sorted(mapping):
        if idx >= len(cells):
            continue
        value = cells[idx].strip()
        if value and mapping[idx] not in record:
            record[mapping[idx]] = value
    return record


def _resource_kind(value: str) -> Optional[str]:
    text = value.strip().lower()
    if not text:
        return None
    for prefix, category in RESOURCE_KIND_PREFIXES:
        if text.startswith(prefix):
            return category
    return OTHER


def _cost_or_zero(raw: str, row_number: int, field_name: str) -> int:
    cost = parse_minor_units(raw)
    if cost is None or cost < 0:
        logger.warning(
            "Unusable cost cell; contributing 0",
            extra={"row_number": row_number, "field": field_name, "raw_value": raw},
        )
        return 0
    return cost


class _Block:
    """Open job block while scanning; closed into an immutable DetectedJob."""

    def __init__(self, name: str = "") -> None:
        self.meta: Dict[str, str] = {f: "" for f in JOB_FIELDS}
        self.meta["name"] = name
        self.lines: List[_ResourceLine] = []
        self.phases: List[str] = []
        self.current_phase = ""

    def is_unused(self) -> bool:
        return not self.meta["name"] and not self.lines and not self.phases

    def is_empty(self) -> bool:
        return not self.lines and not self.phases and not any(self.meta.values())

    def fill(self, record: Dict[str, str]) -> None:
        for field_name in JOB_FIELDS[1:]:
            if record.get(field_name) and not self.meta[field_name]:
                self.meta[field_name] = record[field_name]

    def note_phase(self, phase_name: str) -> str:
        if phase_name:
            self.current_phase = phase_name
            if phase_name not in self.phases:
                self.phases.append(phase_name)
        return self.current_phase

    def close(self) -> DetectedJob:
        labour = 0
        material = 0
        per_phase: Dict[str, Dict[str, float]] = {
            p: {"labour_cost": 0, "material_cost": 0, "labour_hours": 0.0, "labour_days": 0.0}
            for p in self.phases
        }
        for line in self.lines:
            bucket = per_phase.get(line.phase_name)
            if line.category == LABOUR:
                labour += line.cost
                if bucket is not None:
                    bucket["labour_cost"] += line.cost
                    bucket["labour_hours"] += line.labour_hours
                    bucket["labour_days"] += line.labour_days
            elif line.category == MATERIAL:
                material += line.cost
                if bucket is not None:
                    bucket["material_cost"] += line.cost

        return DetectedJob(
            name=self.meta["name"],
            address=self.meta["address"],
            post_code=self.meta["post_code"],
            project_type=self.meta["project_type"],
            phases=tuple(self.phases),
            resource_count=len(self.lines),
            total_labour_cost=labour,
            total_material_cost=material,
            phase_breakdown=tuple(
                PhaseSummary(
                    name=p,
                    labour_cost=int(per_phase[p]["labour_cost"]),
                    material_cost=int(per_phase[p]["material_cost"]),
                    labour_hours=float(per_phase[p]["labour_hours"]),
                    labour_days=float(per_phase[p]["labour_days"]),
                )
                for p in self.phases
            ),
        )


def _resource_lines(
    record: Dict[str, str],
    phase_name: str,
    row_number: int,
    cost_table: CostTable,
) -> List[_ResourceLine]:
    kind = _resource_kind(record.get("resource_kind", ""))

    hours = 0.0
    if record.get("labour_hours"):
        parsed = _parse_decimal(record["labour_hours"])
        hours = float(parsed) if parsed is not None else 0.0
    elif kind == LABOUR and record.get("quantity"):
        # the schedule export stores labour quantity in hours
        parsed = _parse_decimal(record["quantity"])
        hours = float(parsed) if parsed is not None else 0.0

    days = 0.0
    if record.get("labour_days"):
        parsed = _parse_decimal(record["labour_days"])
        days = float(parsed) if parsed is not None else 0.0

    priced: List[Tuple[str, int]] = []
    for field_name, column_category in COST_COLUMNS.items():
        raw = record.get(field_name)
        if not raw:
            continue
        category = column_category or kind or OTHER
        priced.append((category, _cost_or_zero(raw, row_number, field_name)))

    if not priced and kind is not None:
        priced.append((kind, _cost_from_description(record, kind, hours, row_number, cost_table)))

    lines: List[_ResourceLine] = []
    time_attached = False
    for category, cost in priced:
        if category == LABOUR and not time_attached:
            lines.append(_ResourceLine(phase_name, category, cost, labour_hours=hours, labour_days=days))
            time_attached = True
        else:
            lines.append(_ResourceLine(phase_name, category, cost))
    return lines


def _cost_from_description(
    record: Dict[str, str],
    kind: str,
    hours: float,
    row_number: int,
    cost_table: CostTable,
) -> int:
    quantity = Decimal(1)
    if record.get("quantity"):
        parsed = _parse_decimal(record["quantity"])
        if parsed is None:
            logger.warning(
                "Unusable quantity cell; contributing 0",
                extra={"row_number": row_number, "field": "quantity", "raw_value": record["quantity"]},
            )
            return 0
        quantity = parsed

    cost: Optional[int] = 0
    match = _DESCRIPTION_PRICE.search(record.get("description", ""))
    if match:
        cost = _to_minor(Decimal(match.group(1).replace(",", "")), quantity, 100)
    elif kind == LABOUR and hours > 0:
        rate = cost_table.rate_for(record.get("trade", ""))
        if rate is not None:
            cost = _to_minor(Decimal(str(hours)), rate)

    if cost is None:
        logger.warning(
            "Unusable cost cell; contributing 0",
            extra={"row_number": row_number, "field": "description", "raw_value": record.get("description", "")},
        )
        return 0
    return cost


def detect(
    content: Union[str, bytes],
    fallback_name: str = "",
    cost_table: CostTable = DEFAULT_COST_TABLE,
) -> DetectionResult:
    """
    Detect construction jobs in a spreadsheet export.

    Handles both the per-job schedule export (``Name,<value>`` metadata rows
    followed by a header row and resource rows, repeated per job) and flat
    exports where every row carries a Name column. Malformed cells degrade to
    zero contributions; only non-text content raises CsvNoDataError.
    """
    text = _coerce_text(content)
    if not text.strip():
        return DetectionResult()

    blocks: List[_Block] = [_Block()]
    # blocks opened from a Name column under the current header, by name
    named_rows: Dict[str, _Block] = {}
    mapping: Optional[Dict[int, str]] = None
    saw_job_start = False

    def start_job(name: str) -> _Block:
        current = blocks[-1]
        if current.is_unused():
            current.meta["name"] = name
            return current
        blocks.append(_Block(name))
        return blocks[-1]

    block = blocks[0]
    for row_number, cells in _read_rows(text):
        kind = _classify(cells, mapping)

        if kind == HEADER:
            mapping = _column_mapping(cells)
            if "name" in mapping.values():
                named_rows = {}
                if not block.is_unused():
                    # a Name column reappearing further down starts the next job
                    block = start_job("")
            continue

        if kind == METADATA:
            field_name = _field_for(cells[0])
            value = ", ".join(c.strip() for c in cells[1:] if c.strip())
            if field_name == "name":
                _warn_multiline(row_number, "name", value)
                saw_job_start = True
                named_rows = {}
                block = start_job(value)
            elif value:
                block.meta[field_name] = value
            continue

        if kind == DATA:
            record = _record(cells, mapping)
            name = record.get("name", "")
            _warn_multiline(row_number, "name", name)
            _warn_multiline(row_number, "phase", record.get("phase", ""))
            if name and name != block.meta["name"]:
                saw_job_start = True
                # rows of one job need not be adjacent in a flat export
                block = named_rows.get(name) or start_job(name)
                named_rows[name] = block
            block.fill(record)
            phase_name = block.note_phase(record.get("phase", ""))
            block.lines.extend(_resource_lines(record, phase_name, row_number, cost_table))
            continue

        logger.debug("Skipping noise row", extra={"row_number": row_number})

    closed = [b.close() for b in blocks if not b.is_empty()]

    if not saw_job_start and closed:
        first = closed[0]
        best_effort = fallback_name.strip() or first.address
        if not first.name and best_effort:
            closed[0] = replace(first, name=best_effort)

    jobs = tuple(job for job in closed if job.name)
    dropped = len(closed) - len(jobs)
    if dropped:
        logger.info("Discarded unnamed job blocks", extra={"dropped_blocks": dropped})

    logger.info("CSV detection finished", extra={"total_jobs": len(jobs)})
    return DetectionResult(jobs=jobs)
