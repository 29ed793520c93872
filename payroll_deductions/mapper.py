"""
payroll_deductions/mapper.py

Row <-> Report mapping.

Flatten (submit direction):
- One row per (contractor, deduction), all sharing a single date/time pair
  generated once per submission. That pair is the only link back to "one
  report" when reading, so it must never be regenerated per row.

Reconstruct (read direction):
1) group rows by the exact (date, time) cells -> one report each
2) report header (company, user, status) comes from the group's first row;
   an empty status cell defaults to the pending label
3) contractors are sub-grouped by exact name; the first row of a contractor
   sets its notes, later rows' notes are ignored
4) meter-equivalent "<value> <unit>" is split on the first whitespace
5) non-numeric quantity/price become NaN (kept for display, 0 in totals)
6) grand total is recomputed from line items
7) reports are sorted newest first by the "date time" string
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterable, Sequence
from zoneinfo import ZoneInfo

from .models import (
    STATUS_PENDING,
    Company,
    Contractor,
    Deduction,
    Submission,
    SubmissionRow,
    as_amount,
    report_key,
)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


# ---------------------------------------------------------------------
# Cell parsing
# ---------------------------------------------------------------------
def parse_number(value: Any) -> float:
    """Parse a numeric cell. Anything that is not a number yields NaN."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raw = str(value if value is not None else "").strip()
    if raw == "":
        return math.nan
    try:
        return float(raw)
    except ValueError:
        return math.nan


def parse_meter_equivalent(value: Any) -> tuple[float | None, str]:
    """
    Split a "<value> <unit>" cell on the first whitespace.

    "12.5 متر مربع" -> (12.5, "متر مربع"); empty or malformed -> (None, "").
    """
    raw = str(value if value is not None else "").strip()
    if not raw:
        return None, ""

    parts = raw.split(None, 1)
    try:
        number = float(parts[0])
    except ValueError:
        return None, ""
    if math.isnan(number):
        return None, ""

    unit = parts[1].strip() if len(parts) > 1 else ""
    return number, unit


def local_now(tz_name: str) -> datetime:
    """Current wall-clock time in the configured zone."""
    return datetime.now(ZoneInfo(tz_name))


# ---------------------------------------------------------------------
# Flatten
# ---------------------------------------------------------------------
def flatten_submission(
    company: Company,
    contractors: Sequence[Contractor],
    user_email: str,
    now: datetime,
) -> list[list[Any]]:
    """
    Build the rows appended to "<company> REQUEST" for one submission.

    Quantity, price and total are written as numbers; everything else as text.
    The three decision cells are left empty.
    """
    date = now.strftime(DATE_FORMAT)
    time = now.strftime(TIME_FORMAT)
    company = Company(company)

    rows: list[list[Any]] = []
    for contractor in contractors:
        for deduction in contractor.deductions:
            quantity = as_amount(deduction.quantity)
            unit_price = as_amount(deduction.unit_price)
            rows.append(
                [
                    date,
                    time,
                    user_email,
                    company.value,
                    contractor.contractor_name,
                    deduction.contract_name or "",
                    deduction.item_name or "",
                    deduction.work_description or "",
                    deduction.meter_equivalent,
                    quantity,
                    unit_price,
                    quantity * unit_price,
                    deduction.person_name or "",
                    contractor.notes or "",
                    STATUS_PENDING,
                    "",
                    "",
                    "",
                ]
            )
    return rows


# ---------------------------------------------------------------------
# Reconstruct
# ---------------------------------------------------------------------
def _as_row(row: SubmissionRow | Sequence[Any]) -> SubmissionRow:
    if isinstance(row, SubmissionRow):
        return row
    return SubmissionRow.from_cells(row)


def _deduction_from_row(row: SubmissionRow) -> Deduction:
    meter_value, meter_unit = parse_meter_equivalent(row.meter_equivalent)
    return Deduction(
        contract_name=row.contract_name,
        item_name=row.item_name,
        work_description=row.work_description,
        meter_equivalent_value=meter_value,
        meter_equivalent_unit=meter_unit,
        quantity=parse_number(row.quantity),
        unit_price=parse_number(row.unit_price),
        person_name=row.person_name,
    )


def _submission_from_group(rows: list[SubmissionRow]) -> Submission:
    first = rows[0]

    contractors: dict[str, Contractor] = {}
    for row in rows:
        contractor = contractors.get(row.contractor_name)
        if contractor is None:
            contractor = Contractor(
                contractor_name=row.contractor_name,
                notes=row.notes,
                id=f"contractor-{row.contractor_name}",
            )
            contractors[row.contractor_name] = contractor
        contractor.deductions.append(_deduction_from_row(row))

    ordered = list(contractors.values())
    return Submission(
        report_id=first.report_id,
        timestamp=first.timestamp,
        user_email=first.user_email,
        status=first.status or STATUS_PENDING,
        company=Company.parse(first.company),
        contractors=ordered,
        grand_total=sum(c.subtotal for c in ordered),
    )


def reconstruct_submissions(rows: Iterable[SubmissionRow | Sequence[Any]]) -> list[Submission]:
    """Rebuild nested reports from flat storage rows, newest first."""
    groups: dict[tuple[str, str], list[SubmissionRow]] = {}
    for raw in rows:
        row = _as_row(raw)
        groups.setdefault((row.date, row.time), []).append(row)

    submissions = [_submission_from_group(group) for group in groups.values()]
    # "YYYY-MM-DD HH:MM" is zero padded, so string order is time order
    return sorted(submissions, key=lambda s: s.timestamp, reverse=True)


def row_matches_report(row: SubmissionRow, report_id: str) -> bool:
    """
    Prefix match of a row's derived key against a report key.

    The prefix tolerates stored times that carry seconds ("10:00:05") while the
    key was built with minute precision.
    """
    return report_key(row.date, row.time).startswith(report_id)
