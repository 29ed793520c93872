"""
Payroll Deductions – Domain Models

Plain dataclasses for the report aggregate and the typed storage row.

Storage layout (one spreadsheet, tables addressed by name):
- "Users"            : Email | Password | Role
- "Contractors"      : Contractor Name
- "<COMPANY> DATA"   : Contract Name | Work Item
- "<COMPANY> REQUEST": 18 fixed columns, one row per deduction line item

IMPORTANT:
- No report or contractor id is persisted. A report is the set of rows sharing
  the same (date, time) cells; a contractor is identified by its name inside
  that report.
- Totals are never trusted from storage. They are recomputed from quantity and
  unit price every time a report is rebuilt.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Sequence

from flask_login import UserMixin


# ---------------------------------------------------------------------
# Fixed labels
# ---------------------------------------------------------------------
STATUS_PENDING = "قيد المراجعة"
STATUS_APPROVED = "موافقة"
STATUS_REJECTED = "مرفوض"
DECISION_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

METER_UNITS = ["متر مسطح", "متر مربع", "متر مكعب"]

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class Company(str, Enum):
    """The two organisational contexts a report can belong to."""

    DMC = "DMC"
    CURVE = "CURVE"

    @property
    def requests_table(self) -> str:
        return f"{self.value} REQUEST"

    @property
    def data_table(self) -> str:
        return f"{self.value} DATA"

    @classmethod
    def parse(cls, value: Any) -> Company | None:
        """Return the Company for a raw value, or None if it is not one of ours."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip())
        except ValueError:
            return None


# ---------------------------------------------------------------------
# Table names and headers
# ---------------------------------------------------------------------
USERS_TABLE = "Users"
CONTRACTORS_TABLE = "Contractors"

SUBMISSION_HEADERS = [
    "التاريخ", "الوقت", "المهندس /المشرف", "الشركة", "اسم المقاول", "اسم العقد",
    "بند العمل", "بيان العمل", "مايوازي بالمتر", "عدد اليوميات", "الفئه",
    "الاجمالي", "بالخصم علي", "ملحوظه", "الحالة",
    "تاريخ التأكيد", "وقت التأكيد", "المؤكد بواسطة",
]
USER_HEADERS = ["Email", "Password", "Role"]
DATA_HEADERS = ["Contract Name", "Work Item"]
CONTRACTOR_LIST_HEADERS = ["Contractor Name"]


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def as_amount(value: Any) -> float:
    """Numeric value for arithmetic: anything non-numeric (including NaN) counts as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------
# Report aggregate
# ---------------------------------------------------------------------
@dataclass
class Deduction:
    """One chargeable work entry against a contractor."""

    contract_name: str = ""
    item_name: str = ""
    work_description: str = ""
    meter_equivalent_value: float | None = None
    meter_equivalent_unit: str = ""
    # float('nan') when the stored cell is not numeric; kept for display
    quantity: float | None = None
    unit_price: float | None = None
    person_name: str = ""
    id: str = field(default_factory=lambda: _new_id("deduction"))

    @property
    def total(self) -> float:
        return as_amount(self.quantity) * as_amount(self.unit_price)

    @property
    def meter_equivalent(self) -> str:
        """Composed "<value> <unit>" cell, empty when no value is set."""
        if self.meter_equivalent_value in (None, ""):
            return ""
        return f"{format_number(self.meter_equivalent_value)} {self.meter_equivalent_unit}".strip()


@dataclass
class Contractor:
    """A contractor block of a report with its ordered line items."""

    contractor_name: str = ""
    notes: str = ""
    deductions: list[Deduction] = field(default_factory=list)
    id: str = field(default_factory=lambda: _new_id("contractor"))

    @property
    def subtotal(self) -> float:
        return sum(d.total for d in self.deductions)


@dataclass
class Submission:
    """A persisted report rebuilt from storage rows."""

    report_id: str
    timestamp: str
    user_email: str
    status: str
    company: Company | None
    contractors: list[Contractor] = field(default_factory=list)
    grand_total: float = 0.0

    @property
    def is_approved(self) -> bool:
        return STATUS_APPROVED in (self.status or "")

    @property
    def is_rejected(self) -> bool:
        return STATUS_REJECTED in (self.status or "")

    @property
    def is_pending(self) -> bool:
        return not (self.is_approved or self.is_rejected)


def format_number(value: Any) -> str:
    """Render a number the way a spreadsheet cell shows it (12.0 -> "12")."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


# ---------------------------------------------------------------------
# Typed storage rows
# ---------------------------------------------------------------------
def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return format_number(value)
    return str(value)


@dataclass
class SubmissionRow:
    """
    One row of a "<COMPANY> REQUEST" table, decoded by name.

    Field order is the column order (A..R). Rows shorter than the schema are
    padded with empty strings; cells past column R are ignored.
    """

    date: str = ""
    time: str = ""
    user_email: str = ""
    company: str = ""
    contractor_name: str = ""
    contract_name: str = ""
    item_name: str = ""
    work_description: str = ""
    meter_equivalent: str = ""
    quantity: str = ""
    unit_price: str = ""
    total: str = ""
    person_name: str = ""
    notes: str = ""
    status: str = ""
    decision_date: str = ""
    decision_time: str = ""
    decided_by: str = ""

    @classmethod
    def width(cls) -> int:
        return len(fields(cls))

    @classmethod
    def from_cells(cls, cells: Sequence[Any]) -> SubmissionRow:
        values = [cell_text(c) for c in list(cells)[: cls.width()]]
        values += [""] * (cls.width() - len(values))
        return cls(*values)

    def to_cells(self) -> list[str]:
        return [getattr(self, f.name) for f in fields(self)]

    @property
    def timestamp(self) -> str:
        return f"{self.date} {self.time}"

    @property
    def report_id(self) -> str:
        return report_key(self.date, self.time)


def report_key(date: str, time: str) -> str:
    """
    Derive the report key for a (date, time) pair.

    "2024-05-23" + "14:30" -> "report-2024-05-23-14-30"
    """
    stamp = f"{date} {time}"
    return "report-" + stamp.replace(" ", "-").replace(":", "-")


@dataclass
class UserRecord:
    """A row of the Users table. Passwords are stored as plain text in the sheet."""

    email: str
    password: str
    role: str

    @classmethod
    def from_cells(cls, cells: Sequence[Any]) -> UserRecord:
        cells = list(cells) + [""] * 3
        email = cell_text(cells[0]).strip().lower()
        password = cell_text(cells[1]).strip()
        role = (cell_text(cells[2]).strip() or ROLE_USER).lower()
        return cls(email=email, password=password, role=role)


# ---------------------------------------------------------------------
# Session identity
# ---------------------------------------------------------------------
class SessionUser(UserMixin):
    """Logged-in identity kept by Flask-Login. The id encodes "<role>:<email>"."""

    def __init__(self, email: str, role: str):
        self.email = email
        self.role = role

    def get_id(self) -> str:
        return f"{self.role}:{self.email}"

    @classmethod
    def from_id(cls, user_id: str) -> SessionUser | None:
        role, sep, email = (user_id or "").partition(":")
        if not sep or role not in ROLES or not email:
            return None
        return cls(email=email, role=role)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self):
        return f"<SessionUser {self.email} ({self.role})>"
