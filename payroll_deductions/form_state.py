"""
payroll_deductions/form_state.py

In-progress deduction report, kept in the Flask session until it is submitted.

Shape stored under session["deduction_form"]:
    {
      "company": "DMC" | "CURVE" | None,
      "contractors": [
        {"id", "contractor_name", "notes",
         "deductions": [{"id", "contract_name", "item_name", "work_description",
                         "meter_equivalent_value", "meter_equivalent_unit",
                         "quantity", "unit_price", "person_name"}]}
      ]
    }

Field values are kept exactly as typed (strings) so a re-rendered form shows
what the user entered. Numbers are parsed only when converting to models.

Rules:
- Once a company is selected there is always at least one contractor, and
  every contractor keeps at least one deduction.
- Changing the company clears the form.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Mapping

from flask import session

from .models import METER_UNITS, Company, Contractor, Deduction, as_amount

SESSION_KEY = "deduction_form"

DEDUCTION_FIELDS = (
    "contract_name",
    "item_name",
    "work_description",
    "meter_equivalent_value",
    "meter_equivalent_unit",
    "quantity",
    "unit_price",
    "person_name",
)
CONTRACTOR_FIELDS = ("contractor_name", "notes")

_CONTRACTOR_FIELD_RE = re.compile(r"^contractors-(\d+)-(contractor_name|notes)$")
_DEDUCTION_FIELD_RE = re.compile(r"^contractors-(\d+)-deductions-(\d+)-([a-z_]+)$")


def _parse_float(value: Any) -> float | None:
    """Parse a number typed by the user (accepts comma or dot). Empty/invalid -> None."""
    if value is None:
        return None
    raw = str(value).strip().replace(",", ".")
    if raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _new_deduction() -> dict:
    data = {name: "" for name in DEDUCTION_FIELDS}
    data["meter_equivalent_unit"] = METER_UNITS[0]
    data["id"] = f"deduction-{uuid.uuid4().hex[:12]}"
    return data


def _new_contractor() -> dict:
    return {
        "id": f"contractor-{uuid.uuid4().hex[:12]}",
        "contractor_name": "",
        "notes": "",
        "deductions": [_new_deduction()],
    }


class DeductionFormState:
    """Mutable wrapper around the session payload."""

    def __init__(self, data: Mapping[str, Any] | None = None):
        data = dict(data or {})
        self.company: str | None = data.get("company")
        self.contractors: list[dict] = [dict(c) for c in data.get("contractors", [])]

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    @classmethod
    def load(cls) -> DeductionFormState:
        return cls(session.get(SESSION_KEY))

    def save(self) -> None:
        session[SESSION_KEY] = self.to_dict()
        session.modified = True

    @staticmethod
    def clear() -> None:
        session.pop(SESSION_KEY, None)

    def to_dict(self) -> dict:
        return {"company": self.company, "contractors": self.contractors}

    # ------------------------------------------------------------------
    # Company
    # ------------------------------------------------------------------
    def set_company(self, value: Any) -> bool:
        """Select a company. Returns False for an unknown value."""
        company = Company.parse(value)
        if company is None:
            return False
        if company.value != self.company:
            self.reset()
            self.company = company.value
        self._ensure_contractor()
        return True

    def reset(self) -> None:
        self.company = None
        self.contractors = []

    def _ensure_contractor(self) -> None:
        if self.company and not self.contractors:
            self.contractors.append(_new_contractor())

    # ------------------------------------------------------------------
    # Contractors
    # ------------------------------------------------------------------
    def add_contractor(self) -> None:
        if self.company:
            self.contractors.append(_new_contractor())

    def remove_contractor(self, index: int) -> bool:
        if len(self.contractors) <= 1 or not 0 <= index < len(self.contractors):
            return False
        del self.contractors[index]
        return True

    def update_contractor(self, index: int, **values: Any) -> None:
        contractor = self.contractors[index]
        for name, value in values.items():
            if name in CONTRACTOR_FIELDS:
                contractor[name] = "" if value is None else str(value)

    # ------------------------------------------------------------------
    # Deductions
    # ------------------------------------------------------------------
    def add_deduction(self, contractor_index: int) -> None:
        if 0 <= contractor_index < len(self.contractors):
            self.contractors[contractor_index]["deductions"].append(_new_deduction())

    def remove_deduction(self, contractor_index: int, deduction_index: int) -> bool:
        if not 0 <= contractor_index < len(self.contractors):
            return False
        deductions = self.contractors[contractor_index]["deductions"]
        if len(deductions) <= 1 or not 0 <= deduction_index < len(deductions):
            return False
        del deductions[deduction_index]
        return True

    def update_deduction(self, contractor_index: int, deduction_index: int, **values: Any) -> None:
        deduction = self.contractors[contractor_index]["deductions"][deduction_index]
        for name, value in values.items():
            if name in DEDUCTION_FIELDS:
                deduction[name] = "" if value is None else str(value)

    # ------------------------------------------------------------------
    # Posted form
    # ------------------------------------------------------------------
    def update_from_form(self, form: Mapping[str, Any]) -> None:
        """Copy posted indexed fields into the state. Unknown indexes are ignored."""
        for key, value in form.items():
            match = _CONTRACTOR_FIELD_RE.match(key)
            if match:
                c_idx = int(match.group(1))
                if c_idx < len(self.contractors):
                    self.update_contractor(c_idx, **{match.group(2): value})
                continue

            match = _DEDUCTION_FIELD_RE.match(key)
            if match:
                c_idx, d_idx, name = int(match.group(1)), int(match.group(2)), match.group(3)
                if c_idx < len(self.contractors) and d_idx < len(self.contractors[c_idx]["deductions"]):
                    self.update_deduction(c_idx, d_idx, **{name: value})

    # ------------------------------------------------------------------
    # Validation and totals
    # ------------------------------------------------------------------
    @staticmethod
    def _deduction_complete(d: Mapping[str, Any]) -> bool:
        quantity = _parse_float(d.get("quantity"))
        unit_price = _parse_float(d.get("unit_price"))
        return bool(
            (d.get("contract_name") or "").strip()
            and (d.get("item_name") or "").strip()
            and (d.get("work_description") or "").strip()
            and quantity is not None
            and quantity > 0
            and unit_price is not None
            and unit_price >= 0
        )

    def is_valid(self) -> bool:
        """Required-field check across the whole form."""
        if Company.parse(self.company) is None or not self.contractors:
            return False
        for contractor in self.contractors:
            if not (contractor.get("contractor_name") or "").strip():
                return False
            deductions = contractor.get("deductions") or []
            if not deductions or not all(self._deduction_complete(d) for d in deductions):
                return False
        return True

    def to_contractors(self) -> list[Contractor]:
        contractors = []
        for c in self.contractors:
            deductions = [
                Deduction(
                    contract_name=(d.get("contract_name") or "").strip(),
                    item_name=(d.get("item_name") or "").strip(),
                    work_description=(d.get("work_description") or "").strip(),
                    meter_equivalent_value=_parse_float(d.get("meter_equivalent_value")),
                    meter_equivalent_unit=(d.get("meter_equivalent_unit") or "").strip(),
                    quantity=_parse_float(d.get("quantity")),
                    unit_price=_parse_float(d.get("unit_price")),
                    person_name=(d.get("person_name") or "").strip(),
                    id=d.get("id") or f"deduction-{uuid.uuid4().hex[:12]}",
                )
                for d in c.get("deductions") or []
            ]
            contractors.append(
                Contractor(
                    contractor_name=(c.get("contractor_name") or "").strip(),
                    notes=(c.get("notes") or "").strip(),
                    deductions=deductions,
                    id=c.get("id") or f"contractor-{uuid.uuid4().hex[:12]}",
                )
            )
        return contractors

    @staticmethod
    def line_total(d: Mapping[str, Any]) -> float:
        return as_amount(_parse_float(d.get("quantity"))) * as_amount(_parse_float(d.get("unit_price")))

    @property
    def grand_total(self) -> float:
        return sum(self.line_total(d) for c in self.contractors for d in c.get("deductions") or [])
