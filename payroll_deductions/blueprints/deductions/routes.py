"""
payroll_deductions/blueprints/deductions/routes.py

Deduction report entry.

Includes:
- /deductions/          form (GET renders, POST applies one editing action)
- /deductions/summary   read-only review with totals
- /deductions/submit    sends the report (POST)

Form actions (value of the pressed "action" button):
- company                       select company (clears the form on change)
- add_contractor
- remove_contractor-<i>
- add_deduction-<i>
- remove_deduction-<i>-<j>
- reset
- review                        go to the summary when the form is complete

IMPORTANT:
- Every POST first copies the typed fields into the session state, so no
  input is lost when a row is added or removed.
- Only simple required-field checks are done here.
"""

from __future__ import annotations

import re

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ...errors import DeductionsError
from ...form_state import DeductionFormState
from ...models import METER_UNITS, Company
from ...services import get_service

deductions_bp = Blueprint("deductions", __name__, url_prefix="/deductions")

_REMOVE_CONTRACTOR_RE = re.compile(r"^remove_contractor-(\d+)$")
_ADD_DEDUCTION_RE = re.compile(r"^add_deduction-(\d+)$")
_REMOVE_DEDUCTION_RE = re.compile(r"^remove_deduction-(\d+)-(\d+)$")

MSG_INCOMPLETE = "الرجاء تعبئة جميع الحقول المطلوبة لكل الخصومات (المميزة بعلامة *)."


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _load_options(company: str | None) -> dict:
    """
    Dropdown lists for the form.

    A failed lookup is flashed and the list left empty; the page offers a
    manual retry.
    """
    service = get_service()
    options = {"contractors": [], "contracts": [], "work_items": [], "load_failed": False}

    try:
        options["contractors"] = service.get_contractor_list()
    except DeductionsError as exc:
        flash(f"فشل تحميل المقاولين: {exc}", "danger")
        options["load_failed"] = True

    parsed = Company.parse(company)
    if parsed is not None:
        try:
            options["contracts"] = service.get_contract_list(parsed)
            options["work_items"] = service.get_work_item_list(parsed)
        except DeductionsError as exc:
            flash(f"لم نتمكن من تحميل القوائم من ملف إكسل الخاص بـ {parsed.value}: {exc}", "danger")
            options["load_failed"] = True

    return options


def _apply_action(state: DeductionFormState, action: str) -> str | None:
    """Apply one form action. Returns an endpoint to redirect to, if not the form."""
    if action == "company":
        if not state.set_company(request.form.get("company")):
            flash("الرجاء تحديد الجهة أولاً.", "warning")
        return None

    if action == "add_contractor":
        state.add_contractor()
        return None

    if action == "reset":
        state.reset()
        return None

    if action == "review":
        if not state.is_valid():
            flash(MSG_INCOMPLETE, "warning")
            return None
        return "deductions.summary"

    match = _REMOVE_CONTRACTOR_RE.match(action)
    if match:
        state.remove_contractor(int(match.group(1)))
        return None

    match = _ADD_DEDUCTION_RE.match(action)
    if match:
        state.add_deduction(int(match.group(1)))
        return None

    match = _REMOVE_DEDUCTION_RE.match(action)
    if match:
        state.remove_deduction(int(match.group(1)), int(match.group(2)))
        return None

    return None


# ---------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------
@deductions_bp.route("/", methods=["GET", "POST"])
@login_required
def form():
    state = DeductionFormState.load()

    if request.method == "POST":
        state.update_from_form(request.form)
        target = _apply_action(state, (request.form.get("action") or "").strip())
        state.save()
        return redirect(url_for(target or "deductions.form"))

    return render_template(
        "deductions/form.html",
        state=state,
        companies=[c.value for c in Company],
        meter_units=METER_UNITS,
        options=_load_options(state.company),
        is_valid=state.is_valid(),
    )


# ---------------------------------------------------------------------
# Review & submit
# ---------------------------------------------------------------------
@deductions_bp.route("/summary")
@login_required
def summary():
    state = DeductionFormState.load()
    if not state.is_valid():
        flash(MSG_INCOMPLETE, "warning")
        return redirect(url_for("deductions.form"))

    return render_template(
        "deductions/summary.html",
        company=state.company,
        contractors=state.to_contractors(),
        grand_total=state.grand_total,
    )


@deductions_bp.route("/submit", methods=["POST"])
@login_required
def submit():
    state = DeductionFormState.load()
    if not state.is_valid():
        flash(MSG_INCOMPLETE, "warning")
        return redirect(url_for("deductions.form"))

    try:
        message = get_service().submit_deductions(
            state.company, state.to_contractors(), current_user.email
        )
    except DeductionsError as exc:
        flash(str(exc), "danger")
        return redirect(url_for("deductions.summary"))

    DeductionFormState.clear()
    flash(message, "success")
    return redirect(url_for("history.index"))
