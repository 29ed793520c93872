"""
payroll_deductions/blueprints/admin/routes.py

Admin Routes – Report Review

Includes:
- Dashboard with every submitted report of both companies
- Approve / reject decisions (writes status + 3 audit cells per row)

NOTES:
- UI is never trusted. Role, company and status are validated server-side.
- A decision is two store calls (find rows, write rows) with no lock between
  them.
"""

from __future__ import annotations

from flask import (
    Blueprint,
    render_template,
    request,
    redirect,
    url_for,
    flash,
)
from flask_login import login_required, current_user

from ...errors import DeductionsError
from ...models import DECISION_STATUSES, STATUS_APPROVED, STATUS_REJECTED, Company
from ...security import admin_required
from ...services import get_service

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# -------------------------------------------------------
# DASHBOARD
# -------------------------------------------------------
@admin_bp.route("/")
@login_required
@admin_required
def dashboard():
    """All reports, newest first (admin only)."""
    submissions = []
    error = None
    try:
        submissions = get_service().get_all_submissions()
    except DeductionsError as exc:
        error = str(exc)

    return render_template(
        "admin/dashboard.html",
        submissions=submissions,
        error=error,
        status_approved=STATUS_APPROVED,
        status_rejected=STATUS_REJECTED,
    )


# -------------------------------------------------------
# STATUS DECISION
# -------------------------------------------------------
@admin_bp.route("/reports/<report_id>/status", methods=["POST"])
@login_required
@admin_required
def update_status(report_id: str):
    """Approve or reject a report (admin only)."""
    company = Company.parse(request.form.get("company"))
    status = (request.form.get("status") or "").strip()

    if company is None:
        flash("لم يتم تحديد الشركة في هذا التقرير.", "danger")
        return redirect(url_for("admin.dashboard"))

    if status not in DECISION_STATUSES:
        flash("حالة غير صالحة.", "danger")
        return redirect(url_for("admin.dashboard"))

    try:
        message = get_service().update_report_status(report_id, company, status, current_user.email)
    except DeductionsError as exc:
        flash(str(exc), "danger")
        return redirect(url_for("admin.dashboard"))

    flash(message, "success")
    return redirect(url_for("admin.dashboard"))
