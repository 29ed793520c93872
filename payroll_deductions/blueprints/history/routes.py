"""
Submission history for the logged-in user.

Optional query filter: ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD (both
required for the filter to apply, inclusive).
"""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, flash, render_template, request
from flask_login import current_user, login_required

from ...errors import DeductionsError
from ...services import get_service

history_bp = Blueprint("history", __name__, url_prefix="/history")


def _parse_iso_date(value: str | None) -> str | None:
    """Return the value if it is a real YYYY-MM-DD date, else None."""
    raw = (value or "").strip()
    if not raw:
        return None
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date().isoformat()
    except ValueError:
        return None


@history_bp.route("/")
@login_required
def index():
    raw_start = request.args.get("start_date")
    raw_end = request.args.get("end_date")
    start_date = _parse_iso_date(raw_start)
    end_date = _parse_iso_date(raw_end)

    if (raw_start and not start_date) or (raw_end and not end_date):
        flash("صيغة التاريخ غير صحيحة. استخدم YYYY-MM-DD.", "warning")
    if start_date and end_date and start_date > end_date:
        start_date, end_date = end_date, start_date

    submissions = []
    error = None
    try:
        submissions = get_service().get_submission_history(
            current_user.email, start_date=start_date, end_date=end_date
        )
    except DeductionsError as exc:
        error = str(exc)

    return render_template(
        "history/list.html",
        submissions=submissions,
        error=error,
        start_date=start_date or "",
        end_date=end_date or "",
    )
