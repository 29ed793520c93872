"""
Utility functions shared across the views. This includes:
- status_badge_class: CSS class for a report status label (substring match).
- format_amount: display form of quantities, prices and totals.
"""

from __future__ import annotations

import math
from typing import Any

from .models import STATUS_APPROVED, STATUS_REJECTED


def status_badge_class(status: str | None) -> str:
    """
    Compute CSS class for a status badge.

    Status cells are free text, so the check is by substring:
    1) contains "مرفوض" -> red
    2) contains "موافقة" -> green
    3) anything else (pending) -> amber
    """
    status = (status or "").strip()

    if STATUS_REJECTED in status:
        return "badge-rejected"
    if STATUS_APPROVED in status:
        return "badge-approved"

    return "badge-pending"


def format_amount(value: Any, places: int = 2) -> str:
    """Two-decimal display. NaN is shown as-is; missing values as an empty string."""
    if value is None or value == "":
        return ""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if math.isnan(number):
        return "NaN"
    return f"{number:,.{places}f}"
