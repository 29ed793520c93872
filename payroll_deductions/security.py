"""
payroll_deductions/security.py

Access control helpers.

Key rules:
- UI is never trusted; all permission checks are server-side.
- Two roles only: "user" (data entry + own history) and "admin" (review
  dashboard + approve/reject).
- The role is fixed at login; it is never upgraded or downgraded later.

IMPORTANT:
- Decorators must preserve wrapped function metadata to avoid Flask endpoint collisions.
  We use functools.wraps everywhere.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Tuple
from urllib.parse import urlparse

from flask import render_template, url_for
from flask_login import current_user

from .models import ROLE_ADMIN


def _forbidden() -> Tuple[str, int]:
    """Render a consistent 403 page."""
    return render_template("errors/403.html"), 403


def is_admin() -> bool:
    """Return True if current user is authenticated and admin."""
    return bool(current_user.is_authenticated and getattr(current_user, "role", None) == ROLE_ADMIN)


def admin_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: admin-only."""
    @wraps(view_func)
    def wrapper(*args: Any, **kwargs: Any):
        if not is_admin():
            return _forbidden()
        return view_func(*args, **kwargs)

    return wrapper


def home_endpoint_for(role: str | None) -> str:
    """Landing page after login for a role."""
    if role == ROLE_ADMIN:
        return "admin.dashboard"
    return "deductions.form"


def safe_next_url(raw_next: str | None, fallback_endpoint: str) -> str:
    """
    Return a safe local next URL.

    Rules:
    - Only allow relative URLs (no scheme/netloc).
    - Fall back to an internal endpoint if invalid/empty.
    """
    if not raw_next:
        return url_for(fallback_endpoint)

    try:
        parsed = urlparse(raw_next)
    except ValueError:
        return url_for(fallback_endpoint)

    # Disallow external redirects
    if parsed.scheme or parsed.netloc:
        return url_for(fallback_endpoint)

    # Must start with a single /
    if not raw_next.startswith("/") or raw_next.startswith("//"):
        return url_for(fallback_endpoint)

    return raw_next
