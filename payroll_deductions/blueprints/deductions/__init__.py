"""
payroll_deductions/blueprints/deductions/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose deductions_bp for app factory registration.
- Keep import minimal to avoid side effects.
"""

from __future__ import annotations

from .routes import deductions_bp  # noqa: F401
