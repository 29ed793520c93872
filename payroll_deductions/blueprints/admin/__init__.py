"""Admin blueprint package (exports admin_bp)."""

from .routes import admin_bp  # noqa: F401
