"""History blueprint package (exports history_bp)."""

from .routes import history_bp  # noqa: F401
