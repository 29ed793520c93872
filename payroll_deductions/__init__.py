"""
payroll_deductions/__init__.py

Flask application factory for the Payroll Deductions reporting app.

Requirements:
- Server-side rendering, Arabic RTL UI.
- All persistence goes through a spreadsheet row store; without credentials
  the app runs against an in-process fallback store.
- UI is never trusted; role checks are enforced in routes.

Navigation:
- Users: new report, report history.
- Admins: review dashboard.
Items are filtered for visibility, BUT all permissions are enforced server-side.
"""

from __future__ import annotations

import logging

import click
from flask import Flask, flash, redirect, render_template, request, url_for
from flask_login import current_user

from .errors import DeductionsError
from .extensions import csrf, login_manager
from .logging_setup import configure_logging
from .models import SessionUser
from .security import home_endpoint_for
from .store import FALLBACK_STORE, build_row_store
from .timestamps import format_timestamp
from .utils import format_amount, status_badge_class

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# NAVIGATION STRUCTURE (UI visibility only; security enforced in routes)
# -------------------------------------------------------------------

NAV_ITEMS = [
    {"label": "تقرير جديد", "endpoint": "deductions.form", "admin_only": False},
    {"label": "سجل التقارير", "endpoint": "history.index", "admin_only": False},
    {"label": "مراجعة التقارير", "endpoint": "admin.dashboard", "admin_only": True},
]


def create_app(config_object: str | type = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Extensions
    csrf.init_app(app)

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "الرجاء تسجيل الدخول أولاً."
    login_manager.login_message_category = "info"

    @login_manager.user_loader
    def load_user(user_id: str) -> SessionUser | None:
        """Rebuild the session identity for Flask-Login."""
        return SessionUser.from_id(user_id)

    # ----------------------------------------------------------------------
    # Row store (None -> fallback mode)
    # ----------------------------------------------------------------------
    app.extensions["row_store"] = build_row_store(app.config)
    app.extensions["fallback_store"] = FALLBACK_STORE

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.auth import auth_bp
    from .blueprints.deductions import deductions_bp
    from .blueprints.history import history_bp
    from .blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(deductions_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(admin_bp)

    # ----------------------------------------------------------------------
    # Template helpers
    # ----------------------------------------------------------------------
    @app.template_filter("sheet_timestamp")
    def sheet_timestamp_filter(value):
        return format_timestamp(
            value,
            locale=app.config.get("DISPLAY_LOCALE", "ar_EG"),
            tz_name=app.config.get("LOCAL_TIMEZONE", "Africa/Cairo"),
        )

    app.add_template_filter(format_amount, "amount")
    app.add_template_filter(status_badge_class, "status_badge")

    @app.context_processor
    def inject_globals():
        """
        Inject navigation filtered by role.

        SECURITY NOTE:
        - This only filters visibility. Routes enforce permissions.
        """
        nav_items = []
        if current_user.is_authenticated:
            for item in NAV_ITEMS:
                if item["admin_only"] and not current_user.is_admin:
                    continue
                nav_items.append(item)

        return {
            "config": app.config,
            "nav_items": nav_items,
            "store_configured": app.extensions.get("row_store") is not None,
        }

    # ----------------------------------------------------------------------
    # Errors
    # ----------------------------------------------------------------------
    @app.errorhandler(DeductionsError)
    def handle_deductions_error(exc: DeductionsError):
        """Last-resort boundary: show the message with a retry link."""
        logger.error("Unhandled %s on %s: %s", exc.code, request.path, exc)
        flash(str(exc), "danger")
        return render_template("errors/store_error.html", retry_url=request.full_path), 503

    @app.errorhandler(403)
    def handle_forbidden(_exc):
        return render_template("errors/403.html"), 403

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("bootstrap-sheets")
    def bootstrap_sheets_command():
        """Create missing tables and repair submission headers."""
        from .services import get_service

        service = get_service()
        if not service.configured:
            click.echo("Google Sheets is not configured; bootstrapping the in-process store only.")
        for name in service.bootstrap():
            click.echo(f"OK  {name}")

    # ----------------------------------------------------------------------
    # Home
    # ----------------------------------------------------------------------
    @app.route("/")
    def index():
        """Home: redirect to the role's landing page or login."""
        if current_user.is_authenticated:
            return redirect(url_for(home_endpoint_for(current_user.role)))
        return redirect(url_for("auth.login"))

    return app
