"""
Authentication Routes

Provides:
- /auth/login   (two paths on one page: user and admin)
- /auth/logout
- /auth/role    (role hint for an email, used by the login page while typing)

Rules:
- The requested role must equal the stored role. Valid credentials submitted
  on the wrong path are rejected.
- No role is granted unless validate_user() says so.
"""

from flask import (
    Blueprint,
    render_template,
    redirect,
    url_for,
    flash,
    request,
    jsonify,
)
from flask_login import (
    login_user,
    logout_user,
    login_required,
    current_user,
)

from ...form_state import DeductionFormState
from ...models import ROLES, ROLE_USER, SessionUser
from ...security import home_endpoint_for, safe_next_url
from ...services import get_service


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """
    Authenticate a user for the role chosen on the page.

    The role comes from the submit button that was pressed ("user" or "admin").
    """

    if current_user.is_authenticated:
        return redirect(url_for(home_endpoint_for(current_user.role)))

    if request.method == "POST":
        email = request.form.get("email", "").strip()
        password = request.form.get("password", "")
        role = request.form.get("role", ROLE_USER)

        if role not in ROLES:
            flash("مسار تسجيل الدخول غير صالح.", "danger")
            return render_template("auth/login.html", email=email), 400

        if not email:
            flash("الرجاء إدخال البريد الإلكتروني أولاً.", "danger")
            return render_template("auth/login.html", email=email)

        if not password:
            flash("الرجاء إدخال كلمة المرور.", "danger")
            return render_template("auth/login.html", email=email)

        result = get_service().validate_user(email, password, role)
        if not result.is_valid:
            flash("البريد الإلكتروني أو كلمة المرور غير صحيحة.", "danger")
            return render_template("auth/login.html", email=email)

        # stored lower-cased, like the Users table emails
        login_user(SessionUser(email=email.lower(), role=result.role))
        flash(f"مرحباً بك، {email}", "success")

        next_url = safe_next_url(request.args.get("next"), home_endpoint_for(result.role))
        return redirect(next_url)

    return render_template("auth/login.html", email="")


# ============================================================
# LOGOUT
# ============================================================

@auth_bp.route("/logout")
@login_required
def logout():
    """Log out the current user and drop any unsent form."""
    logout_user()
    DeductionFormState.clear()
    flash("تم تسجيل الخروج.", "info")
    return redirect(url_for("auth.login"))


# ============================================================
# ROLE HINT
# ============================================================

@auth_bp.route("/role")
def role_hint():
    """Return {"role": "user" | "admin" | null} for the typed email."""
    email = request.args.get("email", "")
    return jsonify({"role": get_service().get_user_role_by_email(email)})
