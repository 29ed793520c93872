"""
payroll_deductions/services.py

Public operations of the application, one method per user action.

Modes:
- Configured: a RowStore (Google Sheets) is attached to the app.
- Fallback: no store configured. Reference lookups return built-in lists,
  login accepts the two built-in users, and submissions go to the process-wide
  in-memory store so history/admin pages still work for the lifetime of the
  process.

Error boundary:
- Store failures are caught in each public method and re-raised as a single
  DeductionsError with a user-facing message. Permission and target errors
  keep their own kind. Nothing is retried.
- Role lookup and login validation never raise; failures are logged and
  treated as "no such user".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, NoReturn, Sequence

from flask import current_app

from .audit import decision_cells, decision_updates
from .errors import (
    DeductionsError,
    NoRowsMatchedError,
    NotConfiguredError,
    NotFoundError,
    PermissionDeniedError,
    TargetMissingError,
)
from .mapper import flatten_submission, local_now, reconstruct_submissions, row_matches_report
from .models import (
    CONTRACTOR_LIST_HEADERS,
    CONTRACTORS_TABLE,
    DATA_HEADERS,
    DECISION_STATUSES,
    ROLE_ADMIN,
    ROLE_USER,
    SUBMISSION_HEADERS,
    USER_HEADERS,
    USERS_TABLE,
    Company,
    Contractor,
    Submission,
    SubmissionRow,
    UserRecord,
    cell_text,
)
from .seed import (
    FALLBACK_CONTRACTORS,
    FALLBACK_CONTRACTS,
    FALLBACK_USERS,
    FALLBACK_WORK_ITEMS,
    bootstrap_tables,
    ensure_table,
)
from .store import FALLBACK_STORE
from .store.a1 import table_range
from .store.base import RowStore

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Full minute key; stored times carrying seconds add one more "-SS" group
_REPORT_KEY_RE = re.compile(r"^report-\d{4}-\d{2}-\d{2}-\d{2}-\d{2}(-\d{2})?$")

MSG_SUBMITTED = "تم إرسال التقرير بنجاح للمراجعة."
MSG_SUBMITTED_LOCALLY = "تم حفظ التقرير محلياً. لم يتم الإرسال لعدم وجود اتصال بـ Google."
MSG_STATUS_UPDATED = 'تم تحديث حالة التقرير إلى "{status}" بنجاح.'
MSG_STATUS_UPDATED_LOCALLY = "تم تحديث الحالة محلياً بنجاح."


@dataclass(frozen=True)
class LoginResult:
    is_valid: bool
    role: str | None = None


def _reraise(exc: DeductionsError, code: str) -> NoReturn:
    """Raise the boundary error of a public operation for a store failure."""
    if isinstance(exc, (PermissionDeniedError, TargetMissingError)):
        raise exc
    raise DeductionsError(code=code) from exc


def _unique(values: list[str]) -> list[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(values))


def _date_text(value: str | date | None) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


class DeductionsService:
    """Operations over the row store (or the in-memory fallback)."""

    def __init__(
        self,
        store: RowStore | None = None,
        *,
        tz_name: str = "Africa/Cairo",
        fallback_store: RowStore | None = None,
    ):
        self.store = store
        self.fallback_store = fallback_store if fallback_store is not None else FALLBACK_STORE
        self.tz_name = tz_name

    @property
    def configured(self) -> bool:
        return self.store is not None

    @property
    def active_store(self) -> RowStore:
        return self.store if self.store is not None else self.fallback_store

    # ------------------------------------------------------------------
    # Reference lists
    # ------------------------------------------------------------------
    def _read_column(self, table: str, headers: Sequence[str], column: str) -> list[str]:
        ensure_table(self.store, table, headers)
        rows = self.store.read_range(table_range(table, f"{column}2:{column}"))
        values = [cell_text(row[0]) for row in rows if row]
        return _unique([v for v in values if v.strip()])

    def get_contractor_list(self) -> list[str]:
        if not self.configured:
            logger.info("Using built-in contractor list because Google Sheets API is not configured.")
            return list(FALLBACK_CONTRACTORS)
        try:
            return self._read_column(CONTRACTORS_TABLE, CONTRACTOR_LIST_HEADERS, "A")
        except DeductionsError as exc:
            logger.error("Error fetching data from %s: %s", CONTRACTORS_TABLE, exc)
            _reraise(exc, "LOOKUP_FAILED")

    def get_contract_list(self, company: Company | str) -> list[str]:
        company = Company(company)
        if not self.configured:
            logger.info("Using built-in contract list because Google Sheets API is not configured.")
            return list(FALLBACK_CONTRACTS)
        try:
            return self._read_column(company.data_table, DATA_HEADERS, "A")
        except DeductionsError as exc:
            logger.error("Error fetching contract data from %s: %s", company.data_table, exc)
            _reraise(exc, "LOOKUP_FAILED")

    def get_work_item_list(self, company: Company | str) -> list[str]:
        company = Company(company)
        if not self.configured:
            logger.info("Using built-in work item list because Google Sheets API is not configured.")
            return list(FALLBACK_WORK_ITEMS)
        try:
            return self._read_column(company.data_table, DATA_HEADERS, "B")
        except DeductionsError as exc:
            logger.error("Error fetching work item data from %s: %s", company.data_table, exc)
            _reraise(exc, "LOOKUP_FAILED")

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def _user_records(self) -> list[UserRecord]:
        ensure_table(self.store, USERS_TABLE, USER_HEADERS)
        rows = self.store.read_range(table_range(USERS_TABLE, "A2:C"))
        return [UserRecord.from_cells(row) for row in rows if row]

    def get_user_role_by_email(self, email: str) -> str | None:
        """Role for an email (case-insensitive, trimmed), or None when unknown."""
        if not email:
            return None
        wanted = email.strip().lower()

        if not self.configured:
            for fb_email, _, fb_role in FALLBACK_USERS:
                if fb_email == wanted:
                    return fb_role
            return None

        try:
            for record in self._user_records():
                if record.email == wanted:
                    return ROLE_ADMIN if record.role == ROLE_ADMIN else ROLE_USER
        except DeductionsError as exc:
            logger.error("Error getting user role from sheet: %s", exc)
        return None

    def validate_user(self, email: str, password: str, expected_role: str) -> LoginResult:
        """
        Check credentials for the requested role.

        A correct password for a user whose stored role differs from
        ``expected_role`` is rejected; the role is never adjusted.
        """
        email = email or ""
        password = password or ""

        if not self.configured:
            for fb_email, fb_password, fb_role in FALLBACK_USERS:
                if email == fb_email and password == fb_password and expected_role == fb_role:
                    return LoginResult(True, fb_role)
            logger.warning("Google Sheets API not configured. Only built-in users can log in.")
            return LoginResult(False)

        wanted = email.strip().lower()
        try:
            for record in self._user_records():
                if (
                    record.email == wanted
                    and record.password == password.strip()
                    and record.role == expected_role
                ):
                    return LoginResult(True, record.role)
        except DeductionsError as exc:
            logger.error("Error validating user from sheet: %s", exc)
        return LoginResult(False)

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------
    def submit_deductions(
        self, company: Company | str, contractors: Sequence[Contractor], user_email: str
    ) -> str:
        """Append one report's rows to "<company> REQUEST". Returns a success message."""
        company = Company(company)
        rows = flatten_submission(company, contractors, user_email, local_now(self.tz_name))
        if not rows:
            raise DeductionsError("لا توجد بيانات لإرسالها.", code="SUBMIT_FAILED")

        table = company.requests_table
        store = self.active_store
        try:
            ensure_table(store, table, SUBMISSION_HEADERS)
            store.append_rows(table_range(table, "A1"), rows)
        except DeductionsError as exc:
            logger.error("Failed to append %d rows to %s: %s", len(rows), table, exc)
            _reraise(exc, "SUBMIT_FAILED")

        if not self.configured:
            logger.warning("Google Sheets API not configured. Report saved in process memory only.")
            return MSG_SUBMITTED_LOCALLY

        logger.info("Appended %d rows to %s for %s", len(rows), table, user_email)
        return MSG_SUBMITTED

    def _read_submission_rows(self, company: Company) -> list[SubmissionRow]:
        store = self.active_store
        table = company.requests_table
        ensure_table(store, table, SUBMISSION_HEADERS)
        rows = store.read_range(table_range(table, "A2:Z"))
        return [SubmissionRow.from_cells(row) for row in rows if any(cell_text(c) for c in row)]

    def _collect_rows(self, keep: Callable[[SubmissionRow], bool]) -> list[SubmissionRow]:
        """
        Rows of both companies' submission tables that satisfy ``keep``.

        A table that cannot be read is skipped with a warning; permission and
        target errors concern the whole spreadsheet and propagate.
        """
        collected: list[SubmissionRow] = []
        for company in Company:
            try:
                rows = self._read_submission_rows(company)
            except (PermissionDeniedError, TargetMissingError):
                raise
            except DeductionsError as exc:
                logger.warning(
                    'Could not read from sheet "%s". It might not exist. Skipping. (%s)',
                    company.requests_table,
                    exc,
                )
                continue
            collected.extend(row for row in rows if keep(row))
        return collected

    def get_submission_history(
        self,
        user_email: str,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
    ) -> list[Submission]:
        """
        Reports submitted by ``user_email``, newest first.

        The date filter applies only when both bounds are given; rows whose date
        cell is not "YYYY-MM-DD" are then excluded.
        """
        start = _date_text(start_date)
        end = _date_text(end_date)
        wanted = (user_email or "").strip().lower()

        def keep(row: SubmissionRow) -> bool:
            if row.user_email.strip().lower() != wanted:
                return False
            if start and end:
                if not _ISO_DATE_RE.match(row.date):
                    return False
                # ISO dates compare correctly as strings
                return start <= row.date <= end
            return True

        try:
            return reconstruct_submissions(self._collect_rows(keep))
        except DeductionsError as exc:
            logger.error("Error fetching submission history: %s", exc)
            _reraise(exc, "HISTORY_FAILED")

    def get_all_submissions(self) -> list[Submission]:
        """Every report of both companies, newest first (admin dashboard)."""
        try:
            return reconstruct_submissions(self._collect_rows(lambda row: True))
        except DeductionsError as exc:
            logger.error("Error fetching all submissions: %s", exc)
            _reraise(exc, "ALL_SUBMISSIONS_FAILED")

    # ------------------------------------------------------------------
    # Status decisions
    # ------------------------------------------------------------------
    def update_report_status(
        self,
        report_id: str,
        company: Company | str,
        new_status: str,
        admin_email: str,
    ) -> str:
        """
        Write a decision to every row of a report.

        Rows are matched by prefix of their derived report key. Finding the
        rows and writing them are two separate store calls.
        """
        if new_status not in DECISION_STATUSES:
            raise DeductionsError("حالة غير صالحة.", code="STATUS_UPDATE_FAILED")
        parsed_company = Company.parse(company)
        if parsed_company is None:
            raise DeductionsError("لم يتم تحديد الشركة في هذا التقرير.", code="STATUS_UPDATE_FAILED")
        if not _REPORT_KEY_RE.match(report_id or ""):
            raise DeductionsError("معرف التقرير غير صالح.", code="STATUS_UPDATE_FAILED")

        table = parsed_company.requests_table
        store = self.active_store
        try:
            try:
                rows = store.read_range(table_range(table, "A2:Z"))
            except NotFoundError:
                rows = []

            row_numbers = [
                index + 2  # sheet rows are 1-based and data starts at row 2
                for index, row in enumerate(rows)
                if row and row_matches_report(SubmissionRow.from_cells(row), report_id)
            ]

            if not row_numbers:
                if not self.configured:
                    raise NotConfiguredError()
                raise NoRowsMatchedError(f"لم يتم العثور على التقرير بالمعرف: {report_id}")

            cells = decision_cells(new_status, admin_email, local_now(self.tz_name))
            store.batch_update(decision_updates(table, row_numbers, cells))
        except (NoRowsMatchedError, NotConfiguredError):
            logger.warning("No rows matched report %s in %s", report_id, table)
            raise
        except DeductionsError as exc:
            logger.error("Failed to update status for report %s: %s", report_id, exc)
            _reraise(exc, "STATUS_UPDATE_FAILED")

        logger.info(
            "Report %s set to %s by %s (%d rows)", report_id, new_status, admin_email, len(row_numbers)
        )
        if not self.configured:
            return MSG_STATUS_UPDATED_LOCALLY
        return MSG_STATUS_UPDATED.format(status=new_status)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------
    def bootstrap(self) -> list[str]:
        return bootstrap_tables(self.active_store)


def get_service() -> DeductionsService:
    """Service bound to the current app's store and timezone."""
    app = current_app
    return DeductionsService(
        app.extensions.get("row_store"),
        tz_name=app.config.get("LOCAL_TIMEZONE", "Africa/Cairo"),
        fallback_store=app.extensions.get("fallback_store"),
    )
