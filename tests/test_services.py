from unittest.mock import MagicMock, patch

import pytest

from payroll_deductions.errors import (
    DeductionsError,
    NoRowsMatchedError,
    NotConfiguredError,
    PermissionDeniedError,
    RowStoreError,
)
from payroll_deductions.models import (
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    SUBMISSION_HEADERS,
    Company,
    Contractor,
    Deduction,
    SubmissionRow,
)
from payroll_deductions.seed import FALLBACK_CONTRACTORS, FALLBACK_CONTRACTS
from payroll_deductions.services import (
    MSG_SUBMITTED,
    MSG_SUBMITTED_LOCALLY,
    DeductionsService,
)
from payroll_deductions.store.memory import InMemoryRowStore


def _contractors():
    return [
        Contractor(
            contractor_name="مقاول أ",
            deductions=[
                Deduction(contract_name="عقد 1", item_name="بند 1", work_description="حفر", quantity=2, unit_price=50),
                Deduction(contract_name="عقد 2", item_name="بند 2", work_description="ردم", quantity=1, unit_price=20),
            ],
        )
    ]


def _request_row(date, time, email="clerk@example.com", contractor="مقاول أ", status=STATUS_PENDING):
    return SubmissionRow(
        date=date,
        time=time,
        user_email=email,
        company="DMC",
        contractor_name=contractor,
        contract_name="عقد",
        item_name="بند",
        work_description="عمل",
        quantity="1",
        unit_price="10",
        total="10",
        status=status,
    ).to_cells()


@pytest.fixture
def fallback_service(fallback_store):
    return DeductionsService(None, fallback_store=fallback_store)


@pytest.fixture
def service(sheet_store, fallback_store):
    return DeductionsService(sheet_store, fallback_store=fallback_store)


# ---------------------------------------------------------------------
# Fallback mode
# ---------------------------------------------------------------------
def test_fallback_reference_lists(fallback_service):
    assert fallback_service.get_contractor_list() == FALLBACK_CONTRACTORS
    assert fallback_service.get_contract_list(Company.CURVE) == FALLBACK_CONTRACTS


def test_fallback_login_exact_match(fallback_service):
    assert fallback_service.validate_user("admin@test.com", "123", "admin").role == "admin"
    assert fallback_service.validate_user("user@test.com", "123", "user").is_valid
    assert not fallback_service.validate_user("admin@test.com", "123", "user").is_valid
    assert not fallback_service.validate_user("ADMIN@test.com", "123", "admin").is_valid
    assert not fallback_service.validate_user("user@test.com", "wrong", "user").is_valid


def test_fallback_role_lookup(fallback_service):
    assert fallback_service.get_user_role_by_email(" Admin@Test.com ") == "admin"
    assert fallback_service.get_user_role_by_email("nobody@test.com") is None
    assert fallback_service.get_user_role_by_email("") is None


def test_fallback_submit_goes_to_memory(fallback_service, fallback_store, fixed_now):
    with patch("payroll_deductions.services.local_now", return_value=fixed_now):
        message = fallback_service.submit_deductions(Company.DMC, _contractors(), "user@test.com")

    assert message == MSG_SUBMITTED_LOCALLY
    rows = fallback_store.rows("DMC REQUEST")
    assert rows[0] == SUBMISSION_HEADERS
    assert len(rows) == 3

    [submission] = fallback_service.get_submission_history("user@test.com")
    assert submission.report_id == "report-2024-05-23-14-30"
    assert submission.grand_total == 120


def test_fallback_status_update_without_rows(fallback_service):
    with pytest.raises(NotConfiguredError):
        fallback_service.update_report_status("report-2024-05-23-14-30", Company.DMC, STATUS_APPROVED, "a@x.com")


def test_fallback_status_update_on_local_report(fallback_service, fallback_store, fixed_now):
    with patch("payroll_deductions.services.local_now", return_value=fixed_now):
        fallback_service.submit_deductions(Company.DMC, _contractors(), "user@test.com")
        fallback_service.update_report_status(
            "report-2024-05-23-14-30", Company.DMC, STATUS_REJECTED, "admin@test.com"
        )

    [submission] = fallback_service.get_all_submissions()
    assert submission.status == STATUS_REJECTED


# ---------------------------------------------------------------------
# Reference lists and identity
# ---------------------------------------------------------------------
def test_contractor_list_is_unique_and_non_empty(service):
    assert service.get_contractor_list() == ["مقاول أ", "مقاول ب"]


def test_contract_and_work_item_lists(service, sheet_store):
    assert service.get_contract_list(Company.DMC) == ["عقد 1", "عقد 2"]
    assert service.get_work_item_list(Company.DMC) == ["بند 1", "بند 2"]
    # missing data table is created empty
    assert service.get_contract_list(Company.CURVE) == []
    assert "CURVE DATA" in sheet_store.list_tables()


def test_lookup_failure_is_reported():
    store = MagicMock()
    store.list_tables.side_effect = RowStoreError("boom")
    service = DeductionsService(store)

    with pytest.raises(DeductionsError) as info:
        service.get_contractor_list()
    assert info.value.code == "LOOKUP_FAILED"


def test_permission_error_keeps_its_kind():
    store = MagicMock()
    store.list_tables.side_effect = PermissionDeniedError()
    service = DeductionsService(store)

    with pytest.raises(PermissionDeniedError):
        service.get_contractor_list()
    with pytest.raises(PermissionDeniedError):
        service.get_all_submissions()


def test_role_lookup_is_case_insensitive(service):
    assert service.get_user_role_by_email("boss@example.com") == "admin"
    assert service.get_user_role_by_email(" BOSS@example.com ") == "admin"
    assert service.get_user_role_by_email("norole@example.com") == "user"
    assert service.get_user_role_by_email("ghost@example.com") is None


def test_login_requires_matching_role(service):
    assert service.validate_user("Boss@example.com", "s3cret", "admin").is_valid
    assert not service.validate_user("boss@example.com", "s3cret", "user").is_valid
    assert not service.validate_user("clerk@example.com", "pw", "admin").is_valid
    assert service.validate_user("clerk@example.com", "pw", "user").role == "user"


def test_login_store_failure_is_invalid():
    store = MagicMock()
    store.list_tables.side_effect = RowStoreError("down")
    assert not DeductionsService(store).validate_user("a@x.com", "pw", "user").is_valid
    assert DeductionsService(store).get_user_role_by_email("a@x.com") is None


# ---------------------------------------------------------------------
# Submissions and history
# ---------------------------------------------------------------------
def test_submit_creates_table_and_appends(service, sheet_store, fixed_now):
    with patch("payroll_deductions.services.local_now", return_value=fixed_now):
        message = service.submit_deductions("CURVE", _contractors(), "clerk@example.com")

    assert message == MSG_SUBMITTED
    rows = sheet_store.rows("CURVE REQUEST")
    assert rows[0] == SUBMISSION_HEADERS
    assert [r[5] for r in rows[1:]] == ["عقد 1", "عقد 2"]
    assert rows[1][9:12] == ["2", "50", "100"]


def test_submit_failure_is_reported(fixed_now):
    store = InMemoryRowStore()
    store.append_rows = MagicMock(side_effect=RowStoreError("down"))
    service = DeductionsService(store)

    with patch("payroll_deductions.services.local_now", return_value=fixed_now):
        with pytest.raises(DeductionsError) as info:
            service.submit_deductions(Company.DMC, _contractors(), "clerk@example.com")
    assert info.value.code == "SUBMIT_FAILED"


def test_outdated_headers_are_repaired(service, sheet_store):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [["التاريخ", "الوقت"]])
    sheet_store.append_rows("'DMC REQUEST'!A1", [_request_row("2024-05-01", "09:00")])

    submissions = service.get_all_submissions()

    assert sheet_store.rows("DMC REQUEST")[0] == SUBMISSION_HEADERS
    assert len(submissions) == 1


def test_history_filters_by_user_and_dates(service, sheet_store):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    sheet_store.append_rows(
        "'DMC REQUEST'!A1",
        [
            _request_row("2024-05-01", "09:00"),
            _request_row("2024-05-10", "11:00"),
            _request_row("10/05/2024", "12:00"),
            _request_row("2024-05-10", "13:00", email="other@example.com"),
        ],
    )

    everything = service.get_submission_history("clerk@example.com")
    assert [s.timestamp for s in everything] == ["2024-05-10 11:00", "2024-05-01 09:00", "10/05/2024 12:00"]

    filtered = service.get_submission_history("clerk@example.com", "2024-05-05", "2024-05-31")
    assert [s.timestamp for s in filtered] == ["2024-05-10 11:00"]

    # one bound alone does not filter
    assert len(service.get_submission_history("clerk@example.com", start_date="2024-05-05")) == 3


def test_unreadable_table_is_skipped(sheet_store):
    class FlakyStore(InMemoryRowStore):
        def read_range(self, a1_range):
            if a1_range.startswith("'CURVE REQUEST'"):
                raise RowStoreError("flaky")
            return super().read_range(a1_range)

    store = FlakyStore()
    store.add_table("DMC REQUEST")
    store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    store.append_rows("'DMC REQUEST'!A1", [_request_row("2024-05-01", "09:00")])
    store.add_table("CURVE REQUEST")

    submissions = DeductionsService(store).get_all_submissions()
    assert [s.company for s in submissions] == [Company.DMC]


# ---------------------------------------------------------------------
# Status decisions
# ---------------------------------------------------------------------
def test_status_update_matches_rows_by_prefix(service, sheet_store, fixed_now):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    sheet_store.append_rows(
        "'DMC REQUEST'!A1",
        [
            _request_row("2024-05-23", "10:00:05"),
            _request_row("2024-05-23", "10:00:05", contractor="مقاول ب"),
            _request_row("2024-05-23", "11:00"),
        ],
    )
    sheet_store.batch_update = MagicMock(wraps=sheet_store.batch_update)

    with patch("payroll_deductions.services.local_now", return_value=fixed_now):
        message = service.update_report_status(
            "report-2024-05-23-10-00", Company.DMC, STATUS_APPROVED, "boss@example.com"
        )

    assert STATUS_APPROVED in message
    sheet_store.batch_update.assert_called_once()
    [payload] = sheet_store.batch_update.call_args.args
    assert [rng for rng, _ in payload] == ["'DMC REQUEST'!O2:R2", "'DMC REQUEST'!O3:R3"]

    rows = sheet_store.rows("DMC REQUEST")
    assert rows[1][14:18] == [STATUS_APPROVED, "2024-05-23", "14:30", "boss@example.com"]
    assert rows[2][14:18] == [STATUS_APPROVED, "2024-05-23", "14:30", "boss@example.com"]
    assert rows[3][14] == STATUS_PENDING


def test_status_update_without_match(service, sheet_store):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    with pytest.raises(NoRowsMatchedError):
        service.update_report_status("report-2030-01-01-00-00", Company.DMC, STATUS_APPROVED, "a@x.com")


def test_status_update_rejects_bad_input(service):
    with pytest.raises(DeductionsError):
        service.update_report_status("report-x", Company.DMC, "maybe", "a@x.com")
    with pytest.raises(DeductionsError):
        service.update_report_status("report-x", "ACME", STATUS_APPROVED, "a@x.com")


def test_bootstrap_creates_every_table(service, sheet_store):
    names = service.bootstrap()
    assert set(names) <= set(sheet_store.list_tables())
    assert {"DMC REQUEST", "CURVE REQUEST", "CURVE DATA"} <= set(names)


def test_status_update_requires_full_report_key(service, sheet_store):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    sheet_store.append_rows(
        "'DMC REQUEST'!A1",
        [_request_row("2024-05-23", "10:00"), _request_row("2024-06-01", "09:00")],
    )

    for report_id in ("report-2024", "report-2024-05-23", "", "2024-05-23-10-00"):
        with pytest.raises(DeductionsError) as info:
            service.update_report_status(report_id, Company.DMC, STATUS_APPROVED, "boss@example.com")
        assert info.value.code == "STATUS_UPDATE_FAILED"

    assert all(row[14] == STATUS_PENDING for row in sheet_store.rows("DMC REQUEST")[1:])


def test_status_update_accepts_key_with_seconds(service, sheet_store):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    sheet_store.append_rows("'DMC REQUEST'!A1", [_request_row("2024-05-23", "10:00:05")])

    service.update_report_status("report-2024-05-23-10-00-05", Company.DMC, STATUS_REJECTED, "boss@example.com")
    assert sheet_store.rows("DMC REQUEST")[1][14] == STATUS_REJECTED


def test_history_email_match_ignores_case(service, sheet_store):
    sheet_store.add_table("DMC REQUEST")
    sheet_store.update_range("'DMC REQUEST'!A1", [SUBMISSION_HEADERS])
    sheet_store.append_rows("'DMC REQUEST'!A1", [_request_row("2024-05-01", "09:00", email="Clerk@Example.com")])

    assert len(service.get_submission_history(" clerk@example.com ")) == 1
