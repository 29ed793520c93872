"""
payroll_deductions/errors.py

Error kinds raised by the row store and the deductions service.

Every error carries a stable ``code`` and an Arabic, user-facing message.
Views catch ``DeductionsError`` at the request boundary and flash ``str(exc)``
together with a manual retry link. Nothing in this package retries.
"""

from __future__ import annotations

ERROR_MESSAGES_AR: dict[str, str] = {
    # Configuration
    "NOT_CONFIGURED": "لم يتم إعداد الاتصال بـ Google Sheets.",
    # Store
    "STORE_FAILED": "فشل الاتصال بـ Google Sheets.",
    "PERMISSION_DENIED": (
        'تم رفض الإذن. يرجى التأكد من أن بريد حساب الخدمة لديه صلاحية "Editor" على ملف Google Sheet.'
    ),
    "TARGET_MISSING": (
        "لم يتم العثور على الملف. يرجى التحقق مرة أخرى من GOOGLE_SHEET_ID في إعدادات البيئة."
    ),
    "NOT_FOUND": "لم يتم العثور على البيانات المطلوبة.",
    # Operations
    "NO_ROWS_MATCHED": "لم يتم العثور على التقرير بالمعرف المحدد.",
    "SUBMIT_FAILED": "فشل إرسال البيانات إلى Google Sheets.",
    "HISTORY_FAILED": "فشل في جلب سجل التقارير من Google Sheets.",
    "ALL_SUBMISSIONS_FAILED": "فشل في جلب كل التقارير من Google Sheets.",
    "LOOKUP_FAILED": "فشل تحميل القوائم من Google Sheets.",
    "STATUS_UPDATE_FAILED": "فشل تحديث حالة التقرير.",
    "TABLE_INIT_FAILED": "فشل تجهيز الورقة في Google Sheets.",
}


def message_for(code: str) -> str | None:
    return ERROR_MESSAGES_AR.get(code)


class DeductionsError(Exception):
    """Base error for everything the view layer is expected to display."""

    code = "STORE_FAILED"

    def __init__(self, message: str | None = None, *, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message or message_for(self.code) or self.code
        super().__init__(self.message)


class NotConfiguredError(DeductionsError):
    code = "NOT_CONFIGURED"


class RowStoreError(DeductionsError):
    """Generic failure reported by the remote row store."""

    code = "STORE_FAILED"


class NotFoundError(RowStoreError):
    code = "NOT_FOUND"


class PermissionDeniedError(RowStoreError):
    code = "PERMISSION_DENIED"


class TargetMissingError(RowStoreError):
    code = "TARGET_MISSING"


class NoRowsMatchedError(DeductionsError):
    code = "NO_ROWS_MATCHED"
