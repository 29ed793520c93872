"""
Google Sheets row store.

Each spreadsheet tab is a table. Calls go through the Sheets v4 REST API with a
service account; every HTTP failure is mapped onto the package's error kinds:

- 403 -> PermissionDeniedError  (service account lacks Editor access)
- 404 -> TargetMissingError     (GOOGLE_SHEET_ID is wrong)
- anything else -> RowStoreError

No call is retried here.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..errors import PermissionDeniedError, RowStoreError, TargetMissingError
from .base import Cells, RowStore

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
VALUE_INPUT_OPTION = "USER_ENTERED"


def _http_status(exc: HttpError) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None and getattr(exc, "resp", None) is not None:
        status = getattr(exc.resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def map_http_error(exc: HttpError) -> RowStoreError:
    """Translate a Sheets API HttpError into a RowStoreError subclass."""
    status = _http_status(exc)
    if status == 403:
        return PermissionDeniedError()
    if status == 404:
        return TargetMissingError()
    return RowStoreError(f"Google Sheets request failed (HTTP {status}).")


class GoogleSheetsRowStore(RowStore):
    """Row store backed by one Google spreadsheet."""

    def __init__(self, spreadsheet_id: str, service: Any):
        self.spreadsheet_id = spreadsheet_id
        self._service = service

    @classmethod
    def from_service_account_info(cls, spreadsheet_id: str, info: dict) -> GoogleSheetsRowStore:
        credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(spreadsheet_id, service)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _execute(self, request: Any) -> dict:
        try:
            return request.execute() or {}
        except HttpError as exc:
            logger.error("Sheets API call failed: %s", exc)
            raise map_http_error(exc) from exc

    def _values(self):
        return self._service.spreadsheets().values()

    # ------------------------------------------------------------------
    # RowStore
    # ------------------------------------------------------------------
    def list_tables(self) -> list[str]:
        info = self._execute(
            self._service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields="sheets.properties.title",
            )
        )
        return [s.get("properties", {}).get("title", "") for s in info.get("sheets", [])]

    def add_table(self, name: str) -> None:
        self._execute(
            self._service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": name}}}]},
            )
        )

    def read_range(self, a1_range: str) -> list[list[Any]]:
        response = self._execute(
            self._values().get(spreadsheetId=self.spreadsheet_id, range=a1_range)
        )
        return response.get("values", [])

    def update_range(self, a1_range: str, values: Cells) -> None:
        self._execute(
            self._values().update(
                spreadsheetId=self.spreadsheet_id,
                range=a1_range,
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": [list(row) for row in values]},
            )
        )

    def append_rows(self, a1_range: str, values: Cells) -> None:
        self._execute(
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=a1_range,
                valueInputOption=VALUE_INPUT_OPTION,
                insertDataOption="INSERT_ROWS",
                body={"values": [list(row) for row in values]},
            )
        )

    def batch_update(self, data: Sequence[tuple[str, Cells]]) -> None:
        self._execute(
            self._values().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={
                    "valueInputOption": VALUE_INPUT_OPTION,
                    "data": [
                        {"range": a1_range, "values": [list(row) for row in values]}
                        for a1_range, values in data
                    ],
                },
            )
        )
