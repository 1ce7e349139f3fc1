# services/api/adapters/google/__init__.py
"""
Google Drive + Google Sheets backend.

- Drive v3 (google-api-python-client) walks the folder tree and creates
  folders / empty spreadsheets.
- gspread opens documents, manages sheets and appends rows.

Clients are built lazily on first use, so constructing the backend never
touches the network.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import gspread
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from adapters.base import DocumentInfo, FolderInfo
from core.errors import (
    AccessError,
    BridgeInspectionError,
    ConfigurationError,
    InternalError,
    NotFoundError,
)
from core.schema_variants import HEADER_BACKGROUND, HEADER_FOREGROUND

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

FOLDER_MIME = "application/vnd.google-apps.folder"
SPREADSHEET_MIME = "application/vnd.google-apps.spreadsheet"

# New sheets get this many rows; Sheets grows them on append.
NEW_SHEET_ROWS = 1000

_FILE_FIELDS = "id, name, mimeType, webViewLink, modifiedTime"


# ========== Credentials ==========

def load_credentials(google_sa_json: str) -> Credentials:
    """
    Accepts either:
      - absolute/relative path to a service-account JSON file, OR
      - a literal JSON string.
    """
    if not google_sa_json:
        raise ConfigurationError("GOOGLE_SA_JSON is required (path to file or inline JSON).")

    # Try to treat as inline JSON first
    try:
        parsed = json.loads(google_sa_json)
        return Credentials.from_service_account_info(parsed, scopes=SCOPES)
    except json.JSONDecodeError:
        # Not JSON; treat as file path
        return Credentials.from_service_account_file(google_sa_json, scopes=SCOPES)


# ========== Error translation / retry ==========

def _status_of(exc: Exception) -> Optional[int]:
    if isinstance(exc, HttpError):
        status = getattr(exc, "status_code", None) or getattr(exc.resp, "status", None)
    else:
        status = getattr(exc, "code", None)
        if not isinstance(status, int):
            status = getattr(getattr(exc, "response", None), "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


@contextmanager
def host_errors(kind: str, identifier: str) -> Iterator[None]:
    """Translate gspread / Drive failures into the service error taxonomy."""
    try:
        yield
    except BridgeInspectionError:
        raise
    except gspread.exceptions.SpreadsheetNotFound as e:
        raise NotFoundError(kind, identifier) from e
    except (gspread.exceptions.APIError, HttpError) as e:
        status = _status_of(e)
        if status == 404:
            raise NotFoundError(kind, identifier) from e
        if status == 403:
            raise AccessError(kind, identifier) from e
        raise InternalError(f"Google API error ({status}) on {kind} {identifier}: {e}") from e


def _retrying(attempts: int) -> Retrying:
    """attempts=1 means a single try (no retry)."""
    return Retrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((gspread.exceptions.APIError, HttpError)),
        reraise=True,
    )


def _parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _hex_to_rgb(color: str) -> Dict[str, float]:
    c = color.lstrip("#")
    return {
        "red": int(c[0:2], 16) / 255,
        "green": int(c[2:4], 16) / 255,
        "blue": int(c[4:6], 16) / 255,
    }


def _escape_q(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _spreadsheet_url(file_id: str) -> str:
    return f"https://docs.google.com/spreadsheets/d/{file_id}/edit"


# ========== Drive: FolderProvider ==========

class DriveFolderProvider:
    def __init__(self, credentials: Callable[[], Credentials], attempts: int = 1) -> None:
        self._credentials = credentials
        self._retry = _retrying(attempts)
        self._service = None

    @property
    def service(self):
        """Lazily construct and cache a Google Drive v3 service client."""
        if self._service is None:
            self._service = build(
                "drive",
                "v3",
                credentials=self._credentials(),
                cache_discovery=False,
            )
            logger.info("Initialized Google Drive client.")
        return self._service

    def _execute(self, kind: str, identifier: str, request) -> Dict[str, Any]:
        with host_errors(kind, identifier):
            return self._retry(request.execute)

    def _list(self, folder_id: str, q: str) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        page_token = None
        while True:
            request = self.service.files().list(
                q=q,
                spaces="drive",
                fields=f"nextPageToken, files({_FILE_FIELDS})",
                pageSize=1000,
                pageToken=page_token,
                supportsAllDrives=True,
                includeItemsFromAllDrives=True,
            )
            result = self._execute("folder", folder_id, request)
            out.extend(result.get("files", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                return out

    def _children_q(self, folder_id: str, mime: str) -> str:
        return (
            f"'{_escape_q(folder_id)}' in parents "
            f"and mimeType = '{mime}' "
            "and trashed = false"
        )

    @staticmethod
    def _document_info(f: Dict[str, Any]) -> DocumentInfo:
        return DocumentInfo(
            id=f["id"],
            name=f.get("name", ""),
            url=f.get("webViewLink") or _spreadsheet_url(f["id"]),
            modified_time=_parse_rfc3339(f.get("modifiedTime")),
        )

    def get_folder(self, folder_id: str) -> FolderInfo:
        request = self.service.files().get(
            fileId=folder_id,
            fields="id, name, mimeType, trashed",
            supportsAllDrives=True,
        )
        f = self._execute("folder", folder_id, request)
        if f.get("mimeType") != FOLDER_MIME or f.get("trashed"):
            raise NotFoundError("folder", folder_id)
        return FolderInfo(id=f["id"], name=f.get("name", ""))

    def list_child_folders(self, folder_id: str) -> List[FolderInfo]:
        files = self._list(folder_id, self._children_q(folder_id, FOLDER_MIME))
        return [FolderInfo(id=f["id"], name=f.get("name", "")) for f in files]

    def list_documents(self, folder_id: str) -> List[DocumentInfo]:
        files = self._list(folder_id, self._children_q(folder_id, SPREADSHEET_MIME))
        return [self._document_info(f) for f in files]

    def find_files_by_name(self, folder_id: str, name: str) -> List[str]:
        q = (
            f"'{_escape_q(folder_id)}' in parents "
            f"and name = '{_escape_q(name)}' "
            f"and mimeType != '{FOLDER_MIME}' "
            "and trashed = false"
        )
        # Drive's name match is not guaranteed case-sensitive
        return [f["id"] for f in self._list(folder_id, q) if f.get("name") == name]

    def create_folder(self, parent_id: str, name: str) -> FolderInfo:
        request = self.service.files().create(
            body={"name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]},
            fields="id, name",
            supportsAllDrives=True,
        )
        created = self._execute("folder", parent_id, request)
        logger.info("Created folder %r (%s) under %s", name, created["id"], parent_id)
        return FolderInfo(id=created["id"], name=created.get("name", name))

    def create_document(self, folder_id: str, name: str) -> DocumentInfo:
        # Creating with `parents` places it directly in the folder (no move step)
        request = self.service.files().create(
            body={"name": name, "mimeType": SPREADSHEET_MIME, "parents": [folder_id]},
            fields=_FILE_FIELDS,
            supportsAllDrives=True,
        )
        created = self._execute("folder", folder_id, request)
        logger.info("Created spreadsheet %r (%s) in folder %s", name, created["id"], folder_id)
        return self._document_info(created)


# ========== Sheets: SpreadsheetBackend ==========

class GoogleSheet:
    def __init__(self, ws: gspread.Worksheet, retry: Retrying) -> None:
        self.ws = ws
        self._retry = retry

    @property
    def name(self) -> str:
        return self.ws.title

    def _call(self, fn, *args, **kwargs):
        with host_errors("sheet", self.ws.title):
            return self._retry(fn, *args, **kwargs)

    def get_rows(self) -> List[List[Any]]:
        # get_all_values() stops at the last non-empty row, like getLastRow()
        return self._call(self.ws.get_all_values)

    def row_count(self) -> int:
        return len(self.get_rows())

    def append_row(self, values: Sequence[Any]) -> None:
        self._call(
            self.ws.append_row,
            list(values),
            value_input_option="USER_ENTERED",
            table_range="A1",
        )

    def write_row(self, row_index: int, values: Sequence[Any]) -> None:
        self._call(
            self.ws.update,
            range_name=f"A{row_index}",
            values=[list(values)],
            value_input_option="USER_ENTERED",
        )

    def write_column(self, col_index: int, start_row: int, values: Sequence[Any]) -> None:
        if not values:
            return
        first = gspread.utils.rowcol_to_a1(start_row, col_index)
        last = gspread.utils.rowcol_to_a1(start_row + len(values) - 1, col_index)
        self._call(
            self.ws.update,
            range_name=f"{first}:{last}",
            values=[[v] for v in values],
            value_input_option="USER_ENTERED",
        )

    def format_header(self, width: int, column_widths: Dict[int, int]) -> None:
        end = gspread.utils.rowcol_to_a1(1, width)
        self._call(
            self.ws.format,
            f"A1:{end}",
            {
                "backgroundColor": _hex_to_rgb(HEADER_BACKGROUND),
                "textFormat": {"bold": True, "foregroundColor": _hex_to_rgb(HEADER_FOREGROUND)},
            },
        )
        self._call(self.ws.freeze, rows=1)
        if column_widths:
            requests = [
                {
                    "updateDimensionProperties": {
                        "range": {
                            "sheetId": self.ws.id,
                            "dimension": "COLUMNS",
                            "startIndex": col - 1,
                            "endIndex": col,
                        },
                        "properties": {"pixelSize": px},
                        "fields": "pixelSize",
                    }
                }
                for col, px in sorted(column_widths.items())
            ]
            self._call(self.ws.spreadsheet.batch_update, {"requests": requests})

    def rename(self, title: str) -> None:
        self._call(self.ws.update_title, title)


class GoogleDocument:
    def __init__(self, ss: gspread.Spreadsheet, retry: Retrying) -> None:
        self.ss = ss
        self._retry = retry

    @property
    def id(self) -> str:
        return self.ss.id

    @property
    def name(self) -> str:
        return self.ss.title

    def _call(self, fn, *args, **kwargs):
        with host_errors("document", self.ss.id):
            return self._retry(fn, *args, **kwargs)

    def get_sheet(self, name: str) -> Optional[GoogleSheet]:
        try:
            ws = self._call(self.ss.worksheet, name)
        except gspread.WorksheetNotFound:
            return None
        return GoogleSheet(ws, self._retry)

    def add_sheet(self, name: str, cols: int) -> GoogleSheet:
        ws = self._call(self.ss.add_worksheet, title=name, rows=NEW_SHEET_ROWS, cols=cols)
        return GoogleSheet(ws, self._retry)

    def first_sheet(self) -> GoogleSheet:
        return GoogleSheet(self._call(self.ss.get_worksheet, 0), self._retry)


class SheetsBackend:
    def __init__(self, credentials: Callable[[], Credentials], attempts: int = 1) -> None:
        self._credentials = credentials
        self._retry = _retrying(attempts)
        self._client: Optional[gspread.Client] = None

    @property
    def client(self) -> gspread.Client:
        if self._client is None:
            self._client = gspread.authorize(self._credentials())
            logger.info("Initialized gspread client.")
        return self._client

    def open_document(self, document_id: str) -> GoogleDocument:
        with host_errors("document", document_id):
            ss = self._retry(self.client.open_by_key, document_id)
        return GoogleDocument(ss, self._retry)


class GoogleWorkspace:
    """Shares one set of service-account credentials between Drive and Sheets."""

    def __init__(self, google_sa_json: str, attempts: int = 1) -> None:
        self._google_sa_json = google_sa_json
        self._creds: Optional[Credentials] = None
        self.folders = DriveFolderProvider(self.credentials, attempts=attempts)
        self.sheets = SheetsBackend(self.credentials, attempts=attempts)

    def credentials(self) -> Credentials:
        if self._creds is None:
            self._creds = load_credentials(self._google_sa_json)
        return self._creds
