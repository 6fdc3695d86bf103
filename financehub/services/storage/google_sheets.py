"""
Google Sheets Document Store

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

Each collection path becomes one worksheet (``users/u1/gastos`` is stored in
the ``users__u1__gastos`` tab). Each document is one row holding its id,
timestamps and its fields as JSON, so documents of any shape fit.

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (last write wins, like the web app always did)
- Limited query capabilities (we filter and sort in Python)

The implementation follows the abstract interface, so we can swap
to Firestore or SQLite later without changing business logic.
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from financehub.config import GoogleSheetsSettings, get_settings
from financehub.services.storage.interface import (
    ConnectionError,
    Document,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
    split_document_path,
)


logger = structlog.get_logger(__name__)

# Column layout of every collection worksheet
DOCUMENT_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "fields_json",
]


def worksheet_title(collection_path: str) -> str:
    """Tab name for a collection path."""
    return collection_path.strip("/").replace("/", "__")[:100]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_collection_sheet(self, collection_path: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        title = worksheet_title(collection_path)
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=self._settings.worksheet_rows,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
            logger.info("worksheet_created", title=title)

        self._worksheets[title] = sheet
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Documents are stored as rows in their collection's worksheet,
    one document per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_document(row: list) -> Document:
        """Convert a spreadsheet row to a document (id included)."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        fields = json.loads(safe_get(3, "{}"))
        return {"id": safe_get(0), **fields}

    def _find_row(self, sheet: gspread.Worksheet, document_id: str) -> tuple[Optional[int], Optional[list]]:
        """Locate a document row; returns (1-based row number, row values)."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == document_id:
                return idx, row
        return None, None

    async def list_documents(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> list[Document]:
        """List every document in a collection."""
        try:
            sheet = self._client.get_collection_sheet(collection_path)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {collection_path}: {e}")

        documents = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                documents.append(self._row_to_document(row))
            except (ValueError, TypeError) as e:
                logger.warning("malformed_row_skipped", collection=collection_path, id=row[0], error=str(e))
                continue

        if order_by:
            documents.sort(
                key=lambda d: (d.get(order_by) is not None, str(d.get(order_by) or "")),
                reverse=direction == "desc",
            )
        return documents

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_document(self, collection_path: str, fields: Document) -> str:
        """Append a new document row."""
        document_id = uuid4().hex
        now = self._now()
        try:
            sheet = self._client.get_collection_sheet(collection_path)
            sheet.append_row(
                [document_id, now, now, json.dumps(fields, ensure_ascii=False)],
                value_input_option="RAW",
            )
            return document_id
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create document in {collection_path}: {e}")

    async def update_document(
        self,
        collection_path: str,
        document_id: str,
        fields: Document,
    ) -> None:
        """Merge fields into an existing document row."""
        try:
            sheet = self._client.get_collection_sheet(collection_path)
            idx, row = self._find_row(sheet, document_id)
            if idx is None:
                raise NotFoundError(f"Document not found: {collection_path}/{document_id}")

            current = self._row_to_document(row)
            current.pop("id", None)
            current.update(fields)
            created_at = row[1] if len(row) > 1 else ""

            sheet.update(
                values=[[document_id, created_at, self._now(), json.dumps(current, ensure_ascii=False)]],
                range_name=f"A{idx}:D{idx}",
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {collection_path}/{document_id}: {e}")

    async def delete_document(self, collection_path: str, document_id: str) -> None:
        """Delete a document row (missing rows are ignored)."""
        try:
            sheet = self._client.get_collection_sheet(collection_path)
            idx, _ = self._find_row(sheet, document_id)
            if idx is not None:
                sheet.delete_rows(idx)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {collection_path}/{document_id}: {e}")

    async def get_document(self, path: str) -> Optional[Document]:
        """Read one document by its full path."""
        collection_path, document_id = split_document_path(path)
        try:
            sheet = self._client.get_collection_sheet(collection_path)
            _, row = self._find_row(sheet, document_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {path}: {e}")

        if row is None:
            return None
        document = self._row_to_document(row)
        document.pop("id", None)
        return document

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def set_document(
        self,
        path: str,
        fields: Document,
        merge: bool = False,
    ) -> None:
        """Create or overwrite the document at a fixed path."""
        collection_path, document_id = split_document_path(path)
        try:
            sheet = self._client.get_collection_sheet(collection_path)
            idx, row = self._find_row(sheet, document_id)
            now = self._now()

            if idx is None:
                sheet.append_row(
                    [document_id, now, now, json.dumps(fields, ensure_ascii=False)],
                    value_input_option="RAW",
                )
                return

            body = fields
            if merge:
                body = self._row_to_document(row)
                body.pop("id", None)
                body.update(fields)
            created_at = row[1] if len(row) > 1 else now

            sheet.update(
                values=[[document_id, created_at, now, json.dumps(body, ensure_ascii=False)]],
                range_name=f"A{idx}:D{idx}",
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write {path}: {e}")
