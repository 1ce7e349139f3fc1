"""
Host capability interfaces for the bridge inspection service.
Defines the contract that every folder/spreadsheet backend must implement.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence


@dataclass(frozen=True)
class FolderInfo:
    id: str
    name: str


@dataclass(frozen=True)
class DocumentInfo:
    id: str
    name: str
    url: str
    modified_time: Optional[datetime] = None


class FolderProvider(Protocol):
    """
    Hierarchical folder tree containing spreadsheet documents.

    This allows swapping Google Drive for an in-memory tree (tests, local
    runs) without touching FolderIndex or the provisioner.

    All methods raise core.errors.NotFoundError / AccessError for ids that do
    not resolve or are not readable.
    """

    def get_folder(self, folder_id: str) -> FolderInfo:
        """Resolve a folder by id (NotFoundError if it is not a folder)."""
        ...

    def list_child_folders(self, folder_id: str) -> List[FolderInfo]:
        """Direct child folders, in whatever order the host yields them."""
        ...

    def list_documents(self, folder_id: str) -> List[DocumentInfo]:
        """Spreadsheet documents directly inside the folder."""
        ...

    def find_files_by_name(self, folder_id: str, name: str) -> List[str]:
        """Ids of files of any type except folders directly inside the folder named exactly `name`."""
        ...

    def create_folder(self, parent_id: str, name: str) -> FolderInfo:
        """Create a child folder (no existence check)."""
        ...

    def create_document(self, folder_id: str, name: str) -> DocumentInfo:
        """Create an empty spreadsheet document placed inside the folder."""
        ...


class SheetHandle(Protocol):
    """One named sheet (tab) inside a document."""

    name: str

    def row_count(self) -> int:
        """Index of the last non-empty row (header counts as row 1, empty sheet = 0)."""
        ...

    def get_rows(self) -> List[List[Any]]:
        """All values up to the last non-empty row."""
        ...

    def append_row(self, values: Sequence[Any]) -> None:
        """Append one row after the last non-empty row, starting at column A."""
        ...

    def write_row(self, row_index: int, values: Sequence[Any]) -> None:
        """Overwrite row `row_index` (1-based) starting at column A."""
        ...

    def write_column(self, col_index: int, start_row: int, values: Sequence[Any]) -> None:
        """Write `values` downwards in column `col_index` (1-based) from `start_row`."""
        ...

    def format_header(self, width: int, column_widths: Dict[int, int]) -> None:
        """Cosmetic header styling: background, bold, frozen row 1, widths."""
        ...

    def rename(self, title: str) -> None:
        ...


class DocumentHandle(Protocol):
    """An opened spreadsheet document."""

    id: str
    name: str

    def get_sheet(self, name: str) -> Optional[SheetHandle]:
        """Exact-name lookup; None when absent."""
        ...

    def add_sheet(self, name: str, cols: int) -> SheetHandle:
        ...

    def first_sheet(self) -> SheetHandle:
        ...


class SpreadsheetBackend(Protocol):
    def open_document(self, document_id: str) -> DocumentHandle:
        """
        Open a document by id.

        Raises:
            NotFoundError: id does not resolve
            AccessError: caller lacks permission
        """
        ...
