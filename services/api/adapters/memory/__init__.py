"""
In-memory folder/spreadsheet backend for the bridge inspection service.
Used for local runs (STORAGE_BACKEND=memory) and as the host double in tests.
Not persistent: everything is lost when the process exits.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from adapters.base import DocumentInfo, FolderInfo
from core.errors import AccessError, InternalError, NotFoundError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _is_blank(row: Sequence[Any]) -> bool:
    return all(v is None or v == "" for v in row)


class MemorySheet:
    """A sheet as a list of rows; trailing blank rows don't count."""

    def __init__(self, name: str, cols: int = 26, on_change: Optional[Callable[[], None]] = None):
        self.name = name
        self.cols = cols
        self.rows: List[List[Any]] = []
        self.header_formatted = False
        self.frozen_rows = 0
        self.column_widths: Dict[int, int] = {}
        self._on_change = on_change

    def _touch(self) -> None:
        if self._on_change:
            self._on_change()

    def _ensure_rows(self, n: int) -> None:
        while len(self.rows) < n:
            self.rows.append([])

    def row_count(self) -> int:
        for i in range(len(self.rows), 0, -1):
            if not _is_blank(self.rows[i - 1]):
                return i
        return 0

    def get_rows(self) -> List[List[Any]]:
        return [list(r) for r in self.rows[: self.row_count()]]

    def append_row(self, values: Sequence[Any]) -> None:
        n = self.row_count()
        self._ensure_rows(n + 1)
        self.rows[n] = list(values)
        self._touch()

    def write_row(self, row_index: int, values: Sequence[Any]) -> None:
        self._ensure_rows(row_index)
        row = self.rows[row_index - 1]
        for i, v in enumerate(values):
            while len(row) <= i:
                row.append("")
            row[i] = v
        self._touch()

    def write_column(self, col_index: int, start_row: int, values: Sequence[Any]) -> None:
        for offset, v in enumerate(values):
            r = start_row + offset
            self._ensure_rows(r)
            row = self.rows[r - 1]
            while len(row) < col_index:
                row.append("")
            row[col_index - 1] = v
        self._touch()

    def format_header(self, width: int, column_widths: Dict[int, int]) -> None:
        self.header_formatted = True
        self.frozen_rows = 1
        self.column_widths.update(column_widths)

    def rename(self, title: str) -> None:
        self.name = title
        self._touch()


class MemoryDocument:
    def __init__(self, doc_id: str, name: str, folder_id: str, modified_time: datetime, clock):
        self.id = doc_id
        self.name = name
        self.folder_id = folder_id
        self.modified_time = modified_time
        self._clock = clock
        self.sheets: List[MemorySheet] = [MemorySheet("Sheet1", on_change=self.touch)]

    def touch(self) -> None:
        self.modified_time = self._clock()

    def get_sheet(self, name: str) -> Optional[MemorySheet]:
        for ws in self.sheets:
            if ws.name == name:
                return ws
        return None

    def add_sheet(self, name: str, cols: int) -> MemorySheet:
        if self.get_sheet(name) is not None:
            # Sheets rejects duplicate titles too
            raise InternalError(f'A sheet with the name "{name}" already exists.')
        ws = MemorySheet(name, cols=cols, on_change=self.touch)
        self.sheets.append(ws)
        self.touch()
        return ws

    def first_sheet(self) -> MemorySheet:
        return self.sheets[0]

    def sheet_names(self) -> List[str]:
        return [ws.name for ws in self.sheets]


@dataclass
class _Folder:
    id: str
    name: str
    parent_id: Optional[str]
    children: List[str] = field(default_factory=list)


class MemoryDrive:
    """
    Folder tree + spreadsheet documents in one object, so documents created
    through the FolderProvider side can be opened through the backend side.

    `calls` records every provider/backend call name (tests use it to assert
    that nothing was touched).
    """

    def __init__(
        self,
        root_id: str = "root",
        root_name: str = "点検データ",
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.root_id = root_id
        self._clock = clock
        self.folders: Dict[str, _Folder] = {root_id: _Folder(root_id, root_name, None)}
        self.documents: Dict[str, MemoryDocument] = {}
        # non-spreadsheet files: id -> (folder_id, name)
        self.files: Dict[str, Tuple[str, str]] = {}
        self.denied: Set[str] = set()
        self.calls: List[str] = []

    # ========== Seeding helpers ==========

    def add_folder(self, parent_id: str, name: str, folder_id: Optional[str] = None) -> str:
        parent = self._folder(parent_id)
        fid = folder_id or _new_id()
        self.folders[fid] = _Folder(fid, name, parent_id)
        parent.children.append(fid)
        return fid

    def add_document(
        self,
        folder_id: str,
        name: str,
        document_id: Optional[str] = None,
        modified_time: Optional[datetime] = None,
    ) -> MemoryDocument:
        self._folder(folder_id)
        did = document_id or _new_id()
        doc = MemoryDocument(did, name, folder_id, modified_time or self._clock(), self._clock)
        self.documents[did] = doc
        return doc

    def add_file(self, folder_id: str, name: str, file_id: Optional[str] = None) -> str:
        """A file that is not a spreadsheet (PDF, image, ...)."""
        self._folder(folder_id)
        fid = file_id or _new_id()
        self.files[fid] = (folder_id, name)
        return fid

    def deny(self, item_id: str) -> None:
        self.denied.add(item_id)

    # ========== Internals ==========

    def _folder(self, folder_id: str) -> _Folder:
        if folder_id in self.denied:
            raise AccessError("folder", folder_id)
        folder = self.folders.get(folder_id)
        if folder is None:
            raise NotFoundError("folder", folder_id)
        return folder

    def _info(self, doc: MemoryDocument) -> DocumentInfo:
        return DocumentInfo(
            id=doc.id,
            name=doc.name,
            url=f"memory://spreadsheets/{doc.id}",
            modified_time=doc.modified_time,
        )

    # ========== FolderProvider ==========

    def get_folder(self, folder_id: str) -> FolderInfo:
        self.calls.append("get_folder")
        folder = self._folder(folder_id)
        return FolderInfo(id=folder.id, name=folder.name)

    def list_child_folders(self, folder_id: str) -> List[FolderInfo]:
        self.calls.append("list_child_folders")
        folder = self._folder(folder_id)
        return [FolderInfo(id=c, name=self.folders[c].name) for c in folder.children]

    def list_documents(self, folder_id: str) -> List[DocumentInfo]:
        self.calls.append("list_documents")
        self._folder(folder_id)
        return [self._info(d) for d in self.documents.values() if d.folder_id == folder_id]

    def find_files_by_name(self, folder_id: str, name: str) -> List[str]:
        self.calls.append("find_files_by_name")
        self._folder(folder_id)
        ids = [d.id for d in self.documents.values() if d.folder_id == folder_id and d.name == name]
        ids.extend(fid for fid, (parent, n) in self.files.items() if parent == folder_id and n == name)
        return ids

    def create_folder(self, parent_id: str, name: str) -> FolderInfo:
        self.calls.append("create_folder")
        fid = self.add_folder(parent_id, name)
        return FolderInfo(id=fid, name=name)

    def create_document(self, folder_id: str, name: str) -> DocumentInfo:
        self.calls.append("create_document")
        return self._info(self.add_document(folder_id, name))

    # ========== SpreadsheetBackend ==========

    def open_document(self, document_id: str) -> MemoryDocument:
        self.calls.append("open_document")
        if document_id in self.denied:
            raise AccessError("document", document_id)
        doc = self.documents.get(document_id)
        if doc is None:
            raise NotFoundError("document", document_id)
        return doc
