# services/api/core/bulk_provisioner.py
"""
Creates missing bridge spreadsheets from a list of
(bridge name, optional subfolder name) rows.

Each row is handled on its own: a failure is recorded as that row's result
and the batch keeps going.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Sequence

from adapters.base import FolderInfo, FolderProvider
from core.config import require_root_folder_id
from core.document_store import DocumentStore
from core.folder_index import FolderCache, FolderIndex

logger = logging.getLogger(__name__)

CREATED = "created"
SKIPPED = "skipped"
ERROR = "error"

# List sheet layout: A = bridge name, B = subfolder, C = result
LIST_HEADER = ["橋の名前(必須)", "フォルダ名(任意)", "作成結果"]
LIST_EXAMPLE_ROW = ["例：○○橋"]
LIST_COLUMN_WIDTHS = {1: 200, 2: 150, 3: 300}
RESULT_COLUMN = 3


@dataclass(frozen=True)
class ProvisionResult:
    status: str
    message: str
    document_id: str = ""


@dataclass
class ProvisionSummary:
    results: List[ProvisionResult] = field(default_factory=list)
    # True when the list sheet did not exist and was just created
    list_sheet_created: bool = False

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def created(self) -> int:
        return self.count(CREATED)

    @property
    def skipped(self) -> int:
        return self.count(SKIPPED)

    @property
    def errors(self) -> int:
        return self.count(ERROR)


def _cell(row: Sequence[Any], idx: int) -> str:
    if idx >= len(row) or row[idx] is None:
        return ""
    return str(row[idx]).strip()


class BulkProvisioner:
    def __init__(
        self,
        folder_index: FolderIndex,
        folders: FolderProvider,
        document_store: DocumentStore,
        root_folder_id: str,
        default_sheet_name: str,
    ) -> None:
        self.folder_index = folder_index
        self.folders = folders
        self.document_store = document_store
        self.root_folder_id = root_folder_id
        self.default_sheet_name = default_sheet_name

    def provision(self, rows: Iterable[Sequence[Any]]) -> ProvisionSummary:
        root = self.folders.get_folder(require_root_folder_id(self.root_folder_id))
        # subfolder lookups are cached for this run only
        cache = FolderCache()

        summary = ProvisionSummary()
        for row in rows:
            summary.results.append(self._provision_row(row, root, cache))

        logger.info(
            "Provisioning finished: created=%d skipped=%d errors=%d",
            summary.created, summary.skipped, summary.errors,
        )
        return summary

    def _provision_row(self, row: Sequence[Any], root: FolderInfo, cache: FolderCache) -> ProvisionResult:
        bridge_name = _cell(row, 0)
        subfolder_name = _cell(row, 1)

        if not bridge_name:
            return ProvisionResult(SKIPPED, "スキップ: 名前なし")

        try:
            target = root
            if subfolder_name:
                folder_id = self.folder_index.resolve_subfolder(root.id, subfolder_name, cache)
                target = FolderInfo(id=folder_id, name=subfolder_name)

            if self.folders.find_files_by_name(target.id, bridge_name):
                return ProvisionResult(SKIPPED, "スキップ: 同名ファイルあり")

            info = self.folders.create_document(target.id, bridge_name)
            doc = self.document_store.open_document(info.id)
            self.document_store.setup_default_sheet(doc, self.default_sheet_name)

            logger.info("Provisioned %r in %r (%s)", bridge_name, target.name, info.id)
            return ProvisionResult(CREATED, f"作成完了 ({target.name})", document_id=info.id)
        except Exception as e:
            logger.exception("Provisioning %r failed: %s", bridge_name, e)
            return ProvisionResult(ERROR, f"エラー: {e}")

    def provision_from_list_sheet(self, list_document_id: str, list_sheet_name: str) -> ProvisionSummary:
        """
        Read rows 2..N of the list sheet, provision them and write each
        row's result text into column C.

        When the list sheet is missing it is created with its header and an
        example row, and nothing is provisioned.
        """
        doc = self.document_store.open_document(list_document_id)
        sheet = doc.get_sheet(list_sheet_name)
        if sheet is None:
            sheet = doc.add_sheet(list_sheet_name, cols=len(LIST_HEADER))
            sheet.write_row(1, LIST_HEADER)
            sheet.write_row(2, LIST_EXAMPLE_ROW)
            sheet.format_header(len(LIST_HEADER), LIST_COLUMN_WIDTHS)
            logger.info("Created list sheet %r in %r", list_sheet_name, doc.name)
            return ProvisionSummary(list_sheet_created=True)

        rows = sheet.get_rows()[1:]
        if not rows:
            return ProvisionSummary()

        summary = self.provision(rows)
        sheet.write_column(RESULT_COLUMN, 2, [r.message for r in summary.results])
        return summary
