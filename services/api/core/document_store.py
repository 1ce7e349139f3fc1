# services/api/core/document_store.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Mapping

from adapters.base import DocumentHandle, SheetHandle, SpreadsheetBackend
from core.errors import ValidationError
from core.schema_variants import SchemaVariant

logger = logging.getLogger(__name__)

RECEIVED_AT_FORMAT = "%Y/%m/%d %H:%M:%S"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AppendResult:
    document_name: str
    sheet_name: str
    sequence: int
    # only Variant A records a receipt time
    received_at: str = ""


class DocumentStore:
    """
    Resolves the write target inside a bridge document and appends rows in
    the layout of the active schema variant.
    """

    def __init__(
        self,
        backend: SpreadsheetBackend,
        variant: SchemaVariant,
        display_tz: tzinfo,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.backend = backend
        self.variant = variant
        self.display_tz = display_tz
        self._clock = clock

    def open_document(self, document_id: str) -> DocumentHandle:
        """NotFoundError / AccessError come straight from the backend."""
        if not document_id:
            raise ValidationError("fileId is required")
        return self.backend.open_document(document_id)

    def _setup_header(self, sheet: SheetHandle) -> None:
        sheet.write_row(1, list(self.variant.headers))
        sheet.format_header(self.variant.width, self.variant.column_widths)

    def get_or_create_sheet(self, doc: DocumentHandle, sheet_name: str) -> SheetHandle:
        # check-then-create: one document is the unit of serialization
        sheet = doc.get_sheet(sheet_name)
        if sheet is not None:
            return sheet

        sheet = doc.add_sheet(sheet_name, cols=self.variant.width)
        self._setup_header(sheet)
        logger.info(
            "Created sheet %r in %r (variant %s)", sheet_name, doc.name, self.variant.key
        )
        return sheet

    def setup_default_sheet(self, doc: DocumentHandle, sheet_name: str) -> SheetHandle:
        """Rename the first sheet of a fresh document and give it the header."""
        sheet = doc.first_sheet()
        if sheet.name != sheet_name:
            sheet.rename(sheet_name)
        self._setup_header(sheet)
        return sheet

    def append_record(
        self,
        doc: DocumentHandle,
        sheet: SheetHandle,
        record: Mapping[str, Any],
    ) -> AppendResult:
        """
        Append one record as the new last row.

        The sequence number is the row count *before* the append (header is
        row 1, so a header-only sheet yields No. 1).
        """
        sequence = sheet.row_count()
        if sequence < 1:
            # header missing: formula kept as-is, just make it visible
            logger.warning(
                "Sheet %r in %r has no header row; appending with No. %d",
                sheet.name, doc.name, sequence,
            )

        received_at = ""
        if self.variant.has_receipt_time:
            received_at = self._clock().astimezone(self.display_tz).strftime(RECEIVED_AT_FORMAT)

        row = self.variant.build_row(record, sequence=sequence, received_at=received_at)
        sheet.append_row(row)
        logger.info("Appended No. %d to %r > %r", sequence, doc.name, sheet.name)

        return AppendResult(
            document_name=doc.name,
            sheet_name=sheet.name,
            sequence=sequence,
            received_at=received_at,
        )
