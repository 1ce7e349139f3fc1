# services/api/core/request_router.py
"""
The protocol boundary: turns listing / append requests into FolderIndex and
DocumentStore calls and shapes the JSON payloads the field app expects.

Nothing raised below this layer escapes it.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from core.config import RouterConfig
from core.document_store import DocumentStore
from core.errors import BridgeInspectionError, ConfigurationError, ValidationError
from core.folder_index import FolderIndex
from schemas.record import parse_record

logger = logging.getLogger(__name__)

MISSING_FILE_ID = "ファイルIDが指定されていません (fileId is required)"

Body = Union[bytes, str, Dict[str, Any], None]


def _error_text(exc: Exception) -> str:
    if isinstance(exc, BridgeInspectionError):
        return exc.message
    return str(exc) or exc.__class__.__name__


class RequestRouter:
    def __init__(
        self,
        config: RouterConfig,
        folder_index: FolderIndex,
        document_store: DocumentStore,
    ) -> None:
        self.config = config
        self.folder_index = folder_index
        self.document_store = document_store

        # validated once; the read path reports it instead of touching folders
        self.config_error: Optional[ConfigurationError] = None
        try:
            config.validate()
        except ConfigurationError as e:
            logger.warning("Listing disabled until configured: %s", e.message)
            self.config_error = e

    # ========== Read path ==========

    def handle_list(self) -> Dict[str, Any]:
        """{status:"success", bridges, folderName} or {status:"error", message|error}."""
        if self.config_error is not None:
            return {"status": "error", "message": self.config_error.message}
        try:
            root, bridges = self.folder_index.list_root(self.config.root_folder_id)
            return {
                "status": "success",
                "bridges": [b.to_dict() for b in bridges],
                "folderName": root.name,
            }
        except ConfigurationError as e:
            return {"status": "error", "message": e.message}
        except BridgeInspectionError as e:
            logger.error("Listing failed: %s", e.message)
            return {"status": "error", "error": e.message}
        except Exception as e:
            logger.exception("Listing failed: %s", e)
            return {"status": "error", "error": _error_text(e)}

    # ========== Write path ==========

    @staticmethod
    def _parse_body(body: Body) -> Dict[str, Any]:
        if body is None or body == b"" or body == "":
            raise ValidationError("Request body is empty")
        if isinstance(body, dict):
            return body
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Request body is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload

    def handle_append(self, body: Body) -> Dict[str, Any]:
        """{success:true, message, sheetName} or {success:false, error}."""
        try:
            payload = self._parse_body(body)
            try:
                record = parse_record(self.config.variant.key, payload)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid record: {e}") from e

            if not record.file_id:
                raise ValidationError(MISSING_FILE_ID)

            sheet_name = record.sheet_name or self.config.default_sheet_name
            store = self.document_store
            doc = store.open_document(record.file_id)
            sheet = store.get_or_create_sheet(doc, sheet_name)
            result = store.append_record(doc, sheet, record.column_values())

            return {
                "success": True,
                "message": f"{result.document_name} > {result.sheet_name} に保存しました",
                "sheetName": result.sheet_name,
            }
        except BridgeInspectionError as e:
            logger.warning("Append rejected (%s): %s", e.error_code.value, e.message)
            return {"success": False, "error": e.message}
        except Exception as e:
            logger.exception("Append failed: %s", e)
            return {"success": False, "error": _error_text(e)}
