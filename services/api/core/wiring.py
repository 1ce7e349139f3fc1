# services/api/core/wiring.py
"""Builds the backend + core services from Settings (used by the app and the CLI)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from adapters.base import FolderProvider, SpreadsheetBackend
from core.bulk_provisioner import BulkProvisioner
from core.config import RouterConfig, is_unset_folder_id
from core.document_store import DocumentStore
from core.folder_index import FolderIndex
from core.request_router import RequestRouter

logger = logging.getLogger(__name__)


@dataclass
class Components:
    config: RouterConfig
    folders: FolderProvider
    backend: SpreadsheetBackend
    folder_index: FolderIndex
    document_store: DocumentStore
    request_router: RequestRouter


def build_backend(settings) -> tuple:
    """(FolderProvider, SpreadsheetBackend) for settings.storage_backend."""
    backend = settings.storage_backend.lower()

    if backend == "google":
        from adapters.google import GoogleWorkspace

        workspace = GoogleWorkspace(
            settings.resolved_google_sa_json(),
            attempts=settings.sheets_api_attempts,
        )
        return workspace.folders, workspace.sheets

    if backend == "memory":
        from adapters.memory import MemoryDrive

        root_id = "root" if is_unset_folder_id(settings.target_folder_id) else settings.target_folder_id
        drive = MemoryDrive(root_id=root_id)
        return drive, drive

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")


def build_components(settings) -> Components:
    config = settings.router_config()
    display_tz = ZoneInfo(settings.display_timezone)
    folders, backend = build_backend(settings)

    folder_index = FolderIndex(folders, display_tz)
    document_store = DocumentStore(backend, config.variant, display_tz)
    request_router = RequestRouter(config, folder_index, document_store)

    logger.info(
        "Storage backend: %s, schema variant: %s",
        settings.storage_backend.upper(), config.variant.key,
    )
    return Components(
        config=config,
        folders=folders,
        backend=backend,
        folder_index=folder_index,
        document_store=document_store,
        request_router=request_router,
    )


def build_provisioner(settings, components: Components) -> BulkProvisioner:
    return BulkProvisioner(
        folder_index=components.folder_index,
        folders=components.folders,
        document_store=components.document_store,
        root_folder_id=settings.target_folder_id,
        default_sheet_name=settings.provision_default_sheet,
    )
