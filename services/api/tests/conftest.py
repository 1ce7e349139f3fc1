"""
Shared fixtures: an in-memory Drive with a fixed clock, plus the core
services wired on top of it.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from adapters.memory import MemoryDrive
from core.config import RouterConfig
from core.document_store import DocumentStore
from core.folder_index import FolderIndex
from core.request_router import RequestRouter
from core.schema_variants import VARIANT_A, VARIANT_B

ROOT_ID = "root-folder"
FIXED_NOW = datetime(2024, 5, 1, 3, 4, 5, tzinfo=timezone.utc)  # 12:04:05 JST


@pytest.fixture
def tokyo():
    return ZoneInfo("Asia/Tokyo")


@pytest.fixture
def drive():
    return MemoryDrive(root_id=ROOT_ID, root_name="点検データ", clock=lambda: FIXED_NOW)


@pytest.fixture
def folder_index(drive, tokyo):
    return FolderIndex(drive, tokyo)


@pytest.fixture
def store_b(drive, tokyo):
    return DocumentStore(drive, VARIANT_B, tokyo, clock=lambda: FIXED_NOW)


@pytest.fixture
def store_a(drive, tokyo):
    return DocumentStore(drive, VARIANT_A, tokyo, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_router(drive, tokyo):
    def _make(root_folder_id=ROOT_ID, schema_variant="B", default_sheet_name="点検データ"):
        config = RouterConfig(
            root_folder_id=root_folder_id,
            schema_variant=schema_variant,
            default_sheet_name=default_sheet_name,
        )
        store = DocumentStore(drive, config.variant, tokyo, clock=lambda: FIXED_NOW)
        return RequestRouter(config, FolderIndex(drive, tokyo), store)

    return _make
